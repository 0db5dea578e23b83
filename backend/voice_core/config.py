import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
OPENAI_BASE_URL = str(os.getenv("OPENAI_BASE_URL") or "").strip() or None
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4o").strip()
TTS_MODEL = str(os.getenv("TTS_MODEL") or "gpt-audio-mini").strip()
DEEPGRAM_API_KEY = str(os.getenv("DEEPGRAM_API_KEY") or "").strip()
QA_MODE = _flag("QA_MODE")

LLM_TIMEOUT_SEC = max(2.0, float(os.getenv("LLM_TIMEOUT_SEC", "30")))
LLM_RETRIES = max(0, int(os.getenv("LLM_RETRIES", "1")))
LLM_HISTORY_WINDOW = max(4, int(os.getenv("LLM_HISTORY_WINDOW", "40")))

# Interview flow
MAX_CONSECUTIVE_PROBES = 2
MIN_ANSWER_CHARS = max(1, int(os.getenv("MIN_ANSWER_CHARS", "5")))
DEFAULT_TOTAL_QUESTIONS = max(1, int(os.getenv("DEFAULT_TOTAL_QUESTIONS", "10")))
HIGH_SCORE_THRESHOLD = 8
LOW_SCORE_THRESHOLD = 4

# Audio / speaking window
PCM_SAMPLE_RATE = 16000
PCM_BYTES_PER_SEC = PCM_SAMPLE_RATE * 2
SPEAKING_TAIL_SEC = max(0.0, float(os.getenv("SPEAKING_TAIL_SEC", "1.5")))
TTS_FALLBACK_WINDOW_SEC = max(1.0, float(os.getenv("TTS_FALLBACK_WINDOW_SEC", "5")))
TTS_CHUNK_BYTES = max(640, int(os.getenv("TTS_CHUNK_BYTES", "6400")))
CLIENT_AUDIO_SAMPLE_RATE = max(8000, int(os.getenv("CLIENT_AUDIO_SAMPLE_RATE", "48000")))

# Live hint pipeline
HINT_DEBOUNCE_SEC = max(1.0, float(os.getenv("HINT_DEBOUNCE_SEC", "8")))
HINT_MIN_TRANSCRIPT_CHARS = max(1, int(os.getenv("HINT_MIN_TRANSCRIPT_CHARS", "30")))
HINT_BUFFER_CHARS = max(200, int(os.getenv("HINT_BUFFER_CHARS", "2000")))

SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))

CORS_ALLOW_ORIGINS = [
    item.strip()
    for item in str(os.getenv("CORS_ALLOW_ORIGINS") or "").split(",")
    if item.strip()
] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3001",
]
