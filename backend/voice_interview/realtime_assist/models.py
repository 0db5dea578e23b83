from __future__ import annotations

from dataclasses import dataclass

from voice_core.config import HINT_BUFFER_CHARS, HINT_DEBOUNCE_SEC, HINT_MIN_TRANSCRIPT_CHARS

ANSWER_LENGTHS = ("short", "medium", "long")
TONES = ("casual", "technical", "professional")

HINT_MAX_TOKENS = {"short": 80, "medium": 150, "long": 300}


@dataclass
class HintConfig:
    answer_length: str = "medium"
    tone: str = "professional"
    debounce_sec: float = HINT_DEBOUNCE_SEC
    min_transcript_chars: int = HINT_MIN_TRANSCRIPT_CHARS
    buffer_chars: int = HINT_BUFFER_CHARS
    transcript_tail_chars: int = 200

    def __post_init__(self):
        if self.answer_length not in ANSWER_LENGTHS:
            self.answer_length = "medium"
        if self.tone not in TONES:
            self.tone = "professional"

    @property
    def max_tokens(self) -> int:
        return HINT_MAX_TOKENS[self.answer_length]


@dataclass
class LiveHint:
    hint: str
    transcript: str

    def to_dict(self) -> dict:
        return {
            "type": "hint",
            "hint": self.hint,
            "transcript": self.transcript,
        }
