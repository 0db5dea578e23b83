import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from deepgram import DeepgramClient, LiveOptions, LiveTranscriptionEvents

from voice_core.config import CLIENT_AUDIO_SAMPLE_RATE, DEEPGRAM_API_KEY

logger = logging.getLogger("voice_interview.services.deepgram")

TRANSCRIPT = "transcript"
UTTERANCE_END = "utterance_end"
OPEN = "open"
CLOSE = "close"
ERROR = "error"

SUPPORTED_LANGUAGES = {
    "en-US", "en-GB", "en-IN", "hi", "es", "fr", "de", "pt",
    "ja", "ko", "zh", "ar", "it", "nl", "ru", "tr",
}


@dataclass(frozen=True)
class TranscriptEvent:
    kind: str
    text: str = ""
    is_final: bool = False
    error: str = ""


def deepgram_language(language: str) -> str:
    return language if language in SUPPORTED_LANGUAGES else "en"


def deepgram_model(language: str) -> str:
    return "nova-3" if str(language or "").startswith("en") else "nova-2"


class TranscriptionService:
    """
    Live Deepgram stream for one connection.

    The SDK invokes handlers from its own thread; every event is handed to the
    event loop with ``call_soon_threadsafe`` and consumed through ``events()``.
    """

    def __init__(
        self,
        language: str = "en-US",
        api_key: str = DEEPGRAM_API_KEY,
        sample_rate: int = CLIENT_AUDIO_SAMPLE_RATE,
        client: Optional[DeepgramClient] = None,
    ):
        self.language = language or "en-US"
        self.api_key = api_key
        self.sample_rate = sample_rate
        self.client = client
        self.connection = None
        self.queue: asyncio.Queue[TranscriptEvent] = asyncio.Queue()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.active = False
        self._closed = False

    @property
    def configured(self) -> bool:
        return self.client is not None or bool(self.api_key)

    def live_options(self) -> LiveOptions:
        return LiveOptions(
            model=deepgram_model(self.language),
            language=deepgram_language(self.language),
            smart_format=True,
            interim_results=True,
            utterance_end_ms="1500",
            vad_events=True,
            encoding="linear16",
            sample_rate=self.sample_rate,
        )

    async def connect(self) -> bool:
        if self.connection is not None:
            return self.active
        if not self.configured:
            logger.error("[DG] DEEPGRAM_API_KEY not set - speech-to-text will NOT work")
            return False

        self.loop = asyncio.get_running_loop()
        try:
            if self.client is None:
                self.client = DeepgramClient(self.api_key)
            self.connection = self.client.listen.websocket.v("1")
            self.connection.on(LiveTranscriptionEvents.Open, self._on_open)
            self.connection.on(LiveTranscriptionEvents.Transcript, self._on_transcript)
            self.connection.on(LiveTranscriptionEvents.UtteranceEnd, self._on_utterance_end)
            self.connection.on(LiveTranscriptionEvents.Error, self._on_error)
            self.connection.on(LiveTranscriptionEvents.Close, self._on_close)

            # start() is sync in the 3.x websocket client
            started = self.connection.start(self.live_options())
        except Exception as exc:
            logger.warning("[DG] setup failed: %s", exc)
            self.connection = None
            return False

        if started is False:
            logger.warning("[DG] start() refused the stream")
            self.connection = None
            return False

        self.active = True
        logger.info(
            "[DG] Service started | model=%s language=%s",
            deepgram_model(self.language),
            deepgram_language(self.language),
        )
        return True

    def _emit(self, event: TranscriptEvent) -> None:
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.queue.put_nowait, event)

    def _on_open(self, client, *args, **kwargs):
        self._emit(TranscriptEvent(OPEN))

    def _on_transcript(self, client, result=None, **kwargs):
        try:
            alternatives = result.channel.alternatives if result and result.channel else []
            if not alternatives:
                return
            text = (alternatives[0].transcript or "").strip()
            if not text:
                return
            self._emit(TranscriptEvent(TRANSCRIPT, text=text, is_final=bool(result.is_final)))
        except Exception as exc:
            logger.error("Deepgram transcript parse error: %s", exc)

    def _on_utterance_end(self, client, *args, **kwargs):
        self._emit(TranscriptEvent(UTTERANCE_END))

    def _on_error(self, client, error=None, **kwargs):
        logger.error("Deepgram error event: %s", error)
        self._emit(TranscriptEvent(ERROR, error=str(error or "")))

    def _on_close(self, client, *args, **kwargs):
        self.active = False
        self._emit(TranscriptEvent(CLOSE))

    def send_audio(self, audio_bytes: bytes) -> None:
        if not self.active or self.connection is None:
            return
        if isinstance(audio_bytes, bytearray):
            audio_bytes = bytes(audio_bytes)
        try:
            self.connection.send(audio_bytes)
        except Exception as exc:
            logger.warning("Deepgram send failed: %s", exc)

    async def events(self) -> AsyncIterator[TranscriptEvent]:
        while not self._closed:
            yield await self.queue.get()

    async def close(self) -> None:
        """Best effort; safe to call more than once."""
        self.active = False
        self._closed = True
        connection, self.connection = self.connection, None
        if connection is None:
            return
        try:
            await asyncio.to_thread(connection.finish)
        except Exception as exc:
            logger.warning("Deepgram finish() ignored during cleanup: %s", exc)
        logger.info("[DG] Service stopped")
