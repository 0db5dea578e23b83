import asyncio
import base64
import inspect
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, Sequence, Union

import edge_tts
from openai import AsyncOpenAI

from voice_core.config import LLM_TIMEOUT_SEC, PCM_SAMPLE_RATE, TTS_MODEL
from voice_interview.interview.prompts import LANGUAGE_LABELS
from voice_interview.persona.engine import InterviewerProfile
from voice_interview.services.audio_service import chunk_pcm, decode_to_pcm16, resample_pcm16

logger = logging.getLogger("voice_interview.services.tts")

OPENAI_AUDIO_SAMPLE_RATE = 24000

MaybeAwaitable = Union[None, Awaitable[None]]
ChunkCallback = Callable[[bytes], MaybeAwaitable]
DoneCallback = Callable[[int], MaybeAwaitable]
ErrorCallback = Callable[[str], MaybeAwaitable]


class SpeechProvider(Protocol):
    name: str

    def synthesize(self, text: str, profile: InterviewerProfile, language: str) -> AsyncIterator[bytes]:
        ...


def _speak_language(language: str) -> str:
    lang = language or "en-US"
    if lang.startswith("en"):
        return "English"
    return LANGUAGE_LABELS.get(lang, "English").split(" (")[0]


class OpenAIAudioProvider:
    """Audio chat completion returning raw PCM16 at 24 kHz, resampled to 16 kHz."""

    name = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = TTS_MODEL, timeout_sec: float = LLM_TIMEOUT_SEC):
        self.client = client
        self.model = model
        self.timeout_sec = timeout_sec

    async def synthesize(self, text: str, profile: InterviewerProfile, language: str) -> AsyncIterator[bytes]:
        response = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.model,
                modalities=["text", "audio"],
                audio={"voice": profile.openai_voice, "format": "pcm16"},
                messages=[
                    {
                        "role": "system",
                        "content": (
                            "You are a professional interviewer conducting an interview. Read the following text "
                            "aloud exactly as written with no changes, additions, or omissions. Use a warm, natural, "
                            f"conversational tone. Speak in {_speak_language(language)} exactly as written."
                        ),
                    },
                    {"role": "user", "content": text},
                ],
            ),
            timeout=self.timeout_sec,
        )
        audio = getattr(response.choices[0].message, "audio", None)
        data = getattr(audio, "data", None)
        if not data:
            logger.warning("OpenAI audio response carried no audio data")
            return

        pcm = resample_pcm16(base64.b64decode(data), OPENAI_AUDIO_SAMPLE_RATE, PCM_SAMPLE_RATE)
        for chunk in chunk_pcm(pcm):
            yield chunk


class EdgeTTSProvider:
    """Microsoft Edge neural voices: MP3 stream decoded to 16 kHz PCM16."""

    name = "edge"

    def __init__(self, rate: str = "-5%"):
        self.rate = rate

    async def synthesize(self, text: str, profile: InterviewerProfile, language: str) -> AsyncIterator[bytes]:
        communicate = edge_tts.Communicate(text, profile.edge_voice, rate=self.rate)
        encoded = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                encoded.extend(chunk["data"])

        if not encoded:
            return

        pcm = await decode_to_pcm16(bytes(encoded), PCM_SAMPLE_RATE)
        for chunk in chunk_pcm(pcm):
            yield chunk


async def _call(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class SpeechSynthesisBridge:
    """
    Tries providers in order. A provider that raises before producing audio,
    or produces nothing, counts as failed and the next one is tried.
    Exactly one of ``on_done`` / ``on_error`` fires per ``speak`` call.
    """

    def __init__(self, providers: Sequence[SpeechProvider]):
        self.providers = list(providers)

    async def speak(
        self,
        text: str,
        profile: InterviewerProfile,
        language: str,
        on_chunk: ChunkCallback,
        on_done: Optional[DoneCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> bool:
        failures: list[str] = []
        for provider in self.providers:
            delivered = 0
            total_bytes = 0
            try:
                async for chunk in provider.synthesize(text, profile, language):
                    if not chunk:
                        continue
                    delivered += 1
                    total_bytes += len(chunk)
                    await _call(on_chunk, chunk)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("TTS provider failed | provider=%s err=%s", provider.name, exc)
                failures.append(f"{provider.name}: {exc}")
                if delivered:
                    # audio already reached the client; finish with what was sent
                    await _call(on_done, total_bytes)
                    return True
                continue

            if delivered:
                logger.info(
                    "TTS complete | provider=%s chunks=%s bytes=%s", provider.name, delivered, total_bytes
                )
                await _call(on_done, total_bytes)
                return True

            logger.warning("TTS provider produced no audio | provider=%s", provider.name)
            failures.append(f"{provider.name}: no audio")

        await _call(on_error, "; ".join(failures) or "no speech providers configured")
        return False
