from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Coroutine, Optional

from voice_interview.ai_reasoning.llm import GenerateRequest, GenerationClient
from voice_interview.realtime_assist.models import HintConfig, LiveHint

logger = logging.getLogger("voice_interview.realtime_assist.engine")

_LENGTH_INSTRUCTIONS = {
    "short": "Keep your hint to 1 sentence max.",
    "medium": "Your hint must be exactly 1-2 sentences max.",
    "long": "Provide a detailed 3-4 sentence response with specific examples.",
}

_TONE_INSTRUCTIONS = {
    "casual": "Use a friendly, conversational tone.",
    "technical": "Use precise technical language and terminology.",
    "professional": "Use a professional, polished tone.",
}


def build_hint_prompt(config: HintConfig) -> str:
    return (
        "You are a real-time interview coach. The candidate is in a live interview right now. Based on the "
        "interview question being asked (from the transcript), the candidate's resume, and the job description, "
        "provide a concise live hint using the STAR method (Situation, Task, Action, Result). "
        f"{_LENGTH_INSTRUCTIONS[config.answer_length]} {_TONE_INSTRUCTIONS[config.tone]} "
        "Be specific and actionable and reference actual experiences from their resume that match the question. "
        'Do NOT repeat the question. Do NOT use labels like "Situation:" or "STAR:". Just give the hint naturally.'
    )


class RollingTranscriptBuffer:
    """Final transcript segments joined by spaces, capped to the most recent ``max_chars``."""

    def __init__(self, max_chars: int = 2000):
        self.max_chars = int(max_chars)
        self.text = ""

    def append(self, text: str) -> bool:
        clean = str(text or "").strip()
        if not clean:
            return False
        self.text = f"{self.text} {clean}"[-self.max_chars:]
        return True

    def get_full_text(self) -> str:
        return self.text.strip()

    def clear(self) -> None:
        self.text = ""


class CooldownManager:
    def __init__(self):
        self.last_fired: dict[str, float] = {}

    def can_fire(self, key: str, now: float, cooldown: float) -> bool:
        last = self.last_fired.get(key)
        if last is None or (float(now) - float(last)) >= float(cooldown):
            self.last_fired[key] = float(now)
            return True
        return False


class LiveHintPipeline:
    """
    Turns finalized copilot transcript into STAR-style hints.

    At most one request is in flight and at most one starts per debounce
    window. The in-flight flag is set in the same synchronous step that
    decides to fire.
    """

    def __init__(
        self,
        resume_text: str,
        job_description: str,
        generator: GenerationClient,
        send_fn: Callable[[dict], Awaitable[None]],
        config: Optional[HintConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        spawn: Optional[Callable[[Coroutine], asyncio.Task]] = None,
    ):
        self.resume_text = resume_text or ""
        self.job_description = job_description or ""
        self.generator = generator
        self.send_fn = send_fn
        self.config = config or HintConfig()
        self.clock = clock
        self.spawn = spawn or asyncio.create_task
        self.buffer = RollingTranscriptBuffer(self.config.buffer_chars)
        self.cooldown = CooldownManager()
        self.in_flight = False
        self.hints_sent = 0

    @property
    def has_context(self) -> bool:
        return bool(self.resume_text or self.job_description)

    def on_transcript(self, text: str, is_final: bool) -> Optional[asyncio.Task]:
        if not is_final:
            return None
        if not self.buffer.append(text):
            return None
        return self.maybe_request_hint()

    def on_utterance_end(self) -> Optional[asyncio.Task]:
        return self.maybe_request_hint()

    def maybe_request_hint(self) -> Optional[asyncio.Task]:
        if self.in_flight:
            return None
        transcript = self.buffer.get_full_text()
        if len(transcript) < self.config.min_transcript_chars:
            return None
        if not self.has_context:
            return None
        if not self.cooldown.can_fire("hint", self.clock(), self.config.debounce_sec):
            return None

        self.in_flight = True
        return self.spawn(self._request_hint(transcript))

    async def _request_hint(self, transcript: str) -> None:
        try:
            hint = await self.generate_hint(transcript)
            if hint:
                tail = transcript[-self.config.transcript_tail_chars:]
                await self.send_fn(LiveHint(hint=hint, transcript=tail).to_dict())
                self.hints_sent += 1
        except Exception as exc:
            logger.warning("Hint generation error: %s", exc)
        finally:
            self.in_flight = False

    async def generate_hint(self, transcript: str) -> str:
        response = await self.generator.generate(
            GenerateRequest(
                phase="hint",
                system_prompt=build_hint_prompt(self.config),
                user_prompt=(
                    f"RESUME:\n{self.resume_text}\n\nJOB DESCRIPTION:\n{self.job_description}\n\n"
                    f"LIVE TRANSCRIPT (what the interviewer is saying right now):\n{transcript}"
                ),
                max_tokens=self.config.max_tokens,
                temperature=0.7,
            )
        )
        if response.error:
            logger.warning("Hint generation failed: %s", response.error)
            return ""
        return response.text.strip()
