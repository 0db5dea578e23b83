import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from openai import AsyncOpenAI

from voice_core.config import LLM_RETRIES, LLM_TIMEOUT_SEC, MODEL_NAME

logger = logging.getLogger("voice_interview.ai_reasoning.llm")


@dataclass
class GenerateRequest:
    phase: str
    system_prompt: str
    user_prompt: str
    history: list[dict] = field(default_factory=list)
    max_tokens: int = 300
    temperature: float = 0.7


@dataclass
class GenerateResponse:
    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text.strip())


class GenerationClient(Protocol):
    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        ...


class OpenAIGenerationClient:
    """
    Chat-completion backed generator.
    Never raises: failures come back as an empty response carrying the error.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = MODEL_NAME,
        timeout_sec: float = LLM_TIMEOUT_SEC,
        retries: int = LLM_RETRIES,
    ):
        self.client = client
        self.model = model
        self.timeout_sec = timeout_sec
        self.retries = retries

    def _messages(self, request: GenerateRequest) -> list[dict]:
        messages = [{"role": "system", "content": request.system_prompt}]
        messages.extend(request.history)
        if request.user_prompt:
            messages.append({"role": "user", "content": request.user_prompt})
        return messages

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        if not str(request.system_prompt or "").strip():
            return GenerateResponse(error="empty_prompt")

        last_error: Exception | None = None
        for attempt in range(max(1, self.retries + 1)):
            try:
                response = await asyncio.wait_for(
                    self.client.chat.completions.create(
                        model=self.model,
                        messages=self._messages(request),
                        max_tokens=request.max_tokens,
                        temperature=request.temperature,
                    ),
                    timeout=self.timeout_sec,
                )
                message = response.choices[0].message.content
                return GenerateResponse(text=str(message or "").strip())
            except asyncio.TimeoutError as exc:
                last_error = exc
                logger.warning("generate timeout | phase=%s attempt=%s", request.phase, attempt + 1)
            except Exception as exc:
                last_error = exc
                logger.warning("generate failure | phase=%s attempt=%s err=%s", request.phase, attempt + 1, exc)

            if attempt < self.retries:
                await asyncio.sleep(0.35 * (attempt + 1))

        logger.warning("generate fallback activated | phase=%s err=%s", request.phase, last_error)
        return GenerateResponse(error=str(last_error or "unknown"))
