import asyncio
import json

from voice_interview.ai_reasoning.llm import GenerateRequest, GenerateResponse
from voice_interview.persona.engine import InterviewerProfile

PROFILE = InterviewerProfile(
    openai_voice="echo",
    edge_voice="en-US-BrianNeural",
    gender="male",
    face_id="7e74d6e7-d559-4394-bd56-4923a3ab75ad",
)

RESUME = """Priya Sharma
priya.sharma@example.com

Experience
Acme Corp | Senior Engineer
Built a real-time billing pipeline on Kafka.
Skills: Python, Kafka, Kubernetes
"""

DEFAULT_LINES = {
    "greeting": "Hello Priya! Welcome to your interview. How are you doing today?",
    "intro": "Great to hear. Could you walk me through your background?",
    "deep_dive": "Tell me about the billing pipeline you built on Kafka.",
    "cross_exam": "What exactly was your own role in that migration?",
    "closing": "Thank you for your time today, Priya. You did well overall.",
    "hint": "Mention the Kafka billing pipeline and how much latency you cut.",
}


def evaluation_json(score=8, feedback="Clear and specific.", follow_up=False, reason=None) -> str:
    return json.dumps({
        "score": score,
        "feedback": feedback,
        "shouldFollowUp": follow_up,
        "followUpReason": reason,
    })


class ScriptedGenerator:
    """Answers by request phase; the last scripted evaluation repeats."""

    def __init__(self, lines=None, evaluations=None, errors=()):
        self.lines = dict(DEFAULT_LINES)
        self.lines.update(lines or {})
        self.evaluations = list(evaluations or [evaluation_json()])
        self.errors = set(errors)
        self.requests: list[GenerateRequest] = []

    def calls(self, phase: str) -> list[GenerateRequest]:
        return [r for r in self.requests if r.phase == phase]

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        self.requests.append(request)
        await asyncio.sleep(0)
        if request.phase in self.errors:
            return GenerateResponse(error="forced")
        if request.phase == "evaluation":
            text = self.evaluations.pop(0) if len(self.evaluations) > 1 else self.evaluations[0]
            return GenerateResponse(text=text)
        return GenerateResponse(text=self.lines.get(request.phase, ""))


class FakeSynthesizer:
    def __init__(self, chunks=(b"\x00" * 64,), fail=False):
        self.chunks = list(chunks)
        self.fail = fail
        self.spoken: list[str] = []

    async def speak(self, text, profile, language, on_chunk, on_done=None, on_error=None):
        self.spoken.append(text)
        await asyncio.sleep(0)
        if self.fail:
            await on_error("all providers failed")
            return False
        total = 0
        for chunk in self.chunks:
            total += len(chunk)
            await on_chunk(chunk)
        await on_done(total)
        return True


class Outbox:
    def __init__(self):
        self.messages: list[dict] = []

    async def send(self, payload: dict) -> None:
        self.messages.append(payload)

    def types(self) -> list[str]:
        return [m.get("type") for m in self.messages]

    def of_type(self, message_type: str) -> list[dict]:
        return [m for m in self.messages if m.get("type") == message_type]
