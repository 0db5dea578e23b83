import json
import logging
import re
from dataclasses import dataclass

from voice_interview.ai_reasoning.llm import GenerateRequest, GenerationClient
from voice_interview.interview.models import EvaluationResult

logger = logging.getLogger("voice_interview.interview.evaluator")

RESUME_EXCERPT_CHARS = 1000
JD_EXCERPT_CHARS = 800


@dataclass
class EvaluateRequest:
    question: str
    answer: str
    interview_type: str = "General"
    resume_text: str = ""
    job_description: str = ""


def _clamp_score(value, default: int = 7) -> int:
    if isinstance(value, bool):
        return default
    try:
        return max(1, min(10, int(round(float(value)))))
    except Exception:
        return default


def _extract_json_dict(text: str) -> dict | None:
    text = (text or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except Exception:
        pass

    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text, re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            return None

    return None


def _normalize_eval(data: dict) -> EvaluationResult:
    feedback = data.get("feedback")
    follow_up = data.get("shouldFollowUp")
    reason = data.get("followUpReason")
    return EvaluationResult(
        score=_clamp_score(data.get("score"), 7),
        feedback=feedback if isinstance(feedback, str) and feedback.strip() else "Good response.",
        should_follow_up=follow_up if isinstance(follow_up, bool) else False,
        follow_up_reason=reason if isinstance(reason, str) and reason.strip() else None,
    )


def build_evaluation_prompt(request: EvaluateRequest) -> str:
    resume_context = (
        f"\nCandidate Resume (excerpt): {request.resume_text[:RESUME_EXCERPT_CHARS]}" if request.resume_text else ""
    )
    jd_context = (
        f"\nJob Description (excerpt): {request.job_description[:JD_EXCERPT_CHARS]}" if request.job_description else ""
    )
    return f"""
You are an expert interview evaluator analyzing a candidate's answer in a {request.interview_type} interview.

Score the answer and decide if the interviewer should CROSS-EXAMINE (ask a probing follow-up) or move to a new topic.

CROSS-EXAMINATION TRIGGERS (shouldFollowUp = true):
- Answer is vague or lacks specific examples
- Candidate makes a claim that seems exaggerated or unverifiable
- Candidate mentions a project/achievement but doesn't explain their role clearly
- Answer touches on something interesting that deserves deeper exploration
- Candidate gives a surface-level response without demonstrating real understanding

MOVE ON TRIGGERS (shouldFollowUp = false):
- Answer is detailed, specific, and uses concrete examples
- Candidate clearly demonstrated deep understanding of the topic
- Answer used STAR method or equivalent structured response
- Further probing wouldn't add meaningful value
{resume_context}{jd_context}

Return STRICT JSON only:
{{
  "score": 1-10,
  "feedback": "2-3 sentences with one strength and one improvement",
  "shouldFollowUp": true or false,
  "followUpReason": "specific reason when shouldFollowUp is true"
}}
"""


class AnswerEvaluator:
    """
    Scores one answer through the generation client.
    Any failure (transport, empty text, unparseable JSON) yields the neutral result.
    """

    def __init__(self, generator: GenerationClient, max_tokens: int = 250, temperature: float = 0.3):
        self.generator = generator
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def evaluate(self, request: EvaluateRequest) -> EvaluationResult:
        try:
            response = await self.generator.generate(
                GenerateRequest(
                    phase="evaluation",
                    system_prompt=build_evaluation_prompt(request),
                    user_prompt=f"Interview Question: {request.question}\n\nCandidate's Answer: {request.answer}",
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )
            )
        except Exception as exc:
            logger.warning("evaluation call failed | err=%s", exc)
            return EvaluationResult.neutral()

        if response.error:
            logger.warning("evaluation generation error | err=%s", response.error)
            return EvaluationResult.neutral()

        parsed = _extract_json_dict(response.text)
        if not isinstance(parsed, dict):
            logger.warning("evaluation output not parseable; using neutral result")
            return EvaluationResult.neutral()

        return _normalize_eval(parsed)
