import pytest

from fakes import ScriptedGenerator, evaluation_json

from voice_interview.ai_reasoning.llm import GenerateResponse
from voice_interview.interview.evaluator import (
    AnswerEvaluator,
    EvaluateRequest,
    _clamp_score,
    _extract_json_dict,
    build_evaluation_prompt,
)


def _request() -> EvaluateRequest:
    return EvaluateRequest(
        question="Tell me about the billing pipeline.",
        answer="I designed the consumer groups and cut p99 latency by half.",
        interview_type="Technical",
        resume_text="R" * 1500,
        job_description="J" * 1200,
    )


@pytest.mark.parametrize(
    "value, expected",
    [(8, 8), ("9", 9), (14, 10), (0, 1), (-3, 1), (6.6, 7), (True, 7), (None, 7), ("great", 7)],
)
def test_clamp_score(value, expected):
    assert _clamp_score(value) == expected


def test_extract_json_from_fenced_and_noisy_text():
    assert _extract_json_dict('```json\n{"score": 6}\n```') == {"score": 6}
    assert _extract_json_dict('Sure! {"score": 5, "feedback": "ok"} hope this helps') == {"score": 5, "feedback": "ok"}
    assert _extract_json_dict("[1, 2]") is None
    assert _extract_json_dict("no json here") is None


def test_prompt_truncates_context_excerpts():
    prompt = build_evaluation_prompt(_request())
    assert "R" * 1000 in prompt and "R" * 1001 not in prompt
    assert "J" * 800 in prompt and "J" * 801 not in prompt
    assert "Technical interview" in prompt


@pytest.mark.asyncio
async def test_evaluate_parses_model_output():
    generator = ScriptedGenerator(evaluations=[evaluation_json(9, "Specific and measurable.", True, "Clarify ownership")])
    result = await AnswerEvaluator(generator).evaluate(_request())

    assert result.score == 9
    assert result.feedback == "Specific and measurable."
    assert result.should_follow_up is True
    assert result.follow_up_reason == "Clarify ownership"

    sent = generator.calls("evaluation")[0]
    assert sent.temperature == 0.3
    assert sent.max_tokens == 250
    assert "Candidate's Answer:" in sent.user_prompt


@pytest.mark.asyncio
async def test_evaluate_normalizes_loose_fields():
    raw = '{"score": 42, "feedback": "   ", "shouldFollowUp": "yes"}'
    result = await AnswerEvaluator(ScriptedGenerator(evaluations=[raw])).evaluate(_request())

    assert result.score == 10
    assert result.feedback == "Good response."
    assert result.should_follow_up is False
    assert result.follow_up_reason is None


@pytest.mark.asyncio
async def test_evaluate_unparseable_output_is_neutral():
    result = await AnswerEvaluator(ScriptedGenerator(evaluations=["I think it was fine."])).evaluate(_request())
    assert (result.score, result.feedback, result.should_follow_up) == (7, "Good response.", False)


@pytest.mark.asyncio
async def test_evaluate_generation_error_is_neutral():
    result = await AnswerEvaluator(ScriptedGenerator(errors={"evaluation"})).evaluate(_request())
    assert result.score == 7
    assert result.should_follow_up is False


@pytest.mark.asyncio
async def test_evaluate_raising_generator_is_neutral():
    class _Boom:
        async def generate(self, request):
            raise RuntimeError("transport down")

    result = await AnswerEvaluator(_Boom()).evaluate(_request())
    assert result.score == 7


@pytest.mark.asyncio
async def test_evaluate_empty_text_is_neutral():
    class _Empty:
        async def generate(self, request):
            return GenerateResponse(text="")

    result = await AnswerEvaluator(_Empty()).evaluate(_request())
    assert result.feedback == "Good response."
