import random

import pytest

from fakes import RESUME, ScriptedGenerator, evaluation_json

from voice_interview.interview.engine import (
    InterviewConversation,
    clean_spoken_line,
    extract_keywords,
    topic_fingerprint,
)
from voice_interview.interview.models import Phase, SessionContext


def _conversation(generator, total_questions=10, **kwargs) -> InterviewConversation:
    context = SessionContext(
        interview_type="Technical",
        resume_text=RESUME,
        job_description="Backend engineer, streaming systems.",
        total_questions=total_questions,
        language="en-US",
    )
    return InterviewConversation(context, generator, rng=random.Random(0), session_id="s-test", **kwargs)


async def _through_intro(conversation: InterviewConversation) -> None:
    await conversation.start_introduction()
    await conversation.process_user_answer("I'm doing well, thank you for having me.")
    await conversation.process_user_answer("I have six years of backend experience, mostly on data pipelines.")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Phase 2: Deep Dive\nInterviewer: Tell me about Kafka.", "Tell me about Kafka."),
        ("**Question 3:** What is idempotency?", "What is idempotency?"),
        ("1. How do you test consumers?", "How do you test consumers?"),
        ('"How are you doing today?"', "How are you doing today?"),
        ("Thanks for joining. [Phase: Closing]", "Thanks for joining."),
        ("What did you learn: anything surprising?", "What did you learn: anything surprising?"),
    ],
)
def test_clean_spoken_line(raw, expected):
    assert clean_spoken_line(raw) == expected


def test_keyword_and_topic_helpers():
    assert extract_keywords("I built the billing service with Kafka and Python", known=["kafka"]) == [
        "built",
        "billing",
        "service",
        "python",
    ]
    assert topic_fingerprint("Tell me more about your Kafka migration.") == "your Kafka migration"
    assert topic_fingerprint("Why?") == ""


@pytest.mark.asyncio
async def test_greeting_uses_model_line_and_candidate_name():
    generator = ScriptedGenerator()
    conversation = _conversation(generator)

    greeting = await conversation.start_introduction()

    assert greeting.startswith("Hello Priya!")
    assert conversation.phase is Phase.GREETING
    assert conversation.first_name == "Priya"
    assert "Priya Sharma" in generator.calls("greeting")[0].system_prompt


@pytest.mark.asyncio
async def test_greeting_falls_back_when_generation_fails():
    conversation = _conversation(ScriptedGenerator(errors={"greeting"}))

    greeting = await conversation.start_introduction()

    assert greeting == "Hello Priya! I'm your AI interviewer for today's Technical interview. How are you doing today?"


@pytest.mark.asyncio
async def test_greeting_and_intro_turns_are_conversational():
    generator = ScriptedGenerator()
    conversation = _conversation(generator)
    await conversation.start_introduction()

    first = await conversation.process_user_answer("Doing great, thanks!")
    assert first.is_conversational is True
    assert first.phase is Phase.INTRO
    assert first.evaluation.score == 0

    second = await conversation.process_user_answer("I work on streaming systems at Acme.")
    assert second.is_conversational is True
    assert second.phase is Phase.DEEP_DIVE
    assert second.question_index == 0
    assert conversation.scores == []
    assert generator.calls("evaluation") == []


@pytest.mark.asyncio
async def test_scored_answers_advance_until_closing():
    generator = ScriptedGenerator(evaluations=[evaluation_json(8), evaluation_json(6)])
    conversation = _conversation(generator, total_questions=2)
    await _through_intro(conversation)

    first = await conversation.process_user_answer("We moved billing to Kafka and cut latency in half.")
    assert first.is_conversational is False
    assert first.evaluation.score == 8
    assert first.question_index == 1
    assert first.is_complete is False

    last = await conversation.process_user_answer("I owned the consumer design and the rollout plan.")
    assert last.is_complete is True
    assert last.question_index == 2
    assert last.next_response == "Thank you for your time today, Priya. You did well overall."
    assert conversation.phase is Phase.COMPLETED
    assert conversation.average_score() == 7
    assert Phase.CLOSING in conversation.state.phase_log


@pytest.mark.asyncio
async def test_two_strong_answers_walk_every_phase_to_a_selected_close():
    generator = ScriptedGenerator(evaluations=[evaluation_json(8)])
    conversation = _conversation(generator, total_questions=2)
    await _through_intro(conversation)

    await conversation.process_user_answer("I split the billing consumers by tenant to remove hot partitions.")
    await conversation.process_user_answer("I wrote the replay tooling and ran the cutover myself.")

    assert conversation.state.phase_log == [
        Phase.GREETING,
        Phase.INTRO,
        Phase.DEEP_DIVE,
        Phase.DEEP_DIVE,
        Phase.CLOSING,
        Phase.COMPLETED,
    ]
    assert conversation.scores == [8, 8]
    assert conversation.average_score() >= 7
    closing = generator.calls("closing")
    assert len(closing) == 1
    assert "scored 8/10 on average" in closing[0].system_prompt
    assert "Q1: 8/10, Q2: 8/10" in closing[0].system_prompt


@pytest.mark.asyncio
async def test_unparseable_evaluation_scores_neutral_and_moves_on():
    generator = ScriptedGenerator(evaluations=["Score: pretty good I guess"])
    conversation = _conversation(generator, total_questions=3)
    await _through_intro(conversation)

    result = await conversation.process_user_answer("I led the migration of billing onto Kafka.")

    assert result.evaluation.score == 7
    assert result.evaluation.should_follow_up is False
    assert result.phase is Phase.DEEP_DIVE
    assert result.next_response == "Tell me about the billing pipeline you built on Kafka."
    assert generator.calls("cross_exam") == []

@pytest.mark.asyncio
async def test_answers_after_completion_return_terminal_result():
    generator = ScriptedGenerator()
    conversation = _conversation(generator, total_questions=1)
    await _through_intro(conversation)
    final = await conversation.process_user_answer("A complete answer about the billing system.")
    evaluations = len(generator.calls("evaluation"))

    again = await conversation.process_user_answer("One more thing I forgot to mention.")

    assert again is final
    assert again.question_index == 1
    assert len(generator.calls("evaluation")) == evaluations


@pytest.mark.asyncio
async def test_closing_fallback_reports_verdict():
    generator = ScriptedGenerator(evaluations=[evaluation_json(4)], errors={"closing"})
    conversation = _conversation(generator, total_questions=1)
    await _through_intro(conversation)

    result = await conversation.process_user_answer("I am not sure, I did some things there.")

    assert result.next_response.startswith("Thank you for completing the interview! Your overall score is 4/10.")
    assert "not selected" in result.next_response


@pytest.mark.asyncio
async def test_consecutive_probes_are_capped():
    generator = ScriptedGenerator(evaluations=[evaluation_json(5, follow_up=True, reason="vague")])
    conversation = _conversation(generator, total_questions=10)
    await _through_intro(conversation)

    phases = []
    for i in range(4):
        result = await conversation.process_user_answer(f"Vague answer number {i} about some project work.")
        phases.append(result.phase)

    assert phases == [Phase.CROSS_EXAM, Phase.CROSS_EXAM, Phase.DEEP_DIVE, Phase.CROSS_EXAM]


@pytest.mark.asyncio
async def test_deep_dive_prompt_tracks_history_and_progress():
    generator = ScriptedGenerator()
    conversation = _conversation(generator, total_questions=5)
    await _through_intro(conversation)
    await conversation.process_user_answer("I scaled consumers horizontally and tuned partitions.")

    prompt = generator.calls("deep_dive")[-1].system_prompt
    assert "2" in prompt
    assert conversation.state.topics_explored
    assert "scaled" in conversation.state.keywords


@pytest.mark.asyncio
async def test_question_index_never_exceeds_total():
    conversation = _conversation(ScriptedGenerator(), total_questions=2)
    await _through_intro(conversation)

    indexes = []
    for _ in range(4):
        indexes.append((await conversation.process_user_answer("A reasonably detailed answer.")).question_index)

    assert max(indexes) == 2


def _difficulty_line(prompt: str) -> str:
    return next(line for line in prompt.splitlines() if line.startswith("ADAPT DIFFICULTY:"))


@pytest.mark.asyncio
async def test_first_deep_dive_question_keeps_moderate_difficulty():
    generator = ScriptedGenerator(evaluations=[evaluation_json(3)])
    conversation = _conversation(generator, total_questions=5)
    await _through_intro(conversation)

    first = _difficulty_line(generator.calls("deep_dive")[0].system_prompt)
    assert first == "ADAPT DIFFICULTY: Maintain moderate difficulty."

    await conversation.process_user_answer("I am not really sure how that system worked.")

    after_low_score = _difficulty_line(generator.calls("deep_dive")[-1].system_prompt)
    assert "easier" in after_low_score
