import asyncio
import random

import pytest

from fakes import RESUME, FakeSynthesizer, ScriptedGenerator, evaluation_json

from voice_core.state import SessionStatus, VoiceSessionState
from voice_interview.interview.engine import InterviewConversation
from voice_interview.interview.models import CANDIDATE, Phase, SessionContext
from voice_interview.interview.session import InMemorySessionStore
from voice_interview.services import deepgram_service
from voice_interview.services.deepgram_service import TranscriptEvent, TranscriptionService
from voice_interview.session.orchestrator import InterviewTurnOrchestrator
from voice_interview.session_controller import SessionController

WINDOW_WAIT_SEC = 0.05


def _build(outbox, profile, total_questions=3, generator=None, synthesizer=None, **kwargs):
    store = InMemorySessionStore()
    record = store.create_session(
        interview_type="Technical",
        resume_text=RESUME,
        job_description="Backend engineer",
        total_questions=total_questions,
    )
    conversation = InterviewConversation(
        SessionContext(
            interview_type=record.interview_type,
            resume_text=record.resume_text,
            job_description=record.job_description,
            total_questions=record.total_questions,
        ),
        generator or ScriptedGenerator(),
        rng=random.Random(1),
        session_id=record.id,
    )
    orchestrator = InterviewTurnOrchestrator(
        session_id=record.id,
        record=record,
        conversation=conversation,
        synthesizer=synthesizer or FakeSynthesizer(),
        store=store,
        send_fn=outbox.send,
        profile=profile,
        controller=SessionController(record.id),
        speaking_tail_sec=0.0,
        **kwargs,
    )
    return orchestrator, store


async def _answer(orchestrator, text):
    await asyncio.sleep(WINDOW_WAIT_SEC)
    assert await orchestrator.on_transcript(text, True) is True
    return await orchestrator.handle_end_turn()


@pytest.mark.asyncio
async def test_start_greets_and_speaks(outbox, profile):
    orchestrator, store = _build(outbox, profile)

    greeting = await orchestrator.start()
    await asyncio.sleep(WINDOW_WAIT_SEC)

    question = outbox.of_type("ai_question")[0]
    assert question == {
        "type": "ai_question",
        "text": greeting,
        "questionIndex": 0,
        "totalQuestions": 3,
        "isComplete": False,
    }
    assert outbox.types()[:3] == ["ai_question", "tts_audio", "ai_speaking_done"]
    assert outbox.of_type("ai_speaking_done")[0]["playDurationMs"] == 2
    assert store.get_session(orchestrator.session_id).status is SessionStatus.IN_PROGRESS
    assert store.list_messages(orchestrator.session_id)[0].content == greeting
    assert orchestrator.state is VoiceSessionState.LISTENING
    await orchestrator.close()


@pytest.mark.asyncio
async def test_transcripts_while_ai_speaks_are_dropped(outbox, profile):
    orchestrator, _ = _build(outbox, profile)
    await orchestrator.start()

    assert orchestrator.ai_speaking is True
    assert await orchestrator.on_transcript("How are you doing today", True) is False
    assert orchestrator.transcript_buffer == []
    assert outbox.of_type("transcript") == []

    await asyncio.sleep(WINDOW_WAIT_SEC)
    assert orchestrator.ai_speaking is False
    assert await orchestrator.on_transcript("I am doing", False) is True
    assert await orchestrator.on_transcript("I am doing well", True) is True
    assert orchestrator.current_answer() == "I am doing well"
    assert outbox.of_type("transcript")[-1] == {"type": "transcript", "text": "I am doing well", "isFinal": True}
    await orchestrator.close()


@pytest.mark.asyncio
async def test_duplicate_end_turn_runs_one_cycle(outbox, profile):
    generator = ScriptedGenerator()
    orchestrator, store = _build(outbox, profile, generator=generator)
    await orchestrator.start()
    await asyncio.sleep(WINDOW_WAIT_SEC)
    await orchestrator.on_transcript("I'm doing well, thanks for asking.", True)

    results = await asyncio.gather(orchestrator.handle_end_turn(), orchestrator.handle_end_turn())

    assert results == [True, False]
    assert len(outbox.of_type("processing")) == 1
    assert len(generator.calls("intro")) == 1
    assert orchestrator.conversation.phase is Phase.INTRO
    assert orchestrator.turn_gate.busy is False
    candidate = [m for m in store.list_messages(orchestrator.session_id) if m.role == CANDIDATE]
    assert [m.content for m in candidate] == ["I'm doing well, thanks for asking."]
    await orchestrator.close()


@pytest.mark.asyncio
async def test_short_answer_is_skipped(outbox, profile):
    orchestrator, _ = _build(outbox, profile)
    await orchestrator.start()

    assert await _answer(orchestrator, "ok") is True

    assert outbox.of_type("processing") == []
    assert orchestrator.conversation.phase is Phase.GREETING
    assert orchestrator.transcript_buffer == []
    await orchestrator.close()


@pytest.mark.asyncio
async def test_full_interview_reports_completion(outbox, profile):
    generator = ScriptedGenerator(evaluations=[evaluation_json(9, "Strong, concrete answer.")])
    orchestrator, store = _build(outbox, profile, total_questions=1, generator=generator)
    await orchestrator.start()

    await _answer(orchestrator, "Doing great, thanks for having me.")
    await _answer(orchestrator, "I have spent six years building data platforms.")
    await _answer(orchestrator, "I designed the Kafka consumers and halved p99 latency.")

    assert outbox.of_type("evaluation") == [
        {"type": "evaluation", "score": 9, "feedback": "Strong, concrete answer.", "questionIndex": 1}
    ]
    final_question = outbox.of_type("ai_question")[-1]
    assert final_question["isComplete"] is True
    assert final_question["questionIndex"] == 1
    assert outbox.of_type("interview_complete") == [
        {"type": "interview_complete", "totalScore": 9, "totalQuestions": 1}
    ]
    record = store.get_session(orchestrator.session_id)
    assert record.status is SessionStatus.COMPLETED
    assert record.total_score == 9
    assert record.current_question == 1

    await orchestrator._speech_task
    sent_before = len(outbox.messages)
    await _answer(orchestrator, "Can I add one more detail about that?")
    assert [m for m in outbox.messages[sent_before:] if m["type"] != "transcript"] == []
    await orchestrator.close()


@pytest.mark.asyncio
async def test_unparseable_evaluation_is_reported_as_neutral(outbox, profile):
    generator = ScriptedGenerator(evaluations=["I would give this maybe a seven"])
    orchestrator, _ = _build(outbox, profile, generator=generator)
    await orchestrator.start()

    await _answer(orchestrator, "Doing great, thanks for having me.")
    await _answer(orchestrator, "I have spent six years building data platforms.")
    await _answer(orchestrator, "I designed the Kafka consumers and halved p99 latency.")

    assert outbox.of_type("evaluation") == [
        {"type": "evaluation", "score": 7, "feedback": "Good response.", "questionIndex": 1}
    ]
    next_question = outbox.of_type("ai_question")[-1]
    assert next_question["text"]
    assert next_question["isComplete"] is False
    assert orchestrator.conversation.phase is Phase.DEEP_DIVE
    await orchestrator.close()


@pytest.mark.asyncio
async def test_conversational_turns_send_no_evaluation(outbox, profile):
    orchestrator, _ = _build(outbox, profile)
    await orchestrator.start()

    await _answer(orchestrator, "Doing great, thanks for having me.")

    assert outbox.of_type("evaluation") == []
    assert outbox.of_type("ai_question")[-1]["questionIndex"] == 0
    await orchestrator.close()


@pytest.mark.asyncio
async def test_tts_failure_sends_client_fallback(outbox, profile):
    orchestrator, _ = _build(outbox, profile, synthesizer=FakeSynthesizer(fail=True), fallback_window_sec=0.01)

    greeting = await orchestrator.start()
    await asyncio.sleep(WINDOW_WAIT_SEC)

    assert outbox.of_type("tts_fallback") == [{"type": "tts_fallback", "text": greeting, "language": "en-US"}]
    assert outbox.of_type("ai_speaking_done") == [{"type": "ai_speaking_done", "playDurationMs": 10}]
    assert orchestrator.ai_speaking is False
    await orchestrator.close()


@pytest.mark.asyncio
async def test_unconfigured_transcription_reports_error(outbox, profile):
    orchestrator, _ = _build(outbox, profile, transcription=TranscriptionService(api_key=""))

    await orchestrator.start()

    assert outbox.messages[0] == {"type": "error", "message": "Deepgram API key not configured."}
    assert outbox.of_type("ai_question")
    await orchestrator.close()


@pytest.mark.asyncio
async def test_transcription_status_events(outbox, profile):
    orchestrator, _ = _build(outbox, profile)

    await orchestrator.on_transcription_event(TranscriptEvent(deepgram_service.OPEN))
    await orchestrator.on_transcription_event(TranscriptEvent(deepgram_service.ERROR, error="socket reset"))
    await orchestrator.on_transcription_event(TranscriptEvent(deepgram_service.CLOSE))

    assert outbox.messages == [
        {"type": "deepgram_status", "status": "connected"},
        {"type": "deepgram_status", "status": "disconnected"},
    ]


@pytest.mark.asyncio
async def test_close_cancels_speaking_window(outbox, profile):
    orchestrator, _ = _build(outbox, profile)
    await orchestrator.start()

    await orchestrator.close()
    await orchestrator.close()

    assert orchestrator.state is VoiceSessionState.CLOSED
    assert orchestrator._speaking_handle is None


@pytest.mark.asyncio
async def test_no_speech_starts_after_close(outbox, profile):
    synthesizer = FakeSynthesizer()
    orchestrator, _ = _build(outbox, profile, synthesizer=synthesizer)
    await orchestrator.close()

    assert orchestrator.start_speaking("One more question before you go?") is None
    await asyncio.sleep(WINDOW_WAIT_SEC)

    assert synthesizer.spoken == []
    assert outbox.of_type("tts_audio") == []
    assert orchestrator.ai_speaking is False
