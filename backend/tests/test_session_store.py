import pytest

from voice_core.state import SessionStatus
from voice_interview.interview.models import CANDIDATE, INTERVIEWER
from voice_interview.interview.session import InMemorySessionStore, InterviewMessage


def test_create_and_get_returns_copies():
    store = InMemorySessionStore()
    record = store.create_session(interview_type="", language="hi", total_questions=0, session_id="s-1")

    assert record.id == "s-1"
    assert record.interview_type == "General"
    assert record.total_questions >= 1
    assert record.status is SessionStatus.WAITING

    record.current_question = 9
    assert store.get_session("s-1").current_question == 0
    assert store.get_session("missing") is None


def test_update_session_only_allows_progress_fields():
    store = InMemorySessionStore()
    store.create_session(session_id="s-1")

    updated = store.update_session("s-1", current_question=2, total_score=8, status=SessionStatus.COMPLETED)
    assert (updated.current_question, updated.total_score, updated.status) == (2, 8, SessionStatus.COMPLETED)
    assert store.update_session("missing", current_question=1) is None

    with pytest.raises(ValueError):
        store.update_session("s-1", resume_text="rewritten")


def test_messages_are_kept_in_order():
    store = InMemorySessionStore()
    store.append_message(InterviewMessage("s-1", INTERVIEWER, "Hello!"))
    store.append_message(InterviewMessage("s-1", CANDIDATE, "Hi, doing well."))
    store.append_message(InterviewMessage("s-1", INTERVIEWER, "Good detail.", question_index=1, score=8, feedback="Good detail."))

    messages = store.list_messages("s-1")
    assert [m.role for m in messages] == [INTERVIEWER, CANDIDATE, INTERVIEWER]
    assert messages[-1].score == 8
    assert store.list_messages("other") == []


@pytest.mark.asyncio
async def test_async_variants_and_copilot_context():
    store = InMemorySessionStore()
    store.create_session(session_id="s-1")
    context = store.create_copilot_context(resume_text="Resume", job_description="JD", interview_id="i-1")

    assert (await store.get_session_async("s-1")).id == "s-1"
    assert (await store.update_session_async("s-1", status=SessionStatus.IN_PROGRESS)).status is SessionStatus.IN_PROGRESS
    await store.append_message_async(InterviewMessage("s-1", CANDIDATE, "answer"))
    assert len(store.list_messages("s-1")) == 1
    assert await store.get_copilot_context_async("i-1") == context
    assert await store.get_copilot_context_async("") is None
