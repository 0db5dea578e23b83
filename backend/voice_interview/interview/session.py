import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from threading import Lock
from typing import Optional

from voice_core.config import DEFAULT_TOTAL_QUESTIONS
from voice_core.state import SessionStatus

logger = logging.getLogger("voice_interview.interview.session")

_UPDATABLE_FIELDS = {"current_question", "total_score", "status"}


@dataclass
class InterviewSessionRecord:
    id: str
    interview_type: str = "General"
    language: str = "en-US"
    resume_text: str = ""
    job_description: str = ""
    total_questions: int = DEFAULT_TOTAL_QUESTIONS
    current_question: int = 0
    total_score: Optional[int] = None
    status: SessionStatus = SessionStatus.WAITING
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class InterviewMessage:
    session_id: str
    role: str
    content: str
    question_index: int = 0
    score: Optional[int] = None
    feedback: Optional[str] = None
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class CopilotContext:
    interview_id: str
    resume_text: str = ""
    job_description: str = ""


class InMemorySessionStore:
    """
    Process-local persistence for interview sessions, their message log and
    copilot contexts. Sync methods are lock-guarded; the ``*_async`` variants
    hop to a worker thread so a slower backing store can be swapped in.
    """

    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, InterviewSessionRecord] = {}
        self._messages: dict[str, list[InterviewMessage]] = {}
        self._copilot: dict[str, CopilotContext] = {}

    def create_session(
        self,
        interview_type: str = "General",
        language: str = "en-US",
        resume_text: str = "",
        job_description: str = "",
        total_questions: int = DEFAULT_TOTAL_QUESTIONS,
        session_id: str | None = None,
    ) -> InterviewSessionRecord:
        record = InterviewSessionRecord(
            id=session_id or str(uuid.uuid4()),
            interview_type=interview_type or "General",
            language=language or "en-US",
            resume_text=resume_text or "",
            job_description=job_description or "",
            total_questions=max(1, int(total_questions or DEFAULT_TOTAL_QUESTIONS)),
        )
        with self._lock:
            self._sessions[record.id] = record
            self._messages.setdefault(record.id, [])
        logger.info("Session created | id=%s type=%s", record.id, record.interview_type)
        return replace(record)

    def get_session(self, session_id: str) -> Optional[InterviewSessionRecord]:
        with self._lock:
            record = self._sessions.get(str(session_id or ""))
            return replace(record) if record else None

    def update_session(self, session_id: str, **updates) -> Optional[InterviewSessionRecord]:
        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"unknown session fields: {sorted(unknown)}")
        with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return None
            record = replace(record, **updates)
            self._sessions[session_id] = record
            return replace(record)

    def append_message(self, message: InterviewMessage) -> None:
        with self._lock:
            self._messages.setdefault(message.session_id, []).append(message)

    def list_messages(self, session_id: str) -> list[InterviewMessage]:
        with self._lock:
            return list(self._messages.get(session_id, []))

    def create_copilot_context(self, resume_text: str = "", job_description: str = "", interview_id: str | None = None) -> CopilotContext:
        context = CopilotContext(
            interview_id=interview_id or str(uuid.uuid4()),
            resume_text=resume_text or "",
            job_description=job_description or "",
        )
        with self._lock:
            self._copilot[context.interview_id] = context
        return context

    def get_copilot_context(self, interview_id: str) -> Optional[CopilotContext]:
        with self._lock:
            return self._copilot.get(str(interview_id or ""))

    async def get_session_async(self, session_id: str) -> Optional[InterviewSessionRecord]:
        return await asyncio.to_thread(self.get_session, session_id)

    async def update_session_async(self, session_id: str, **updates) -> Optional[InterviewSessionRecord]:
        return await asyncio.to_thread(lambda: self.update_session(session_id, **updates))

    async def append_message_async(self, message: InterviewMessage) -> None:
        await asyncio.to_thread(self.append_message, message)

    async def get_copilot_context_async(self, interview_id: str) -> Optional[CopilotContext]:
        return await asyncio.to_thread(self.get_copilot_context, interview_id)
