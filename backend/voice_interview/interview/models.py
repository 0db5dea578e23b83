from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from voice_interview.interview.scorer import average_score


class Phase(str, Enum):
    GREETING = "greeting"
    INTRO = "intro"
    DEEP_DIVE = "deep_dive"
    CROSS_EXAM = "cross_exam"
    CLOSING = "closing"
    COMPLETED = "completed"


INTERVIEWER = "interviewer"
CANDIDATE = "candidate"


@dataclass(frozen=True)
class Utterance:
    role: str
    text: str
    score: Optional[int] = None
    feedback: Optional[str] = None

    def to_message(self) -> dict:
        return {
            "role": "assistant" if self.role == INTERVIEWER else "user",
            "content": self.text,
        }


@dataclass
class EvaluationResult:
    score: int
    feedback: str
    should_follow_up: bool = False
    follow_up_reason: Optional[str] = None

    @classmethod
    def neutral(cls) -> "EvaluationResult":
        return cls(score=7, feedback="Good response.", should_follow_up=False)

    @classmethod
    def not_scored(cls) -> "EvaluationResult":
        return cls(score=0, feedback="", should_follow_up=False)


@dataclass
class SessionContext:
    interview_type: str = "General"
    resume_text: str = ""
    job_description: str = ""
    total_questions: int = 10
    language: str = "en-US"
    candidate_name: str = ""


@dataclass
class TurnResult:
    evaluation: EvaluationResult
    next_response: str
    is_complete: bool
    question_index: int
    is_conversational: bool
    phase: Phase


@dataclass
class ConversationState:
    phase: Phase = Phase.GREETING
    history: list[Utterance] = field(default_factory=list)
    scores: list[int] = field(default_factory=list)
    question_index: int = 0
    current_question: str = ""
    consecutive_probes: int = 0
    topics_explored: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    candidate_name: str = ""
    phase_log: list[Phase] = field(default_factory=list)

    def enter(self, phase: Phase) -> None:
        self.phase = phase
        self.phase_log.append(phase)

    def average_score(self) -> int:
        return average_score(self.scores)
