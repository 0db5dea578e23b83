from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

logger = logging.getLogger("voice_interview.interview.rotation")

T = TypeVar("T")


@dataclass(frozen=True)
class QuestionPattern:
    name: str
    instruction: str


QUESTION_PATTERNS: tuple[QuestionPattern, ...] = (
    QuestionPattern(
        name="Scenario-Based",
        instruction=(
            'Ask a HYPOTHETICAL SCENARIO question: "Imagine you are [specific situation relevant to their role]. '
            'How would you handle it?" or "Suppose [challenging work scenario]. Walk me through your approach step by step."'
        ),
    ),
    QuestionPattern(
        name="STAR Behavioral",
        instruction=(
            'Ask a STAR-method behavioral question: "Tell me about a specific time when you [faced a challenge/achieved '
            'something/dealt with conflict]. What was the situation, what did you do, and what was the outcome?"'
        ),
    ),
    QuestionPattern(
        name="Problem-Solving",
        instruction=(
            'Ask a PROBLEM-SOLVING question: "How would you debug/fix/solve [specific technical or work problem]?" or '
            '"If you encountered [specific issue in their domain], what steps would you take to resolve it?"'
        ),
    ),
    QuestionPattern(
        name="Opinion & Strategy",
        instruction=(
            'Ask an OPINION or STRATEGY question: "What\'s your approach to [specific practice in their field]?" or '
            '"How do you decide between [two approaches/tools/strategies]? What factors do you consider?"'
        ),
    ),
    QuestionPattern(
        name="Deep Technical",
        instruction=(
            'Ask a DEEP TECHNICAL question: "Can you explain how [specific technology/concept from their resume] works '
            'under the hood?" or "What are the tradeoffs between [two technical approaches] and when would you choose one '
            'over the other?"'
        ),
    ),
    QuestionPattern(
        name="Past Achievement",
        instruction=(
            'Ask about a PAST ACHIEVEMENT: "What\'s the project or accomplishment you\'re most proud of in your career? '
            'Walk me through the challenges you faced and how you overcame them."'
        ),
    ),
    QuestionPattern(
        name="Failure & Learning",
        instruction=(
            'Ask about FAILURE and LEARNING: "Tell me about a time when something didn\'t go as planned at work. What '
            'happened, what did you learn, and how did it change your approach going forward?"'
        ),
    ),
    QuestionPattern(
        name="Leadership & Collaboration",
        instruction=(
            'Ask about LEADERSHIP or COLLABORATION: "Describe a situation where you had to lead a team, mentor someone, '
            'or collaborate across departments. How did you ensure alignment and deliver results?"'
        ),
    ),
    QuestionPattern(
        name="Real-World Application",
        instruction=(
            'Ask a REAL-WORLD APPLICATION question: "If I gave you [specific task/project relevant to their skills] '
            'right now, how would you plan and execute it? What would be your first steps?"'
        ),
    ),
    QuestionPattern(
        name="Compare & Contrast",
        instruction=(
            'Ask a COMPARE & CONTRAST question: "You mentioned experience with [skill/tool A]. How does it compare to '
            '[alternative B]? When would you recommend one over the other and why?"'
        ),
    ),
)


class RotationPool(Generic[T]):
    """
    Hands out items without repeats until every item has been used once,
    then starts a fresh cycle over the whole pool.
    """

    def __init__(self, items: Sequence[T], rng: random.Random | None = None, name: str = "pool"):
        self.items: list[T] = list(items)
        self.rng = rng or random.Random()
        self.name = name
        self.used: list[T] = []
        self.cycles = 0

    def __len__(self) -> int:
        return len(self.items)

    def available(self) -> list[T]:
        return [item for item in self.items if item not in self.used]

    def next(self) -> Optional[T]:
        if not self.items:
            return None

        pool = self.available()
        if not pool:
            self.used = []
            self.cycles += 1
            pool = list(self.items)
            logger.info("%s exhausted after %s items; recycling", self.name, len(self.items))

        pick = pool[self.rng.randrange(len(pool))]
        self.used.append(pick)
        return pick

    def previously_used(self) -> list[T]:
        return list(self.used[:-1])


class TopicRotation:
    """Two independent rotations: question archetypes and resume talking points."""

    def __init__(self, talking_points: Sequence[str], rng: random.Random | None = None):
        rng = rng or random.Random()
        self.patterns: RotationPool[QuestionPattern] = RotationPool(QUESTION_PATTERNS, rng=rng, name="patterns")
        self.talking_points: RotationPool[str] = RotationPool(talking_points, rng=rng, name="talking_points")

    def next_pattern(self) -> QuestionPattern:
        return self.patterns.next()

    def next_talking_point(self) -> str:
        return self.talking_points.next() or ""

    def already_asked(self) -> list[str]:
        return self.talking_points.previously_used()
