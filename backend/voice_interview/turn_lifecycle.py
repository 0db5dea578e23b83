from enum import Enum
import time
import uuid
import logging

logger = logging.getLogger("turn")


class TurnState(Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class TurnGate:
    """
    Single-turn-in-flight guard.

    ``try_begin`` checks and claims the gate without awaiting, so two
    ``end_turn`` triggers handled in the same loop can never both pass.
    """

    def __init__(self):
        self.turn_id: str | None = None
        self.state = TurnState.IDLE
        self.started_at: float | None = None
        self.completed_turns = 0

    @property
    def busy(self) -> bool:
        return self.state is TurnState.PROCESSING

    def try_begin(self, reason: str) -> bool:
        if self.state is TurnState.PROCESSING:
            logger.info(f"[TURN {self.turn_id}] Begin skipped (turn in flight) | reason={reason}")
            return False

        self.turn_id = str(uuid.uuid4())
        self.state = TurnState.PROCESSING
        self.started_at = time.monotonic()
        logger.info(f"[TURN {self.turn_id}] Transition IDLE → PROCESSING | reason={reason}")
        return True

    def finish(self) -> None:
        if self.state is not TurnState.PROCESSING:
            return
        latency = time.monotonic() - (self.started_at or time.monotonic())
        self.state = TurnState.IDLE
        self.completed_turns += 1
        logger.info(f"[TURN {self.turn_id}] FINISHED | latency={latency:.2f}s")
