from enum import Enum


class SessionStatus(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class VoiceSessionState(str, Enum):
    CONNECTING = "connecting"
    AI_SPEAKING = "ai_speaking"
    LISTENING = "listening"
    PROCESSING = "processing"
    CLOSED = "closed"
