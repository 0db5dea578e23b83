class VoiceInterviewError(Exception):
    """Base class for conditions surfaced to the client."""

    client_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.client_message)
        self.client_message = message or self.client_message


class SessionNotFoundError(VoiceInterviewError):
    client_message = "Session not found"


class ConfigurationError(VoiceInterviewError):
    client_message = "Service is not configured"
