from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    active_interviews: int = 0
    active_copilots: int = 0
