from voice_interview.realtime_assist.engine import LiveHintPipeline
from voice_interview.realtime_assist.models import HintConfig, LiveHint

__all__ = ["HintConfig", "LiveHint", "LiveHintPipeline"]
