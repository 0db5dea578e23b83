import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger("voice_interview.events")

REDACTED_FIELDS = frozenset({"text", "transcript", "answer", "prompt", "hint", "question"})


def redact(value: Any) -> dict:
	return {"redacted": True, "length": len(str(value or ""))}


def _clean(key: str, value: Any) -> Any:
	if key.lower() in REDACTED_FIELDS:
		return redact(value)
	if value is None or isinstance(value, (str, int, float, bool)):
		return value
	if isinstance(value, Mapping):
		return {str(k): _clean(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set, frozenset)):
		return [_clean(key, item) for item in value]
	return str(value)


def event_payload(component: str, event: str, session_id: str, **fields) -> dict:
	"""One structured record; candidate speech and prompts are reduced to their length."""
	payload = {
		"component": component or "voice_interview",
		"event": event or "unknown",
		"session_id": session_id or "",
	}
	for key, value in fields.items():
		payload[key] = _clean(key, value)
	return payload


def log_event(component: str, event: str, session_id: str, **fields) -> None:
	logger.info(json.dumps(event_payload(component, event, session_id, **fields), ensure_ascii=False, default=str))
