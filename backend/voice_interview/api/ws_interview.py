from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

from voice_core.logger import log_event
from voice_interview.api import dependencies
from voice_interview.api.ws_components import SafeSender, parse_control_frame
from voice_interview.errors import ConfigurationError, SessionNotFoundError
from voice_interview.interview.engine import InterviewConversation
from voice_interview.interview.models import SessionContext
from voice_interview.session.orchestrator import InterviewTurnOrchestrator
from voice_interview.session.registry import session_registry
from voice_interview.session_controller import SessionController

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("ws_interview")

router = APIRouter()


async def _reject(websocket: WebSocket, sender: SafeSender, message: str) -> None:
    await sender.send({"type": "error", "message": message})
    try:
        await websocket.close()
    except RuntimeError:
        pass


@router.websocket("/ws/video-interview")
async def video_interview_ws(websocket: WebSocket):
    session_id = str(websocket.query_params.get("sessionId") or "").strip()
    candidate_name = str(websocket.query_params.get("candidateName") or "").strip()
    provider = dependencies.dependency_provider

    await websocket.accept()
    sender = SafeSender(websocket=websocket, component="ws_interview", session_id=session_id)

    def _log_event(event: str, **fields):
        log_event("ws_interview", event, session_id, **fields)

    _log_event("connect")

    if not session_id:
        await _reject(websocket, sender, "No sessionId provided")
        return

    try:
        store = provider.get_store()
        record = await store.get_session_async(session_id)
        if record is None:
            raise SessionNotFoundError()
        generator = provider.create_generator()
        synthesizer = provider.create_synthesizer()
    except (SessionNotFoundError, ConfigurationError) as exc:
        logger.warning("video interview rejected | session_id=%s reason=%s", session_id, exc.client_message)
        await _reject(websocket, sender, exc.client_message)
        return

    # ================= LIFECYCLE OWNER =================
    controller = SessionController(session_id)
    profile = provider.select_profile(record.language)
    conversation = InterviewConversation(
        SessionContext(
            interview_type=record.interview_type,
            resume_text=record.resume_text,
            job_description=record.job_description,
            total_questions=record.total_questions,
            language=record.language,
            candidate_name=candidate_name,
        ),
        generator,
        rng=provider.create_rng(),
        session_id=session_id,
    )
    orchestrator = InterviewTurnOrchestrator(
        session_id=session_id,
        record=record,
        conversation=conversation,
        synthesizer=synthesizer,
        store=store,
        send_fn=sender.send,
        profile=profile,
        controller=controller,
        transcription=provider.create_transcription(record.language),
    )
    session_registry.register(session_id, orchestrator, controller, kind="interview")

    await sender.send({"type": "avatar_config", "faceId": profile.face_id, "gender": profile.gender})

    # ================= INBOUND =================
    async def receive_loop():
        try:
            while not controller.stop_event.is_set():
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    _log_event("disconnect", reason="client_disconnect")
                    controller.request_stop("client disconnect")
                    break

                control = parse_control_frame(message)
                if control is not None:
                    message_type = str(control.get("type") or "").strip().lower()
                    _log_event("message_received", message_type=message_type or "unknown")
                    if message_type == "end_turn":
                        controller.create_task(orchestrator.handle_end_turn())
                    continue

                audio = message.get("bytes")
                if audio:
                    orchestrator.send_audio(audio)
                    session_registry.touch(session_id)
        except WebSocketDisconnect:
            controller.request_stop("client disconnect")
        except Exception as exc:
            logger.warning("receive loop error | session_id=%s err=%s", session_id, exc)
            controller.request_stop("receive_error")

    controller.create_task(receive_loop())

    try:
        try:
            await orchestrator.start()
        except Exception as exc:
            logger.warning("interview start failed | session_id=%s err=%s", session_id, exc)
            controller.request_stop("start_failed")
        await controller.stop_event.wait()
    finally:
        await orchestrator.close()
        await controller.stop()
        session_registry.mark_inactive(session_id)
        _log_event("session_stopped")
