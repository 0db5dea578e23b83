from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging
import uuid

from voice_core.logger import log_event
from voice_interview.api import dependencies
from voice_interview.api.ws_components import SafeSender
from voice_interview.errors import ConfigurationError
from voice_interview.realtime_assist.engine import LiveHintPipeline
from voice_interview.realtime_assist.models import HintConfig
from voice_interview.services import deepgram_service
from voice_interview.session.registry import session_registry
from voice_interview.session_controller import SessionController

logger = logging.getLogger("ws_copilot")

router = APIRouter()


@router.websocket("/ws/audio")
async def copilot_audio_ws(websocket: WebSocket):
    interview_id = str(websocket.query_params.get("interviewId") or "").strip()
    hint_config = HintConfig(
        answer_length=str(websocket.query_params.get("answerLength") or "medium").strip().lower(),
        tone=str(websocket.query_params.get("tone") or "professional").strip().lower(),
    )
    connection_id = f"copilot-{uuid.uuid4().hex[:12]}"
    provider = dependencies.dependency_provider

    await websocket.accept()
    sender = SafeSender(websocket=websocket, component="ws_copilot", session_id=connection_id)

    def _log_event(event: str, **fields):
        log_event("ws_copilot", event, connection_id, interview_id=interview_id or None, **fields)

    _log_event("connect", answer_length=hint_config.answer_length, tone=hint_config.tone)

    async def send_error(message: str) -> None:
        await sender.send({"type": "error", "message": message})

    # ================= CONTEXT =================
    resume_text = ""
    job_description = ""
    if not interview_id:
        await send_error("No interviewId provided. Hints will not be generated.")
    else:
        context = await provider.get_store().get_copilot_context_async(interview_id)
        if context is None:
            await send_error("Interview session not found.")
        else:
            resume_text = context.resume_text
            job_description = context.job_description
            if not resume_text:
                await send_error("No resume text available for this interview.")

    controller = SessionController(connection_id)

    pipeline = None
    if resume_text or job_description:
        try:
            generator = provider.create_generator()
        except ConfigurationError as exc:
            await send_error(exc.client_message)
        else:
            pipeline = LiveHintPipeline(
                resume_text,
                job_description,
                generator,
                sender.send,
                config=hint_config,
                spawn=controller.create_task,
            )

    session_registry.register(connection_id, pipeline, controller, kind="copilot")

    # ================= TRANSCRIPTION =================
    transcription = provider.create_transcription("en-US")

    async def pump_transcripts():
        async for event in transcription.events():
            if event.kind == deepgram_service.TRANSCRIPT:
                await sender.send({"type": "transcript", "text": event.text, "isFinal": event.is_final})
                if pipeline is not None:
                    pipeline.on_transcript(event.text, event.is_final)
            elif event.kind == deepgram_service.UTTERANCE_END:
                if pipeline is not None:
                    pipeline.on_utterance_end()
            elif event.kind == deepgram_service.OPEN:
                await sender.send({"type": "deepgram_status", "status": "connected"})
            elif event.kind == deepgram_service.CLOSE:
                await sender.send({"type": "deepgram_status", "status": "disconnected"})
            elif event.kind == deepgram_service.ERROR:
                await send_error("Transcription error occurred.")

    if transcription is not None:
        if not transcription.configured:
            await send_error("Deepgram API key not configured. Audio transcription is unavailable.")
        elif not await transcription.connect():
            await send_error("Failed to start transcription service.")
        else:
            controller.create_task(pump_transcripts())

    # ================= INBOUND =================
    chunks = 0
    total_bytes = 0
    try:
        while not controller.stop_event.is_set():
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                controller.request_stop("client disconnect")
                break

            data = message.get("bytes")
            if data is None:
                data = str(message.get("text") or "").encode("utf-8")
            chunks += 1
            total_bytes += len(data)
            if transcription is not None and message.get("bytes"):
                transcription.send_audio(data)
            session_registry.touch(connection_id)
            await sender.send({"type": "ack", "chunks": chunks, "bytes": total_bytes})
    except WebSocketDisconnect:
        controller.request_stop("client disconnect")
    except Exception as exc:
        logger.warning("copilot receive loop error | session_id=%s err=%s", connection_id, exc)
        controller.request_stop("receive_error")
    finally:
        if transcription is not None:
            try:
                await transcription.close()
            except Exception as exc:
                logger.warning("Transcription already closed: %s", exc)
        await controller.stop()
        session_registry.mark_inactive(connection_id)
        _log_event(
            "session_stopped",
            chunks=chunks,
            bytes=total_bytes,
            hints=pipeline.hints_sent if pipeline is not None else 0,
        )
