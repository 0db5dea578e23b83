"""
Per-connection turn orchestration for the voice interview.

One ``InterviewTurnOrchestrator`` exists per websocket. It owns the candidate
transcript buffer, the AI-speaking (anti-echo) window and the single
``end_turn`` cycle that may be in flight. All state is touched only from the
event loop; the transcription SDK thread reaches it through the service queue.
"""
import asyncio
import base64
import logging
from typing import Awaitable, Callable, Optional

from voice_core.config import (
    MIN_ANSWER_CHARS,
    PCM_BYTES_PER_SEC,
    SPEAKING_TAIL_SEC,
    TTS_FALLBACK_WINDOW_SEC,
)
from voice_core.logger import log_event
from voice_core.state import SessionStatus, VoiceSessionState
from voice_interview.interview.engine import InterviewConversation
from voice_interview.interview.models import CANDIDATE, INTERVIEWER
from voice_interview.interview.session import InMemorySessionStore, InterviewMessage, InterviewSessionRecord
from voice_interview.persona.engine import InterviewerProfile
from voice_interview.services import deepgram_service
from voice_interview.services.audio_service import play_duration_ms
from voice_interview.services.deepgram_service import TranscriptEvent, TranscriptionService
from voice_interview.services.tts_service import SpeechSynthesisBridge
from voice_interview.session_controller import SessionController
from voice_interview.turn_lifecycle import TurnGate

logger = logging.getLogger("voice_interview.session.orchestrator")

SendFn = Callable[[dict], Awaitable[None]]


class InterviewTurnOrchestrator:

    def __init__(
        self,
        session_id: str,
        record: InterviewSessionRecord,
        conversation: InterviewConversation,
        synthesizer: SpeechSynthesisBridge,
        store: InMemorySessionStore,
        send_fn: SendFn,
        profile: InterviewerProfile,
        controller: SessionController,
        transcription: Optional[TranscriptionService] = None,
        min_answer_chars: int = MIN_ANSWER_CHARS,
        bytes_per_sec: int = PCM_BYTES_PER_SEC,
        speaking_tail_sec: float = SPEAKING_TAIL_SEC,
        fallback_window_sec: float = TTS_FALLBACK_WINDOW_SEC,
    ):
        self.session_id = session_id
        self.record = record
        self.conversation = conversation
        self.synthesizer = synthesizer
        self.store = store
        self.send = send_fn
        self.profile = profile
        self.controller = controller
        self.transcription = transcription
        self.min_answer_chars = min_answer_chars
        self.bytes_per_sec = bytes_per_sec
        self.speaking_tail_sec = speaking_tail_sec
        self.fallback_window_sec = fallback_window_sec

        self.state = VoiceSessionState.CONNECTING
        self.ai_speaking = False
        self.transcript_buffer: list[str] = []
        self.turn_gate = TurnGate()
        self._speaking_handle: Optional[asyncio.TimerHandle] = None
        self._speech_task: Optional[asyncio.Task] = None
        self._tts_chunks = 0
        self._closed = False

    @property
    def language(self) -> str:
        return self.record.language or "en-US"

    @property
    def total_questions(self) -> int:
        return self.record.total_questions

    def current_answer(self) -> str:
        return " ".join(self.transcript_buffer).strip()

    def _log(self, event: str, **fields) -> None:
        log_event("interview_orchestrator", event, self.session_id, **fields)

    # ================= START =================

    async def start(self) -> str:
        await self.open_transcription()

        await self.store.update_session_async(self.session_id, status=SessionStatus.IN_PROGRESS)
        self.record.status = SessionStatus.IN_PROGRESS

        greeting = await self.conversation.start_introduction()
        await self.store.append_message_async(
            InterviewMessage(self.session_id, INTERVIEWER, greeting, question_index=0)
        )
        await self.send({
            "type": "ai_question",
            "text": greeting,
            "questionIndex": 0,
            "totalQuestions": self.total_questions,
            "isComplete": False,
        })
        self.start_speaking(greeting)
        self._log("session_started", language=self.language, total_questions=self.total_questions)
        return greeting

    async def open_transcription(self) -> bool:
        if self.transcription is None:
            return False
        if not self.transcription.configured:
            await self.send({"type": "error", "message": "Deepgram API key not configured."})
            return False
        connected = await self.transcription.connect()
        if not connected:
            await self.send({"type": "error", "message": "Failed to start transcription."})
            return False
        self.controller.create_task(self.pump_transcripts())
        return True

    async def pump_transcripts(self) -> None:
        async for event in self.transcription.events():
            await self.on_transcription_event(event)

    # ================= TRANSCRIPTS =================

    async def on_transcription_event(self, event: TranscriptEvent) -> None:
        if event.kind == deepgram_service.TRANSCRIPT:
            await self.on_transcript(event.text, event.is_final)
        elif event.kind == deepgram_service.OPEN:
            await self.send({"type": "deepgram_status", "status": "connected"})
        elif event.kind == deepgram_service.CLOSE:
            await self.send({"type": "deepgram_status", "status": "disconnected"})
        elif event.kind == deepgram_service.ERROR:
            logger.warning("transcription error | session_id=%s err=%s", self.session_id, event.error)

    async def on_transcript(self, text: str, is_final: bool) -> bool:
        """Returns False when the segment was dropped as interviewer echo."""
        if self.ai_speaking:
            return False
        clean = str(text or "").strip()
        if not clean:
            return False
        if is_final:
            self.transcript_buffer.append(clean)
        await self.send({"type": "transcript", "text": clean, "isFinal": bool(is_final)})
        return True

    def send_audio(self, audio: bytes) -> None:
        if self.transcription is not None:
            self.transcription.send_audio(audio)

    # ================= TURN CYCLE =================

    async def handle_end_turn(self) -> bool:
        """Runs one answer cycle. Returns False when a cycle was already in flight."""
        if not self.turn_gate.try_begin("end_turn"):
            self._log("end_turn_dropped")
            return False
        try:
            await self._run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("turn cycle failed | session_id=%s err=%s", self.session_id, exc)
        finally:
            self.transcript_buffer.clear()
            self.turn_gate.finish()
        return True

    async def _run_cycle(self) -> None:
        if self.conversation.is_complete:
            self._log("end_turn_after_completion")
            return

        answer = self.current_answer()
        if len(answer) <= self.min_answer_chars:
            self._log("answer_skipped", answer=answer)
            return

        self.state = VoiceSessionState.PROCESSING
        await self.store.append_message_async(
            InterviewMessage(self.session_id, CANDIDATE, answer, question_index=self.conversation.question_index)
        )
        await self.send({"type": "processing", "message": "Processing..."})

        result = await self.conversation.process_user_answer(answer)

        if not result.is_conversational:
            evaluation = result.evaluation
            await self.store.append_message_async(
                InterviewMessage(
                    self.session_id,
                    INTERVIEWER,
                    evaluation.feedback,
                    question_index=result.question_index,
                    score=evaluation.score,
                    feedback=evaluation.feedback,
                )
            )
            await self.send({
                "type": "evaluation",
                "score": evaluation.score,
                "feedback": evaluation.feedback,
                "questionIndex": result.question_index,
            })

        updates = {"current_question": result.question_index}
        average = self.conversation.average_score()
        if result.is_complete:
            updates.update(status=SessionStatus.COMPLETED, total_score=average)
        await self.store.update_session_async(self.session_id, **updates)
        self.record.current_question = result.question_index

        await self.store.append_message_async(
            InterviewMessage(self.session_id, INTERVIEWER, result.next_response, question_index=result.question_index)
        )
        question = {
            "type": "ai_question",
            "text": result.next_response,
            "questionIndex": result.question_index,
            "totalQuestions": self.total_questions,
            "isComplete": result.is_complete,
        }
        await self.send(question)
        self.start_speaking(result.next_response)

        if result.is_complete:
            self.record.status = SessionStatus.COMPLETED
            self.record.total_score = average
            await self.send({
                "type": "interview_complete",
                "totalScore": average,
                "totalQuestions": self.total_questions,
            })
            self._log("interview_complete", total_score=average, answers=len(self.conversation.scores))

    # ================= SPEAKING WINDOW =================

    def start_speaking(self, text: str) -> Optional[asyncio.Task]:
        if self._closed:
            return None
        self._cancel_speaking_window()
        if self._speech_task is not None and not self._speech_task.done():
            self._speech_task.cancel()

        self.ai_speaking = True
        self.state = VoiceSessionState.AI_SPEAKING
        self.transcript_buffer.clear()
        self._tts_chunks = 0
        self._speech_task = self.controller.create_task(self._speak(text))
        return self._speech_task

    async def _speak(self, text: str) -> None:
        try:
            await self.synthesizer.speak(
                text,
                self.profile,
                self.language,
                on_chunk=self._on_tts_chunk,
                on_done=self._on_tts_done,
                on_error=lambda error: self._on_tts_error(text, error),
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await self._on_tts_error(text, str(exc))

    async def _on_tts_chunk(self, chunk: bytes) -> None:
        self._tts_chunks += 1
        await self.send({"type": "tts_audio", "audio": base64.b64encode(chunk).decode("ascii")})

    async def _on_tts_done(self, total_bytes: int) -> None:
        duration_ms = play_duration_ms(total_bytes, self.bytes_per_sec, self.speaking_tail_sec)
        logger.info(
            "TTS done | session_id=%s chunks=%s bytes=%s play_ms=%s",
            self.session_id,
            self._tts_chunks,
            total_bytes,
            duration_ms,
        )
        await self.send({"type": "ai_speaking_done", "playDurationMs": duration_ms})
        self._schedule_speaking_window(duration_ms / 1000.0)

    async def _on_tts_error(self, text: str, error: str) -> None:
        logger.warning("TTS failed, sending client fallback | session_id=%s err=%s", self.session_id, error)
        await self.send({"type": "tts_fallback", "text": text, "language": self.language})
        await self.send({"type": "ai_speaking_done", "playDurationMs": int(round(self.fallback_window_sec * 1000))})
        self._schedule_speaking_window(self.fallback_window_sec)

    def _schedule_speaking_window(self, delay_sec: float) -> None:
        self._cancel_speaking_window()
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        self._speaking_handle = loop.call_later(max(0.0, delay_sec), self._end_speaking_window)

    def _cancel_speaking_window(self) -> None:
        if self._speaking_handle is not None:
            self._speaking_handle.cancel()
            self._speaking_handle = None

    def _end_speaking_window(self) -> None:
        self._speaking_handle = None
        self.ai_speaking = False
        self.transcript_buffer.clear()
        if not self._closed:
            self.state = VoiceSessionState.LISTENING

    # ================= TEARDOWN =================

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_speaking_window()
        if self._speech_task is not None and not self._speech_task.done():
            self._speech_task.cancel()
            await asyncio.gather(self._speech_task, return_exceptions=True)
        if self.transcription is not None:
            try:
                await self.transcription.close()
            except Exception as exc:
                logger.warning("Transcription already closed: %s", exc)
        self.state = VoiceSessionState.CLOSED
        self._log("session_closed", turns=self.turn_gate.completed_turns)
