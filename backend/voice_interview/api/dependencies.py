from __future__ import annotations

import logging
import random
from typing import Optional

from openai import AsyncOpenAI

from voice_core.config import OPENAI_API_KEY, OPENAI_BASE_URL, QA_MODE
from voice_interview.ai_reasoning.llm import GenerationClient, OpenAIGenerationClient
from voice_interview.errors import ConfigurationError
from voice_interview.interview.session import InMemorySessionStore
from voice_interview.persona.engine import InterviewerProfile, select_interviewer_profile
from voice_interview.services.deepgram_service import TranscriptionService
from voice_interview.services.tts_service import EdgeTTSProvider, OpenAIAudioProvider, SpeechSynthesisBridge

logger = logging.getLogger("voice_interview.api.dependencies")


class WsDependencyProvider:
    """Collaborator factory for the websocket routes; tests swap methods on the shared instance."""

    def __init__(self, store: Optional[InMemorySessionStore] = None):
        self.store = store or InMemorySessionStore()
        self._openai: Optional[AsyncOpenAI] = None

    def get_store(self) -> InMemorySessionStore:
        return self.store

    def openai_client(self) -> AsyncOpenAI:
        if not OPENAI_API_KEY:
            raise ConfigurationError("OpenAI API key not configured.")
        if self._openai is None:
            self._openai = AsyncOpenAI(api_key=OPENAI_API_KEY, base_url=OPENAI_BASE_URL)
        return self._openai

    def create_generator(self) -> GenerationClient:
        return OpenAIGenerationClient(self.openai_client())

    def create_synthesizer(self) -> SpeechSynthesisBridge:
        return SpeechSynthesisBridge([OpenAIAudioProvider(self.openai_client()), EdgeTTSProvider()])

    def create_transcription(self, language: str) -> Optional[TranscriptionService]:
        if QA_MODE:
            logger.info("[QA_MODE] Deepgram service disabled")
            return None
        return TranscriptionService(language=language)

    def select_profile(self, language: str) -> InterviewerProfile:
        return select_interviewer_profile(language)

    def create_rng(self) -> Optional[random.Random]:
        return None


dependency_provider = WsDependencyProvider()
