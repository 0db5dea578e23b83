"""
Interview conversation core.

Drives one interview through greeting -> intro -> deep_dive <-> cross_exam ->
closing -> completed. Each call to ``process_user_answer`` consumes exactly one
candidate reply and returns exactly one spoken interviewer line. Generation
failures never escape: every phase has a canned line to fall back on.
"""
import logging
import random
import re

from voice_core.config import (
    HIGH_SCORE_THRESHOLD,
    LLM_HISTORY_WINDOW,
    LOW_SCORE_THRESHOLD,
    MAX_CONSECUTIVE_PROBES,
)
from voice_core.logger import log_event
from voice_interview.ai_reasoning.llm import GenerateRequest, GenerationClient
from voice_interview.interview import prompts
from voice_interview.interview.evaluator import AnswerEvaluator, EvaluateRequest
from voice_interview.interview.models import (
    CANDIDATE,
    INTERVIEWER,
    ConversationState,
    EvaluationResult,
    Phase,
    SessionContext,
    TurnResult,
    Utterance,
)
from voice_interview.interview.rotation import TopicRotation
from voice_interview.interview.scorer import MODERATE_DIFFICULTY, difficulty_note, fallback_verdict_line
from voice_interview.resume.signals import extract_candidate_name, extract_talking_points

logger = logging.getLogger("voice_interview.interview.engine")

_KEYWORD_STOPWORDS = {
    "that", "this", "with", "from", "have", "been", "were", "they", "about", "would",
    "could", "should", "there", "their", "which", "where", "think", "really", "because", "actually",
}
KEYWORDS_PER_ANSWER = 5

_TOPIC_PATTERN = re.compile(
    r"(?:about|regarding|with|experience in|work on|expertise in|role at|project)\s+(.+?)[\?.!,]",
    re.IGNORECASE,
)
TOPIC_FINGERPRINT_CHARS = 50

_PHASE_LINE = re.compile(r"^[\s\[\(*#]*phase\b", re.IGNORECASE)
_INLINE_PHASE = re.compile(r"[\[\(]\s*phase\b[^\]\)]*[\]\)]", re.IGNORECASE)
_LABEL_PREFIX = re.compile(
    r"^[\s*_]*(?:ai interviewer|interviewer|assistant|ai|response|reply|greeting|closing|follow-up|"
    r"question(?:\s*\d+)?(?:\s*of\s*\d+)?|q\d+)[\s*_]*:[\s*_]*",
    re.IGNORECASE,
)
_NUMBERING = re.compile(r"^\s*(?:\d+\s*[.)]|#\d+)\s+")


def clean_spoken_line(text: str) -> str:
    """Reduce raw model output to the words the interviewer should say."""
    kept = []
    for raw in str(text or "").splitlines():
        line = raw.strip()
        if not line or _PHASE_LINE.match(line):
            continue
        line = _INLINE_PHASE.sub("", line)
        previous = None
        while previous != line:
            previous = line
            line = _LABEL_PREFIX.sub("", line)
            line = _NUMBERING.sub("", line)
        if line.strip():
            kept.append(line.strip())

    cleaned = " ".join(" ".join(kept).split())
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    return cleaned


def extract_keywords(answer: str, known: list[str], limit: int = KEYWORDS_PER_ANSWER) -> list[str]:
    fresh: list[str] = []
    for word in answer.lower().split():
        if len(word) <= 3 or word in _KEYWORD_STOPWORDS:
            continue
        if word in known or word in fresh:
            continue
        fresh.append(word)
        if len(fresh) >= limit:
            break
    return fresh


def topic_fingerprint(line: str) -> str:
    match = _TOPIC_PATTERN.search(line or "")
    if not match:
        return ""
    return match.group(1)[:TOPIC_FINGERPRINT_CHARS]


class InterviewConversation:

    def __init__(
        self,
        context: SessionContext,
        generator: GenerationClient,
        evaluator: AnswerEvaluator | None = None,
        rng: random.Random | None = None,
        max_consecutive_probes: int = MAX_CONSECUTIVE_PROBES,
        history_window: int = LLM_HISTORY_WINDOW,
        session_id: str = "",
    ):
        self.context = context
        self.context.total_questions = max(1, int(context.total_questions or 1))
        self.generator = generator
        self.evaluator = evaluator or AnswerEvaluator(generator)
        self.max_consecutive_probes = max_consecutive_probes
        self.history_window = history_window
        self.session_id = session_id

        self.state = ConversationState()
        self.state.candidate_name = extract_candidate_name(context.resume_text, context.candidate_name)
        self.rotation = TopicRotation(extract_talking_points(context.resume_text), rng=rng)
        self._terminal: TurnResult | None = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def question_index(self) -> int:
        return self.state.question_index

    @property
    def scores(self) -> list[int]:
        return list(self.state.scores)

    @property
    def is_complete(self) -> bool:
        return self.state.phase is Phase.COMPLETED

    @property
    def first_name(self) -> str:
        return self.state.candidate_name.split(" ")[0] if self.state.candidate_name else ""

    def average_score(self) -> int:
        return self.state.average_score()

    async def _generate(
        self,
        phase: Phase,
        system_prompt: str,
        fallback: str,
        max_tokens: int,
        temperature: float,
        user_prompt: str = "",
    ) -> str:
        history = [u.to_message() for u in self.state.history[-self.history_window:]]
        text = ""
        try:
            response = await self.generator.generate(
                GenerateRequest(
                    phase=phase.value,
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    history=history,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            )
            if not response.ok:
                logger.warning("generation unusable | phase=%s err=%s", phase.value, response.error or "empty")
            text = clean_spoken_line(response.text)
        except Exception as exc:
            logger.warning("generation raised | phase=%s err=%s", phase.value, exc)

        if not text:
            log_event("conversation", "fallback_line", self.session_id, phase=phase.value)
            text = fallback

        self.state.history.append(Utterance(INTERVIEWER, text))
        self.state.current_question = text
        return text

    def _record_keywords(self, answer: str) -> None:
        self.state.keywords.extend(extract_keywords(answer, self.state.keywords))

    def _record_topic(self, line: str) -> None:
        fingerprint = topic_fingerprint(line)
        if fingerprint:
            self.state.topics_explored.append(fingerprint)

    def _result(self, evaluation: EvaluationResult, text: str, conversational: bool) -> TurnResult:
        return TurnResult(
            evaluation=evaluation,
            next_response=text,
            is_complete=self.state.phase is Phase.COMPLETED,
            question_index=self.state.question_index,
            is_conversational=conversational,
            phase=self.state.phase,
        )

    async def start_introduction(self) -> str:
        self.state.enter(Phase.GREETING)
        ctx = self.context
        name_part = f" {self.first_name}" if self.first_name else ""
        fallback = (
            f"Hello{name_part}! I'm your AI interviewer for today's {ctx.interview_type} interview. "
            "How are you doing today?"
        )
        text = await self._generate(
            Phase.GREETING,
            prompts.build_greeting_prompt(
                ctx.interview_type, ctx.language, ctx.resume_text, ctx.job_description, self.state.candidate_name
            ),
            fallback,
            max_tokens=200,
            temperature=0.85,
            user_prompt="The interview is starting now. Please greet me.",
        )
        log_event("conversation", "greeting_delivered", self.session_id, phase=self.state.phase.value)
        return text

    async def process_user_answer(self, answer: str) -> TurnResult:
        if self.state.phase is Phase.COMPLETED:
            if self._terminal is None:
                self._terminal = self._result(EvaluationResult.not_scored(), "", conversational=False)
            return self._terminal

        answer = str(answer or "").strip()
        self.state.history.append(Utterance(CANDIDATE, answer))
        log_event(
            "conversation",
            "answer_received",
            self.session_id,
            phase=self.state.phase.value,
            answer=answer,
        )

        if self.state.phase is Phase.GREETING:
            text = await self._intro_request(answer)
            self.state.enter(Phase.INTRO)
            return self._result(EvaluationResult.not_scored(), text, conversational=True)

        if self.state.phase is Phase.INTRO:
            self._record_keywords(answer)
            text = await self._deep_dive_question(answer, intro=True)
            self.state.enter(Phase.DEEP_DIVE)
            return self._result(EvaluationResult.not_scored(), text, conversational=True)

        evaluation = await self._evaluate(answer)
        self.state.scores.append(evaluation.score)
        self._record_keywords(answer)
        self.state.question_index = min(self.state.question_index + 1, self.context.total_questions)

        if self.state.question_index >= self.context.total_questions:
            self.state.enter(Phase.CLOSING)
            text = await self._closing()
            self.state.enter(Phase.COMPLETED)
            self._terminal = self._result(evaluation, text, conversational=False)
            log_event(
                "conversation",
                "interview_completed",
                self.session_id,
                average=self.average_score(),
                answers=len(self.state.scores),
            )
            return self._terminal

        if evaluation.should_follow_up and self.state.consecutive_probes < self.max_consecutive_probes:
            self.state.enter(Phase.CROSS_EXAM)
            text = await self._cross_exam_question(answer, evaluation)
            self.state.consecutive_probes += 1
            logger.info("Cross-exam follow-up | reason=%s", evaluation.follow_up_reason)
        else:
            self.state.enter(Phase.DEEP_DIVE)
            text = await self._deep_dive_question(answer, intro=False)
            self.state.consecutive_probes = 0
            logger.info("Deep dive question %s", self.state.question_index + 1)

        return self._result(evaluation, text, conversational=False)

    async def _evaluate(self, answer: str) -> EvaluationResult:
        ctx = self.context
        try:
            return await self.evaluator.evaluate(
                EvaluateRequest(
                    question=self.state.current_question,
                    answer=answer,
                    interview_type=ctx.interview_type,
                    resume_text=ctx.resume_text,
                    job_description=ctx.job_description,
                )
            )
        except Exception as exc:
            logger.warning("evaluation raised | err=%s", exc)
            return EvaluationResult.neutral()

    async def _intro_request(self, greeting_answer: str) -> str:
        ctx = self.context
        return await self._generate(
            Phase.INTRO,
            prompts.build_intro_prompt(ctx.interview_type, ctx.language, ctx.resume_text, greeting_answer),
            "That's great to hear! Could you please tell me a bit about yourself and walk me through "
            "your professional journey?",
            max_tokens=250,
            temperature=0.8,
        )

    async def _deep_dive_question(self, answer: str, intro: bool) -> str:
        ctx = self.context
        pattern = self.rotation.next_pattern()
        focus = self.rotation.next_talking_point()
        avg = self.average_score()
        if self.state.scores:
            difficulty = difficulty_note(avg, HIGH_SCORE_THRESHOLD, LOW_SCORE_THRESHOLD)
        else:
            difficulty = MODERATE_DIFFICULTY
        prompt = prompts.build_deep_dive_prompt(
            interview_type=ctx.interview_type,
            language=ctx.language,
            resume_text=ctx.resume_text,
            job_description=ctx.job_description,
            question_number=self.state.question_index + 1,
            total_questions=ctx.total_questions,
            pattern_name=pattern.name,
            pattern_instruction=pattern.instruction,
            focus=focus,
            already_asked=self.rotation.already_asked(),
            topics_covered=list(self.state.topics_explored),
            keywords=list(self.state.keywords),
            scores=list(self.state.scores),
            average=avg,
            difficulty=difficulty,
            intro_answer=answer if intro else "",
        )
        if intro:
            fallback = (
                "Thank you for sharing that. Let's dive deeper. Can you tell me about a challenging project "
                "you've worked on and how you handled it?"
            )
        else:
            fallback = "That's a great answer. Could you tell me about another challenging project you've worked on?"

        text = await self._generate(
            Phase.DEEP_DIVE,
            prompt,
            fallback,
            max_tokens=350 if intro else 400,
            temperature=0.8,
        )
        self._record_topic(text)
        return text

    async def _cross_exam_question(self, answer: str, evaluation: EvaluationResult) -> str:
        ctx = self.context
        return await self._generate(
            Phase.CROSS_EXAM,
            prompts.build_cross_exam_prompt(
                ctx.interview_type,
                ctx.language,
                ctx.resume_text,
                ctx.job_description,
                answer,
                evaluation.follow_up_reason,
            ),
            "Interesting. Could you walk me through exactly how you approached that?",
            max_tokens=250,
            temperature=0.75,
        )

    async def _closing(self) -> str:
        ctx = self.context
        avg = self.average_score()
        return await self._generate(
            Phase.CLOSING,
            prompts.build_closing_prompt(
                ctx.interview_type,
                ctx.language,
                self.state.candidate_name,
                ctx.total_questions,
                list(self.state.scores),
                avg,
            ),
            fallback_verdict_line(avg),
            max_tokens=400,
            temperature=0.7,
        )
