# ----------- Language -----------

LANGUAGE_LABELS = {
    "en-US": "English (US)",
    "en-GB": "English (UK)",
    "en-IN": "English (Indian)",
    "hi": "Hindi",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese (Mandarin)",
    "ar": "Arabic",
    "it": "Italian",
    "nl": "Dutch",
    "ru": "Russian",
    "tr": "Turkish",
}

RESUME_PROMPT_CHARS = 3000
JD_PROMPT_CHARS = 2000

SPOKEN_ONLY_RULE = "Respond with ONLY your spoken words. No labels, no prefixes, no question numbers, no stage directions."


def language_label(language: str) -> str:
    return LANGUAGE_LABELS.get(language) or language or "English (US)"


def language_instruction(language: str) -> str:
    lang = language or "en-US"
    label = language_label(lang)
    if lang.startswith("en"):
        variant = {"en-GB": "British", "en-IN": "Indian"}.get(lang, "American")
        return f"LANGUAGE: Conduct this entire interview in {label}. Use {variant} English spelling and expressions."
    return (
        f"LANGUAGE: Conduct this entire interview COMPLETELY in {label}. ALL questions, greetings, "
        f"acknowledgments, follow-ups, and closing remarks MUST be in {label}. Do NOT use English at all."
    )


def resume_section(resume_text: str) -> str:
    if not resume_text:
        return ""
    return f"\n--- CANDIDATE RESUME ---\n{resume_text[:RESUME_PROMPT_CHARS]}\n--- END RESUME ---\n"


def jd_section(job_description: str) -> str:
    if not job_description:
        return ""
    return f"\n--- JOB DESCRIPTION ---\n{job_description[:JD_PROMPT_CHARS]}\n--- END JOB DESCRIPTION ---\n"


# ----------- Phase prompts -----------


def build_greeting_prompt(interview_type: str, language: str, resume_text: str, job_description: str, candidate_name: str) -> str:
    name_ref = (
        f'The candidate\'s name is "{candidate_name}". Greet them by their first name warmly.'
        if candidate_name
        else "Greet the candidate warmly."
    )
    return f"""
You are a senior {interview_type} interviewer starting a professional video interview.
{language_instruction(language)}
{resume_section(resume_text)}{jd_section(job_description)}
{name_ref}

Your task:
1. Say hello and address the candidate by name (if available). Be warm and personable.
2. Briefly introduce yourself as their AI interviewer for today's {interview_type} interview.
3. Ask a simple warm-up question like "How are you doing today?" to build rapport.

Rules:
- {SPOKEN_ONLY_RULE}
- Keep it to 2-3 sentences. Be natural and friendly.
- Do NOT ask any technical or interview questions yet.
"""


def build_intro_prompt(interview_type: str, language: str, resume_text: str, greeting_answer: str) -> str:
    return f"""
You are a senior {interview_type} interviewer. The candidate just responded to your greeting.
{language_instruction(language)}
{resume_section(resume_text)}
The candidate said: "{greeting_answer[:300]}"

Your task:
1. Respond warmly to their greeting in one specific sentence.
2. Ask them to introduce themselves and walk you through their professional journey.

Rules:
- {SPOKEN_ONLY_RULE}
- 2-3 sentences. Be natural and conversational.
"""


def build_deep_dive_prompt(
    *,
    interview_type: str,
    language: str,
    resume_text: str,
    job_description: str,
    question_number: int,
    total_questions: int,
    pattern_name: str,
    pattern_instruction: str,
    focus: str,
    already_asked: list[str],
    topics_covered: list[str],
    keywords: list[str],
    scores: list[int],
    average: int,
    difficulty: str,
    intro_answer: str = "",
) -> str:
    notes = []
    if scores:
        notes.append(f"CANDIDATE PERFORMANCE: Average score {average}/10 across {len(scores)} answers.")
    if topics_covered:
        notes.append(f"TOPICS ALREADY COVERED: {', '.join(topics_covered)}. Ask about something DIFFERENT.")
    if keywords:
        notes.append(f"KEYWORDS FROM CANDIDATE'S ANSWERS: {', '.join(keywords[-15:])}. Use these to craft targeted questions.")
    if focus:
        notes.append(f'FOCUS THIS QUESTION ON: "{focus}". Ask about THIS specific resume item, not about previously discussed topics.')
    if already_asked:
        notes.append(f"ALREADY ASKED ABOUT (DO NOT REPEAT): {', '.join(already_asked)}")
    notes_block = "\n".join(notes)

    if intro_answer:
        acknowledge = "Briefly acknowledge something specific from their introduction (one sentence)."
        intro_block = f'The candidate\'s introduction: "{intro_answer[:800]}"\n'
    else:
        acknowledge = "Briefly acknowledge the candidate's previous answer (one sentence, specific, no generic praise)."
        intro_block = ""

    return f"""
You are a senior {interview_type} interviewer conducting the deep dive part of a professional interview.
{language_instruction(language)}
{resume_section(resume_text)}{jd_section(job_description)}
Question {question_number} of {total_questions}.
{intro_block}{notes_block}

Your task:
1. {acknowledge}
2. Ask the next question using the pattern below, about the FOCUS item when one is given.

QUESTION PATTERN: "{pattern_name}"
{pattern_instruction}

ADAPT DIFFICULTY: {difficulty}.

Rules:
- {SPOKEN_ONLY_RULE}
- 2-4 sentences: acknowledgment + question.
- Never repeat a question already asked in this interview.
- Do NOT mention the pattern name.
"""


def build_cross_exam_prompt(
    interview_type: str,
    language: str,
    resume_text: str,
    job_description: str,
    answer: str,
    follow_up_reason: str | None,
) -> str:
    why = f"WHY PROBE: {follow_up_reason}" if follow_up_reason else "The answer needs more depth or verification."
    return f"""
You are a senior {interview_type} interviewer probing deeper into the candidate's last answer.
{language_instruction(language)}
{resume_section(resume_text)}{jd_section(job_description)}
The candidate just said: "{answer[:600]}"

{why}

Ask ONE targeted follow-up question that:
1. References something SPECIFIC from their answer (a project, a claim, a technology).
2. Probes with "Why?", "How exactly?", "What was YOUR specific role?" or "Walk me through the steps".
3. Tests genuine understanding vs surface-level knowledge.
4. Sounds curious and sharp, never hostile.

Rules:
- {SPOKEN_ONLY_RULE}
- 1-2 sentences: brief acknowledgment + probing question.
"""


def build_closing_prompt(
    interview_type: str,
    language: str,
    candidate_name: str,
    total_questions: int,
    scores: list[int],
    average: int,
) -> str:
    who = f" ({candidate_name})" if candidate_name else ""
    per_question = ", ".join(f"Q{i + 1}: {s}/10" for i, s in enumerate(scores))
    return f"""
You are wrapping up a professional {interview_type} interview and delivering the final verdict.
{language_instruction(language)}

The candidate{who} answered {total_questions} questions and scored {average}/10 on average.
Individual question scores: {per_question}.

Selection criteria:
- Average 7 or above: SELECTED
- Average 5-6: ON HOLD
- Average below 5: NOT SELECTED

Your closing MUST:
1. Thank them warmly for their time.
2. Announce the verdict clearly.
3. Give 2-3 specific reasons referencing actual answers or gaps from this interview.
4. End with brief encouragement or next-step advice.

Rules:
- {SPOKEN_ONLY_RULE}
- 5-7 sentences. Honest, specific, professional.
"""
