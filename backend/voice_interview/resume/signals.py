"""
Heuristic resume signals: a display name and a rotation pool of talking points.

Everything here is a pure function of the resume text. Talking-point rules are
kept in an ordered table so a heuristic can be added or dropped without
touching the extraction loop.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable

logger = logging.getLogger("voice_interview.resume.signals")

MAX_NAME_SCAN_LINES = 15
MAX_TALKING_POINTS = 40
DEDUP_KEY_CHARS = 40

TAG_PROJECT = "Project"
TAG_COMPANY = "Company Experience"
TAG_EXPERIENCE = "Experience"
TAG_TOOL = "Software/Tool"

_HEADER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^curriculum\s*vitae$",
        r"^resume$",
        r"^résumé$",
        r"^cv$",
        r"^bio\s*data$",
        r"^personal\s*(info|information|details|data|profile)$",
        r"^profile$",
        r"^about\s*me$",
        r"^contact\s*(info|information|details)?$",
        r"^professional\s*(summary|profile|resume|cv)$",
        r"^summary$",
        r"^objective$",
        r"^career\s*(objective|summary|profile)$",
        r"^experience$",
        r"^education$",
        r"^skills$",
        r"^page\s*\d+",
        r"^-+$",
        r"^=+$",
        r"^_+$",
    )
]

# Latin + Latin-1/Extended-A letters, Devanagari, Bengali, Gurmukhi, Tamil,
# Telugu, Kannada, Malayalam.
_NAME_TOKEN = re.compile(
    r"^[A-Za-zÀ-ÖØ-öø-ſ"
    r"ऀ-ॿঀ-৿਀-੿஀-௿"
    r"ఀ-౿ಀ-೿ഀ-ൿ.']+$"
)
_NAME_PUNCTUATION = re.compile(r"[/\\,;:|#]")


def extract_candidate_name(resume_text: str, provided_name: str = "") -> str:
    if provided_name and provided_name.strip():
        return provided_name.strip()
    if not resume_text:
        return ""

    lines = [line.strip() for line in resume_text.splitlines() if line.strip()]
    for line in lines[:MAX_NAME_SCAN_LINES]:
        if _looks_like_name(line):
            logger.info("Extracted candidate name (%s chars)", len(line))
            return line
    return ""


def _looks_like_name(line: str) -> bool:
    if len(line) < 2 or len(line) > 40:
        return False
    lowered = line.lower()
    if "@" in line or "http" in lowered or "www." in lowered:
        return False
    if any(p.search(line) for p in _HEADER_PATTERNS):
        return False
    if re.search(r"\d", line) or _NAME_PUNCTUATION.search(line):
        return False

    words = line.split()
    if not 1 <= len(words) <= 4:
        return False
    if not all(_NAME_TOKEN.match(w) for w in words):
        return False
    return all(2 <= len(w.replace(".", "").replace("'", "")) <= 20 for w in words)


@dataclass(frozen=True)
class TalkingPointRule:
    name: str
    tag: str
    extract: Callable[[str], Iterable[str]]


_ARTICLE_ONLY = re.compile(r"^(the|a|an|i|my|our)\s*$", re.IGNORECASE)

_ACTION_CLAUSE = re.compile(
    r"\b(?:project|built|developed|created|designed|implemented|worked on|contributed to|led|managed|launched|deployed)"
    r"\b[ \t]*[:\-–]?[ \t]*(.+?)(?:\.|,|\n|$)",
    re.IGNORECASE,
)
_BULLET_LINE = re.compile(r"^[ \t]*[-•*][ \t]*(.+?)(?:\.|,|$)", re.MULTILINE)
_COMPANY_ROLE = re.compile(
    r"^[ \t]*[-•*]?[ \t]*(?:worked at|employed at|experience at)?[ \t]*"
    r"([^|\n–—]+?)[ \t]+(?:\||–|-|—)[ \t]+(.+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_EXPERIENCE_HEADING = re.compile(
    r"^[ \t]*(?:professional experience|work experience|experience|work history|employment|professional background)"
    r"[ \t]*[:\-–]?[ \t]*$",
    re.IGNORECASE,
)
_SKILLS_HEADING = re.compile(
    r"\b(?:skills?|technologies|technology|tech stack|tools?|software|frameworks?|platforms?|proficient|"
    r"experienced?\s+(?:in|with))[ \t]*[:\-–]?\s*(.+?)(?:\n|$)",
    re.IGNORECASE,
)


def _action_clauses(text: str) -> Iterable[str]:
    for match in _ACTION_CLAUSE.finditer(text):
        item = match.group(1).strip()
        if 5 < len(item) < 120 and not _ARTICLE_ONLY.match(item):
            yield item


def _bulleted_lines(text: str) -> Iterable[str]:
    for match in _BULLET_LINE.finditer(text):
        item = match.group(1).strip()
        if 5 < len(item) < 120 and not _ARTICLE_ONLY.match(item):
            yield item


def _company_roles(text: str) -> Iterable[str]:
    for match in _COMPANY_ROLE.finditer(text):
        company = match.group(1).strip()
        role = match.group(2).strip()
        if 2 < len(company) < 60 and len(role) > 2:
            yield f"{role} at {company}"


def _experience_lines(text: str) -> Iterable[str]:
    lines = text.splitlines()
    for index, line in enumerate(lines):
        if not _EXPERIENCE_HEADING.match(line):
            continue
        block: list[str] = []
        for follower in lines[index + 1:]:
            stripped = follower.strip()
            if not stripped:
                break
            if 10 < len(stripped) < 120:
                block.append(stripped)
        yield from block[:5]


def _skill_items(text: str) -> Iterable[str]:
    for match in _SKILLS_HEADING.finditer(text):
        for item in re.split(r"[,;|•]", match.group(1)):
            tool = item.strip()
            if 2 < len(tool) < 50:
                yield tool


TALKING_POINT_RULES: tuple[TalkingPointRule, ...] = (
    TalkingPointRule("action_clause", TAG_PROJECT, _action_clauses),
    TalkingPointRule("bulleted_line", TAG_PROJECT, _bulleted_lines),
    TalkingPointRule("company_role", TAG_COMPANY, _company_roles),
    TalkingPointRule("experience_section", TAG_EXPERIENCE, _experience_lines),
    TalkingPointRule("skills_list", TAG_TOOL, _skill_items),
)


def _dedup_key(item: str) -> str:
    return " ".join(item.lower().split())[:DEDUP_KEY_CHARS]


def extract_talking_points(
    resume_text: str,
    rules: Iterable[TalkingPointRule] = TALKING_POINT_RULES,
    limit: int = MAX_TALKING_POINTS,
) -> list[str]:
    if not resume_text:
        return []

    seen: set[str] = set()
    points: list[str] = []
    for rule in rules:
        for fragment in rule.extract(resume_text):
            tagged = f"[{rule.tag}] {fragment}"
            key = _dedup_key(tagged)
            if key in seen:
                continue
            seen.add(key)
            points.append(tagged)
            if len(points) >= limit:
                logger.info("Extracted %s resume talking points (capped)", len(points))
                return points

    logger.info("Extracted %s resume talking points", len(points))
    return points
