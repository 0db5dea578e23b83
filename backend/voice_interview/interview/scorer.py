from enum import Enum


class Verdict(str, Enum):
    SELECTED = "selected"
    ON_HOLD = "on_hold"
    NOT_SELECTED = "not_selected"


def average_score(scores) -> int:
    values = [int(s) for s in list(scores or [])]
    if not values:
        return 0
    return int(sum(values) / len(values) + 0.5)


def verdict_for(avg: int) -> Verdict:
    if avg >= 7:
        return Verdict.SELECTED
    if avg >= 5:
        return Verdict.ON_HOLD
    return Verdict.NOT_SELECTED


MODERATE_DIFFICULTY = "Maintain moderate difficulty"


def difficulty_note(avg: int, high: int = 8, low: int = 4) -> str:
    if avg >= high:
        return "Ask harder, more nuanced questions"
    if avg <= low:
        return "Ask slightly easier but still substantive questions"
    return MODERATE_DIFFICULTY


def fallback_verdict_line(avg: int) -> str:
    verdict = verdict_for(avg)
    if verdict is Verdict.SELECTED:
        tail = "Based on your performance, I would say you are selected. Your answers were detailed and impressive."
    elif verdict is Verdict.ON_HOLD:
        tail = "Based on your performance, you are on hold. Some answers were good but others lacked depth."
    else:
        tail = (
            "Unfortunately, based on today's performance, you are not selected. I'd recommend practicing "
            "with more specific examples and deeper technical knowledge."
        )
    return f"Thank you for completing the interview! Your overall score is {avg}/10. {tail}"
