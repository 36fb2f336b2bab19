"""Auto-fill resolution for input steps from the member profile."""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Tuple

from vowser.src.utils.models import PathStep, UserProfile

logger = logging.getLogger(__name__)

NAME_KEYWORDS: Tuple[str, ...] = ("이름", "name", "성명", "full name", "fullname")
BIRTH_KEYWORDS: Tuple[str, ...] = ("생년월일", "생일", "birth", "birthday", "date of birth", "dob")
PHONE_KEYWORDS: Tuple[str, ...] = ("전화", "휴대폰", "핸드폰", "연락처", "phone", "mobile", "tel", "contact")

_LAST_SEGMENT = ("뒤", "뒷", "last")
_MIDDLE_SEGMENT = ("중간", "middle")
_FIRST_SEGMENT = ("첫", "앞", "first")
_HYPHEN_HINTS = ("하이픈", "hyphen", "-")

# quoted attribute values, #id and .class tokens; attribute names are ignored
_SELECTOR_TERM_RE = re.compile(r"""['"]([^'"]*)['"]|#([\w-]+)|\.([\w-]+)""")
_DATE_PARTS_RE = re.compile(r"^\s*(\d{4})\D+(\d{1,2})\D+(\d{1,2})\s*$")


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _contains_token(text: str, keywords: Iterable[str]) -> bool:
    # "#username" or "#hotel-search" must not count as name or tel
    return any(re.search(rf"(?<![0-9a-z]){re.escape(keyword)}(?![0-9a-z])", text) for keyword in keywords)


def _matches(hints: str, selectors: str, keywords: Iterable[str]) -> bool:
    return _contains_any(hints, keywords) or _contains_token(selectors, keywords)


def hint_text(step: PathStep) -> str:
    return " ".join(label.lower() for label in step.text_labels)


def selector_text(step: PathStep) -> str:
    terms = []
    for selector in step.selectors:
        for match in _SELECTOR_TERM_RE.finditer(selector):
            terms.append(next(group for group in match.groups() if group is not None))
    return " ".join(terms).lower()


def normalize_birthdate(raw: str) -> Optional[str]:
    """Return ``YYYYMMDD`` or ``None`` when ``raw`` is not a recognisable date."""
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 8:
        return digits
    match = _DATE_PARTS_RE.match(raw)
    if match is None:
        return None
    year, month, day = match.groups()
    return f"{year}{int(month):02d}{int(day):02d}"


def format_phone_with_hyphen(digits: str) -> str:
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    if len(digits) == 11:
        return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
    return digits


def extract_phone(hints: str, phone_number: str) -> Optional[str]:
    """Pick the phone segment the field asks for.

    The profile number must normalise to 10 or 11 digits; anything else is
    rejected rather than guessed.
    """
    digits = re.sub(r"\D", "", phone_number)
    if len(digits) not in (10, 11):
        logger.warning("[AutoFill] Invalid phone number format (%d digits)", len(digits))
        return None

    if _contains_any(hints, _LAST_SEGMENT):
        return digits[-8:]
    if _contains_any(hints, _MIDDLE_SEGMENT):
        return digits[3:6] if len(digits) == 10 else digits[3:7]
    if _contains_any(hints, _FIRST_SEGMENT):
        return digits[:3]
    if _contains_any(hints, _HYPHEN_HINTS):
        return format_phone_with_hyphen(digits)
    return digits


def resolve_auto_fill(step: PathStep, profile: UserProfile | None) -> Optional[str]:
    """Value to type into ``step`` without asking the user, or ``None``.

    Families are tried in order name, birthdate, phone; the first one whose
    keywords appear in the hints, or as a whole word in the selectors,
    decides the outcome.
    """
    if not step.is_input or profile is None:
        return None

    hints = hint_text(step)
    selectors = selector_text(step)

    if _matches(hints, selectors, NAME_KEYWORDS):
        value = (profile.name or "").strip()
        if not value:
            return None
        logger.info("[AutoFill] name field matched")
        return value

    if _matches(hints, selectors, BIRTH_KEYWORDS):
        if not (profile.birthdate or "").strip():
            return None
        value = normalize_birthdate(profile.birthdate)
        if value is not None:
            logger.info("[AutoFill] birthdate field matched")
        return value

    if _matches(hints, selectors, PHONE_KEYWORDS):
        if not (profile.phone_number or "").strip():
            return None
        value = extract_phone(hints, profile.phone_number)
        if value is not None:
            logger.info("[AutoFill] phone field matched")
        return value

    logger.debug("[AutoFill] No auto-fill match for: %s", hints)
    return None


__all__ = [
    "NAME_KEYWORDS",
    "BIRTH_KEYWORDS",
    "PHONE_KEYWORDS",
    "hint_text",
    "selector_text",
    "normalize_birthdate",
    "format_phone_with_hyphen",
    "extract_phone",
    "resolve_auto_fill",
]
