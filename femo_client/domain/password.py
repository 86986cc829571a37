"""Client-side password strength rules used by registration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

_SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

_STRENGTH_BY_SCORE = {
    0: "weak",
    1: "weak",
    2: "fair",
    3: "good",
    4: "very-strong",
}


@dataclass(frozen=True)
class PasswordStrength:
    score: int
    feedback: List[str] = field(default_factory=list)
    is_valid: bool = False
    strength: str = "weak"


def validate_password(password: str) -> PasswordStrength:
    """Score a password from 0 to 4 and list the rules it fails.

    A password is only valid when every rule passes. The score is capped at 4
    even though five rules are checked.
    """

    password = password or ""
    feedback: List[str] = []
    score = 0

    if len(password) < PASSWORD_MIN_LENGTH:
        feedback.append(f"Minimum {PASSWORD_MIN_LENGTH} characters")
    else:
        score += 1

    if len(password) > PASSWORD_MAX_LENGTH:
        feedback.append(f"Maximum {PASSWORD_MAX_LENGTH} characters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Add uppercase letter")

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Add lowercase letter")

    if re.search(r"[0-9]", password):
        score += 1
    else:
        feedback.append("Add number")

    if _SPECIAL_CHARS_RE.search(password):
        score += 1
    else:
        feedback.append("Add special character")

    capped = min(score, 4)
    return PasswordStrength(
        score=capped,
        feedback=feedback,
        is_valid=not feedback,
        strength=_STRENGTH_BY_SCORE[capped],
    )


def password_strength_label(score: int) -> str:
    if score in (0, 1):
        return "Weak"
    if score == 2:
        return "Fair"
    if score == 3:
        return "Good"
    if score == 4:
        return "Very Strong"
    return "Unknown"


__all__ = [
    "PASSWORD_MAX_LENGTH",
    "PASSWORD_MIN_LENGTH",
    "PasswordStrength",
    "password_strength_label",
    "validate_password",
]
