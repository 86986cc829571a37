"""Field rules for the registration wizard.

Each function returns the list of problems found; an empty list means the
step may be submitted. The backend re-validates everything.
"""

from __future__ import annotations

import re
from datetime import date
from typing import List, Optional

from femo_client.domain.identifier import is_valid_femo_mail
from femo_client.domain.password import validate_password

MINIMUM_AGE = 13

_FEMO_MAIL_NAME_RE = re.compile(r"[a-zA-Z0-9_.-]+")


def age_on(birthday: date, today: date) -> int:
    """Whole years between ``birthday`` and ``today``."""
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def identity_problems(first_name: str, last_name: str, birthday: str, *, today: Optional[date] = None) -> List[str]:
    problems: List[str] = []
    if not (first_name or "").strip():
        problems.append("First name is required")
    if not (last_name or "").strip():
        problems.append("Last name is required")

    if not birthday:
        problems.append("Birthday is required")
    else:
        try:
            born = date.fromisoformat(birthday)
        except ValueError:
            problems.append("Enter a valid birthday")
        else:
            if age_on(born, today or date.today()) < MINIMUM_AGE:
                problems.append(f"You must be at least {MINIMUM_AGE} years old")
    return problems


def account_problems(email: str, password: str, terms_accepted: bool, privacy_accepted: bool) -> List[str]:
    problems: List[str] = []
    if not is_valid_femo_mail((email or "").strip()):
        problems.append("Enter a valid email address")
    problems.extend(validate_password(password).feedback)
    if not terms_accepted:
        problems.append("Terms must be accepted")
    if not privacy_accepted:
        problems.append("Privacy policy must be accepted")
    return problems


def credential_problems(
    email: str,
    password: str,
    confirm_password: str,
    country: str,
    terms_accepted: bool,
    privacy_accepted: bool,
) -> List[str]:
    problems = account_problems(email, password, terms_accepted, privacy_accepted)
    if not confirm_password:
        problems.append("Confirm your password")
    elif confirm_password != password:
        problems.append("Passwords do not match")
    if not (country or "").strip():
        problems.append("Country is required")
    return problems


def femo_mail_name_problems(femo_mail_name: str) -> List[str]:
    name = (femo_mail_name or "").strip()
    if not name:
        return ["Femo Mail name is required"]
    if not _FEMO_MAIL_NAME_RE.fullmatch(name):
        return ["Femo Mail name may only contain letters, digits, dots, dashes and underscores"]
    return []


__all__ = [
    "MINIMUM_AGE",
    "account_problems",
    "age_on",
    "credential_problems",
    "femo_mail_name_problems",
    "identity_problems",
]
