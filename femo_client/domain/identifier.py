"""Login identifier detection and validation.

A Femo account can be addressed either by its numeric Femo ID or by its Femo
Mail address. These rules mirror the backend's validation so obviously bad
input is rejected before any network call. The server stays authoritative:
the client check is advisory only.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

# Whitespace as browsers trim it. Unlike str.strip() this leaves the ASCII
# separator controls (\x1c-\x1f) and \x85 in place.
_WHITESPACE = (
    "\t\n\x0b\x0c\r \xa0\u1680"
    + "".join(chr(code) for code in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_DIGITS_RE = re.compile(r"\d+", re.ASCII)
_FEMO_MAIL_RE = re.compile("[^@{ws}]+@[^@{ws}]+\\.[^@{ws}]+".format(ws=re.escape(_WHITESPACE)))


class IdentifierType(str, Enum):
    FEMO_ID = "femoId"
    FEMO_MAIL = "femoMail"
    INVALID = "invalid"


def detect_identifier_type(identifier: Any) -> IdentifierType:
    """Classify raw user input as a Femo ID, a Femo Mail, or invalid.

    Total over any input: non-strings and empty strings are ``INVALID``.
    """

    if not identifier or not isinstance(identifier, str):
        return IdentifierType.INVALID

    trimmed = identifier.strip(_WHITESPACE)

    if _DIGITS_RE.fullmatch(trimmed):
        return IdentifierType.FEMO_ID

    if is_valid_femo_mail(trimmed):
        return IdentifierType.FEMO_MAIL

    return IdentifierType.INVALID


def is_valid_femo_mail(email: Any) -> bool:
    if not isinstance(email, str):
        return False
    return _FEMO_MAIL_RE.fullmatch(email) is not None


def is_valid_femo_id(femo_id: Any) -> bool:
    if femo_id is None or isinstance(femo_id, bool):
        return False
    return _DIGITS_RE.fullmatch(str(femo_id).strip(_WHITESPACE)) is not None


def sanitize_identifier(identifier: str) -> str:
    """Normalise an identifier the way the backend stores it."""
    return identifier.strip(_WHITESPACE).lower()


def identifier_type_label(identifier_type: IdentifierType) -> str:
    labels = {
        IdentifierType.FEMO_ID: "Femo ID",
        IdentifierType.FEMO_MAIL: "Femo Mail",
    }
    return labels.get(identifier_type, "Invalid")


__all__ = [
    "IdentifierType",
    "detect_identifier_type",
    "identifier_type_label",
    "is_valid_femo_id",
    "is_valid_femo_mail",
    "sanitize_identifier",
]
