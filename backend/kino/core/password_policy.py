from __future__ import annotations

import re
from typing import List

from fastapi import HTTPException, status

from kino.core.config import settings

_UPPERCASE_RE = re.compile(r"[A-Z]")
_NUMBER_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


def evaluate_password(password: str) -> List[str]:
    """
    Returns a list of violation codes if the password does not meet policy.

    Recognized options (each independently togglable via settings):
      - PASSWORD_MIN_LENGTH      -> "min_length"
      - PASSWORD_REQUIRE_DIGIT   -> "number"
      - PASSWORD_REQUIRE_UPPER   -> "uppercase"
      - PASSWORD_REQUIRE_SYMBOL  -> "special_char"
    """
    pw = password or ""
    violations: list[str] = []
    min_length = max(int(getattr(settings, "PASSWORD_MIN_LENGTH", 6) or 0), 1)

    if len(pw) < min_length:
        violations.append("min_length")
    if settings.PASSWORD_REQUIRE_UPPER and not _UPPERCASE_RE.search(pw):
        violations.append("uppercase")
    if settings.PASSWORD_REQUIRE_DIGIT and not _NUMBER_RE.search(pw):
        violations.append("number")
    if settings.PASSWORD_REQUIRE_SYMBOL and not _SPECIAL_RE.search(pw):
        violations.append("special_char")

    return violations


def ensure_strong_password(password: str) -> None:
    violations = evaluate_password(password)
    if violations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "WEAK_PASSWORD",
                "message": "Password does not meet requirements.",
                "details": {"code": "WEAK_PASSWORD", "violations": violations},
            },
        )
