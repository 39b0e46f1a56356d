"""Shape checks and required-field rules for normalized submissions."""
from __future__ import annotations

import re
from typing import Optional

from lead_intake.core.exceptions import BadRequestError
from lead_intake.schemas.lead import LeadSubmission

# Browser-side \s: ECMAScript whitespace and line terminators, which is not
# the same set as Python's \s.
_WS = r"\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

_EMAIL_PATTERN = re.compile(rf"[^{_WS}@]+@[^{_WS}@]+\.[^{_WS}@]+")
# Deliberately loose: digits, plus, whitespace, parentheses and hyphens.
_PHONE_PATTERN = re.compile(rf"[0-9+{_WS}()\-]{{7,20}}")


def is_email(value: Optional[str]) -> bool:
    """Validate email shape (local@domain.tld)."""
    if not value:
        return False
    return _EMAIL_PATTERN.fullmatch(value) is not None


def is_phone(value: Optional[str]) -> bool:
    """Validate phone shape."""
    if not value:
        return False
    return _PHONE_PATTERN.fullmatch(value) is not None


def validation_error(submission: LeadSubmission) -> Optional[str]:
    """Return the error code of the first failing rule, or None."""
    if not submission.public_path:
        return "missing_public_path"

    if not submission.email and not submission.phone:
        return "missing_contact"

    if submission.email and not is_email(submission.email):
        return "bad_email"

    if submission.phone and not is_phone(submission.phone):
        return "bad_phone"

    return None


def validate_submission(submission: LeadSubmission) -> None:
    code = validation_error(submission)
    if code is not None:
        raise BadRequestError(message="Submission rejected", code=code)
