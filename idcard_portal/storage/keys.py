"""Local store key layout.

The key names are shared with the browser build of the portal, so they must
stay byte-for-byte identical:

    idcardDraft                      -> JSON Draft
    lastSubmittedApplication         -> JSON SubmittedApplication
    idcard_data_{employeeNo}         -> JSON FormValues (or {"formData": ...})
    idcard_submitted_{employeeNo}    -> "true" once that employee submitted
    idcard_account_{employeeNo}      -> JSON mock account
"""

from __future__ import annotations

import re

DRAFT_KEY = "idcardDraft"
LAST_SUBMITTED_KEY = "lastSubmittedApplication"

EMPLOYEE_DATA_PREFIX = "idcard_data_"
EMPLOYEE_SUBMITTED_PREFIX = "idcard_submitted_"
ACCOUNT_PREFIX = "idcard_account_"

SUBMITTED_MARKER = "true"

_EMPLOYEE_NO_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


def normalize_employee_no(value) -> str | None:
    """Trimmed employee number, or None if it cannot be used in a key."""
    if value is None:
        return None
    s = str(value).strip()
    if not s or not _EMPLOYEE_NO_RE.match(s):
        return None
    return s


def _require(employee_no: str) -> str:
    emp = normalize_employee_no(employee_no)
    if emp is None:
        raise ValueError(f"invalid employee number: {employee_no!r}")
    return emp


def employee_data_key(employee_no: str) -> str:
    return f"{EMPLOYEE_DATA_PREFIX}{_require(employee_no)}"


def employee_submitted_key(employee_no: str) -> str:
    return f"{EMPLOYEE_SUBMITTED_PREFIX}{_require(employee_no)}"


def account_key(employee_no: str) -> str:
    return f"{ACCOUNT_PREFIX}{_require(employee_no)}"
