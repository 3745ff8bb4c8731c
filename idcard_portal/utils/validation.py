from __future__ import annotations

import re as _re
from datetime import date, datetime
from typing import Sequence

from idcard_portal.core.config import settings
from idcard_portal.core.i18n import txt
from idcard_portal.schemas import FamilyMember, FormValues

_EMAIL_RE = _re.compile(r"\S+@\S+\.\S+")
_STRICT_EMAIL_RE = _re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MOBILE_RE = _re.compile(r"^\d{10}$")
_PIN_RE = _re.compile(r"^\d{6}$")
_DIGITS_RE = _re.compile(r"^\d+$")
_SPECIAL_CHARS = "!@#$%&*"


def _is_empty(val) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


def _parse_date(val: str) -> date | None:
    try:
        return datetime.strptime(val.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


# field -> (en, hi) "required" messages for the apply form
_REQUIRED: dict[str, tuple[str, str]] = {
    "purpose": ("Purpose is required.", "उद्देश्य आवश्यक है।"),
    "department": ("Department is required.", "विभाग आवश्यक है।"),
    "unit": ("Unit is required.", "यूनिट आवश्यक है।"),
    "employee_name_en": ("Employee name is required.", "कर्मचारी का नाम आवश्यक है।"),
    "designation_en": ("Designation is required.", "पद आवश्यक है।"),
    "date_of_appointment": ("Date of appointment is required.", "नियुक्ति की तारीख आवश्यक है।"),
    "residential_address": ("Residential address is required.", "निवास पता आवश्यक है।"),
    "district": ("District is required.", "जिला आवश्यक है।"),
    "state": ("State is required.", "राज्य आवश्यक है।"),
}


def _format_errors(values: FormValues, language: str | None, *, required: bool) -> dict[str, str]:
    e: dict[str, str] = {}

    email = values.email
    if _is_empty(email):
        if required:
            e["email"] = txt("Email is required.", "ईमेल आवश्यक है।", language)
    elif not _EMAIL_RE.search(email):
        e["email"] = txt("Enter a valid email.", "मान्य ईमेल दर्ज करें।", language)

    mobile = values.mobile_number
    if _is_empty(mobile):
        if required:
            e["mobile_number"] = txt("Mobile number is required.", "मोबाइल नंबर आवश्यक है।", language)
    elif not _MOBILE_RE.match(mobile):
        e["mobile_number"] = txt(
            "Enter a valid 10-digit mobile number.", "मान्य 10-अंकीय मोबाइल नंबर दर्ज करें।", language
        )

    pin = values.pin_code
    if _is_empty(pin):
        if required:
            e["pin_code"] = txt("Pin code is required.", "पिन कोड आवश्यक है।", language)
    elif not _PIN_RE.match(pin.strip()):
        e["pin_code"] = txt("Enter a valid 6-digit pin code.", "मान्य 6-अंकीय पिन कोड दर्ज करें।", language)
    return e


def _family_errors(members: Sequence[FamilyMember], language: str | None, today: date) -> dict[str, str]:
    if not members:
        return {"family": txt("Add at least one family member.", "कम से कम एक परिवार का सदस्य जोड़ें।", language)}

    e: dict[str, str] = {}
    primary = members[0]
    if _is_empty(primary.name):
        e["family.0.name"] = txt("Primary member name is required.", "प्राथमिक सदस्य का नाम आवश्यक है।", language)

    if _is_empty(primary.age):
        e["family.0.age"] = txt("Primary member DOB is required.", "प्राथमिक सदस्य की जन्मतिथि आवश्यक है।", language)
    else:
        dob = _parse_date(primary.age)
        if dob is None:
            e["family.0.age"] = txt(
                "Enter a valid date for primary member DOB.",
                "प्राथमिक सदस्य की जन्मतिथि के लिए मान्य तारीख दर्ज करें।",
                language,
            )
        elif dob > today:
            e["family.0.age"] = txt("DOB cannot be in the future.", "जन्मतिथि भविष्य में नहीं हो सकती।", language)
    return e


def validate_application(
    values: FormValues,
    *,
    language: str | None = None,
    family_members: Sequence[FamilyMember] | None = None,
    forwarding_officer: str | None = None,
    today: date | None = None,
) -> dict[str, str]:
    """Apply-form rules. Returns field -> message; empty dict means valid."""
    e: dict[str, str] = {}
    for field, (en, hi) in _REQUIRED.items():
        if _is_empty(getattr(values, field)):
            e[field] = txt(en, hi, language)

    e.update(_format_errors(values, language, required=True))

    if _is_empty(forwarding_officer):
        e["forwarding_officer"] = txt("Select a forwarding officer.", "कृपया एक फॉरवर्डिंग अधिकारी चुनें।", language)

    e.update(_family_errors(list(family_members or []), language, today or date.today()))
    return e


def validate_update(values: FormValues, *, language: str | None = None) -> dict[str, str]:
    """Update-form rules: a name, and well-formed values where given."""
    e: dict[str, str] = {}
    if _is_empty(values.employee_name_en):
        e["employee_name_en"] = txt(*_REQUIRED["employee_name_en"], language)
    e.update(_format_errors(values, language, required=False))
    return e


def validate_document_sizes(sizes: Sequence[int | None]) -> list[int]:
    """Indexes of documents larger than MAX_UPLOAD_MB."""
    limit = settings.MAX_UPLOAD_MB * 1024 * 1024
    return [i for i, s in enumerate(sizes) if s is not None and s > limit]


# ---- auth field rules ----


def employee_no_error(value: str | None, language: str | None = None) -> str | None:
    if _is_empty(value) or not _DIGITS_RE.match(value.strip()):
        return txt(
            "Employee number must contain only digits",
            "कर्मचारी संख्या में केवल अंक होने चाहिए",
            language,
        )
    return None


def mobile_error(value: str | None, language: str | None = None) -> str | None:
    v = (value or "").strip()
    if not _DIGITS_RE.match(v):
        return txt("Mobile must contain only digits", "मोबाइल में केवल अंक होने चाहिए", language)
    if len(v) != 10:
        return txt("Mobile must be exactly 10 digits", "मोबाइल 10 अंकों का होना चाहिए", language)
    return None


def optional_email_error(value: str | None, language: str | None = None) -> str | None:
    if _is_empty(value):
        return None
    if not _STRICT_EMAIL_RE.match(value.strip()):
        return txt("Enter a valid email", "मान्य ईमेल दर्ज करें", language)
    return None


def otp_error(value: str | None, language: str | None = None) -> str | None:
    v = (value or "").strip()
    if len(v) != settings.OTP_LENGTH or not _DIGITS_RE.match(v):
        return txt("Enter the 6-digit OTP.", "6 अंकों का ओटीपी दर्ज करें।", language)
    return None


def password_checks(pwd: str) -> dict[str, bool]:
    return {
        "min_length": len(pwd) >= settings.PASSWORD_MIN_LENGTH,
        "has_upper_case": bool(_re.search(r"[A-Z]", pwd)),
        "has_lower_case": bool(_re.search(r"[a-z]", pwd)),
        "has_digit": bool(_re.search(r"\d", pwd)),
        "has_special_char": any(c in _SPECIAL_CHARS for c in pwd),
    }


def password_strength(pwd: str) -> int:
    """Number of satisfied checks (0..5)."""
    return sum(password_checks(pwd).values())


def strong_password_error(pwd: str | None, language: str | None = None) -> str | None:
    if not all(password_checks(pwd or "").values()):
        return txt(
            "Password must have 8+ characters, upper and lower case letters, a digit and one of !@#$%&*.",
            "पासवर्ड में 8+ अक्षर, बड़े और छोटे अक्षर, एक अंक और !@#$%&* में से एक होना चाहिए।",
            language,
        )
    return None


def new_password_error(new: str | None, confirm: str | None, language: str | None = None) -> str | None:
    """Change/reset screens only ask for a minimum length and a matching confirmation."""
    if not new or not confirm:
        return txt("Please fill all fields.", "कृपया सभी फ़ील्ड भरें।", language)
    if len(new) < settings.PASSWORD_MIN_LENGTH:
        return txt("Password must be at least 8 characters.", "पासवर्ड कम से कम 8 अंकों का होना चाहिए।", language)
    if new != confirm:
        return txt("New passwords do not match.", "नए पासवर्ड मेल नहीं खाते।", language)
    return None
