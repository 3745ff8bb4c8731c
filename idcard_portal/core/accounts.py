"""Mock employee accounts: registration, password/OTP login, password change and reset.

These stand in for the real HR identity service. OTPs are never delivered;
any well-formed code is accepted. Accounts live in the local record store
under ``idcard_account_{employeeNo}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from idcard_portal.core.config import settings
from idcard_portal.core.errors import StoreUnavailableError
from idcard_portal.core.i18n import message
from idcard_portal.core.security import hash_password, verify_password
from idcard_portal.schemas import CamelModel, utcnow
from idcard_portal.storage.base import Store
from idcard_portal.storage.keys import account_key
from idcard_portal.utils.validation import (
    employee_no_error,
    mobile_error,
    new_password_error,
    optional_email_error,
    otp_error,
    strong_password_error,
)

logger = logging.getLogger("idcard_portal.accounts")


class Account(CamelModel):
    employee_no: str
    name: str = ""
    mobile: str = ""
    email: Optional[str] = None
    password_hash: str
    created_at: datetime


@dataclass
class AuthResult:
    ok: bool
    message: str = ""
    errors: dict[str, str] = field(default_factory=dict)
    account: Account | None = None


@dataclass(frozen=True)
class OtpChallenge:
    employee_no: str
    resend_after: datetime
    length: int


def load_account(store: Store, employee_no: str | None) -> Account | None:
    if employee_no_error(employee_no) is not None:
        return None
    try:
        raw = store.get(account_key(employee_no.strip()))
    except StoreUnavailableError as exc:
        logger.warning("Account store unavailable: %s", exc)
        return None
    if not raw:
        return None
    try:
        return Account.model_validate_json(raw)
    except ValidationError:
        logger.debug("Ignoring unreadable account %s", employee_no)
        return None


def _save_account(store: Store, account: Account) -> bool:
    try:
        store.set(account_key(account.employee_no), account.to_json())
        return True
    except StoreUnavailableError as exc:
        logger.warning("Account %s not saved: %s", account.employee_no, exc)
        return False


def register(
    store: Store,
    *,
    employee_no: str,
    name: str,
    mobile: str,
    password: str,
    confirm_password: str | None = None,
    email: str | None = None,
    language: str | None = None,
) -> AuthResult:
    errors: dict[str, str] = {}
    for key, err in (
        ("empNo", employee_no_error(employee_no, language)),
        ("mobile", mobile_error(mobile, language)),
        ("email", optional_email_error(email, language)),
        ("password", strong_password_error(password, language)),
    ):
        if err:
            errors[key] = err
    if confirm_password is not None and confirm_password != password:
        errors["confirmPassword"] = new_password_error(password, confirm_password, language) or ""
    if errors:
        return AuthResult(ok=False, message=message("register_failed", language), errors=errors)

    emp = employee_no.strip()
    if load_account(store, emp) is not None:
        return AuthResult(ok=False, message=message("register_failed", language))

    account = Account(
        employee_no=emp,
        name=(name or "").strip(),
        mobile=mobile.strip(),
        email=(email or "").strip() or None,
        password_hash=hash_password(password),
        created_at=utcnow(),
    )
    if not _save_account(store, account):
        return AuthResult(ok=False, message=message("register_failed", language))
    logger.info("Registered employee %s", emp)
    return AuthResult(ok=True, message=message("registered", language), account=account)


def authenticate(store: Store, employee_no: str, password: str, *, language: str | None = None) -> AuthResult:
    err = employee_no_error(employee_no, language)
    if err:
        return AuthResult(ok=False, message=message("login_failed", language), errors={"empNo": err})
    account = load_account(store, employee_no)
    if account is None or not password or not verify_password(password, account.password_hash):
        return AuthResult(ok=False, message=message("login_failed", language))
    return AuthResult(ok=True, account=account)


def request_otp(
    employee_no: str,
    mobile: str | None = None,
    email: str | None = None,
    *,
    require_mobile: bool = True,
    language: str | None = None,
    now: datetime | None = None,
) -> tuple[OtpChallenge | None, dict[str, str]]:
    """Validate the OTP request. Nothing is sent anywhere."""
    errors: dict[str, str] = {}
    err = employee_no_error(employee_no, language)
    if err:
        errors["empNo"] = err
    if require_mobile:
        err = mobile_error(mobile, language)
        if err:
            errors["mobile"] = err
    err = optional_email_error(email, language)
    if err:
        errors["email"] = err
    if errors:
        return None, errors
    challenge = OtpChallenge(
        employee_no=employee_no.strip(),
        resend_after=(now or utcnow()) + timedelta(seconds=settings.OTP_RESEND_SECONDS),
        length=settings.OTP_LENGTH,
    )
    return challenge, {}


def verify_otp(code: str | None) -> bool:
    return otp_error(code) is None


def change_password(
    store: Store,
    employee_no: str,
    current_password: str,
    new_password: str,
    confirm_password: str | None = None,
    *,
    language: str | None = None,
) -> AuthResult:
    generic = message("password_failed", language)
    if not current_password:
        return AuthResult(ok=False, message=generic)
    err = new_password_error(new_password, new_password if confirm_password is None else confirm_password, language)
    if err:
        return AuthResult(ok=False, message=err)

    account = load_account(store, employee_no)
    if account is None or not verify_password(current_password, account.password_hash):
        return AuthResult(ok=False, message=generic)

    account = account.model_copy(update={"password_hash": hash_password(new_password)})
    if not _save_account(store, account):
        return AuthResult(ok=False, message=generic)
    logger.info("Password changed for employee %s", account.employee_no)
    return AuthResult(ok=True, message=message("password_updated", language), account=account)


def reset_password(
    store: Store,
    employee_no: str,
    otp: str,
    new_password: str,
    confirm_password: str,
    *,
    language: str | None = None,
) -> AuthResult:
    """Forgot-password flow: employee no -> OTP -> new password."""
    generic = message("password_failed", language)
    if not verify_otp(otp):
        return AuthResult(ok=False, message=message("otp_invalid", language))
    err = new_password_error(new_password, confirm_password, language)
    if err:
        return AuthResult(ok=False, message=err)

    account = load_account(store, employee_no)
    if account is None:
        return AuthResult(ok=False, message=generic)
    account = account.model_copy(update={"password_hash": hash_password(new_password)})
    if not _save_account(store, account):
        return AuthResult(ok=False, message=generic)
    return AuthResult(ok=True, message=message("password_reset", language), account=account)
