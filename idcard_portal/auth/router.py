from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from idcard_portal.auth.deps import SESSION_COOKIE, get_current_employee
from idcard_portal.core import accounts
from idcard_portal.core.config import settings
from idcard_portal.core.i18n import get_language, message
from idcard_portal.core.security import sign_session
from idcard_portal.schemas import CamelModel
from idcard_portal.storage.base import Store
from idcard_portal.storage.deps import get_store
from idcard_portal.utils.validation import password_strength

router = APIRouter(prefix="/api", tags=["auth"])


class RegisterIn(CamelModel):
    emp_no: str
    name: str = ""
    mobile: str
    email: Optional[str] = None
    password: str
    confirm_password: Optional[str] = None


class LoginIn(CamelModel):
    emp_no: str
    password: str


class OtpRequestIn(CamelModel):
    emp_no: str
    mobile: Optional[str] = None
    email: Optional[str] = None


class OtpVerifyIn(CamelModel):
    emp_no: str
    otp: str


class ResetIn(CamelModel):
    emp_no: str
    otp: str
    new_password: str
    confirm_password: str


class ChangePasswordIn(CamelModel):
    current_password: str = ""
    new_password: str = ""
    confirm_password: Optional[str] = None


def _login_response(employee_no: str, body: dict) -> JSONResponse:
    resp = JSONResponse(body)
    resp.set_cookie(
        SESSION_COOKIE,
        sign_session({"employee_no": employee_no}),
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
        secure=settings.COOKIE_SECURE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
    )
    return resp


def _fail(status_code: int, msg: str, errors: dict | None = None, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "message": msg, "errors": errors or {}, **extra})


@router.post("/register")
def register(body: RegisterIn, store: Store = Depends(get_store), lang: str = Depends(get_language)):
    res = accounts.register(
        store,
        employee_no=body.emp_no,
        name=body.name,
        mobile=body.mobile,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        language=lang,
    )
    # 0..5 checks met, drives the strength meter
    strength = password_strength(body.password)
    if not res.ok:
        return _fail(400, res.message, res.errors, passwordStrength=strength)
    return {"ok": True, "message": res.message, "passwordStrength": strength, "navigate": {"view": "login-options"}}


@router.post("/login")
def login(body: LoginIn, store: Store = Depends(get_store), lang: str = Depends(get_language)):
    res = accounts.authenticate(store, body.emp_no, body.password, language=lang)
    if not res.ok:
        return _fail(401, res.message, res.errors)
    emp = res.account.employee_no
    return _login_response(emp, {"ok": True, "employeeNo": emp, "name": res.account.name, "navigate": {"view": "dashboard"}})


@router.post("/otp/request")
def otp_request(body: OtpRequestIn, lang: str = Depends(get_language)):
    challenge, errors = accounts.request_otp(body.emp_no, body.mobile, body.email, language=lang)
    if challenge is None:
        return _fail(400, message("otp_invalid", lang), errors)
    return {
        "ok": True,
        "message": message("otp_sent", lang),
        "otpLength": challenge.length,
        "resendAfter": challenge.resend_after.isoformat(),
        "resendSeconds": settings.OTP_RESEND_SECONDS,
    }


@router.post("/otp/verify")
def otp_verify(body: OtpVerifyIn, store: Store = Depends(get_store), lang: str = Depends(get_language)):
    challenge, errors = accounts.request_otp(body.emp_no, require_mobile=False, language=lang)
    if challenge is None or not accounts.verify_otp(body.otp):
        return _fail(401, message("otp_invalid", lang), errors)
    account = accounts.load_account(store, challenge.employee_no)
    return _login_response(
        challenge.employee_no,
        {
            "ok": True,
            "employeeNo": challenge.employee_no,
            "name": account.name if account else "",
            "navigate": {"view": "dashboard"},
        },
    )


@router.post("/logout")
def logout():
    resp = JSONResponse({"ok": True, "navigate": {"view": "landing"}})
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.post("/forgot-password/otp")
def forgot_password_otp(body: OtpRequestIn, lang: str = Depends(get_language)):
    challenge, errors = accounts.request_otp(body.emp_no, require_mobile=False, language=lang)
    if challenge is None:
        return _fail(400, message("otp_invalid", lang), errors)
    return {"ok": True, "message": message("otp_sent", lang), "resendAfter": challenge.resend_after.isoformat()}


@router.post("/forgot-password/reset")
def forgot_password_reset(body: ResetIn, store: Store = Depends(get_store), lang: str = Depends(get_language)):
    res = accounts.reset_password(
        store, body.emp_no, body.otp, body.new_password, body.confirm_password, language=lang
    )
    if not res.ok:
        return _fail(400, res.message)
    return {"ok": True, "message": res.message, "navigate": {"view": "login-password"}}


@router.post("/change-password")
def change_password(
    body: ChangePasswordIn,
    store: Store = Depends(get_store),
    employee_no: str = Depends(get_current_employee),
    lang: str = Depends(get_language),
):
    res = accounts.change_password(
        store,
        employee_no,
        body.current_password,
        body.new_password,
        body.confirm_password,
        language=lang,
    )
    if not res.ok:
        return _fail(400, res.message)
    return {"ok": True, "message": res.message, "navigate": {"view": "dashboard"}}
