from fastapi import Request, HTTPException
from idcard_portal.core.security import verify_session
from idcard_portal.storage.keys import normalize_employee_no

SESSION_COOKIE = "sid"


def get_optional_employee(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    payload = verify_session(token)
    if not payload:
        return None
    return normalize_employee_no(payload.get("employee_no"))


def get_current_employee(request: Request) -> str:
    employee_no = get_optional_employee(request)
    if not employee_no:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return employee_no
