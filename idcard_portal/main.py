from __future__ import annotations

import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse
from starlette.responses import JSONResponse
from starlette.templating import Jinja2Templates

from idcard_portal.core.config import settings
from idcard_portal.core.i18n import message, normalize_language

from idcard_portal.auth.router import router as auth_router
from idcard_portal.modules.applications.router import router as applications_router
from idcard_portal.modules.dashboard.router import router as dashboard_router


logger = logging.getLogger("idcard_portal")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _wants_html(request: Request) -> bool:
    if request.url.path.startswith("/api/"):
        return False
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept


def _lang(request: Request) -> str:
    return normalize_language(request.query_params.get("lang"))


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app = FastAPI(title=settings.APP_NAME)
app.state.templates = templates

# CORS (Access-Control-Allow-*) - configurable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
)

app.add_middleware(GZipMiddleware, minimum_size=800)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start = time.perf_counter()
    resp = await call_next(request)
    resp.headers["X-Process-Time-ms"] = f"{(time.perf_counter() - start) * 1000:.2f}"
    return resp


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    resp = await call_next(request)
    resp.headers["X-Content-Type-Options"] = "nosniff"
    resp.headers["X-Frame-Options"] = "SAMEORIGIN"
    resp.headers["Referrer-Policy"] = "same-origin"
    resp.headers["Permissions-Policy"] = "geolocation=(), camera=(), microphone=()"
    return resp


@app.exception_handler(HTTPException)
async def http_exc_handler(request: Request, exc: HTTPException):
    lang = _lang(request)

    if exc.status_code == 401:
        if _wants_html(request):
            return templates.TemplateResponse(
                request,
                "error.html",
                {"lang": lang, "status_code": 401, "detail": message("not_authenticated", lang)},
                status_code=401,
            )
        return JSONResponse(
            status_code=401,
            content={"ok": False, "detail": exc.detail, "message": message("not_authenticated", lang), "navigate": {"view": "login-options"}},
        )

    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"lang": lang, "status_code": exc.status_code, "detail": exc.detail},
            status_code=exc.status_code,
        )

    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_exc_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", exc_info=exc)
    lang = _lang(request)

    if _wants_html(request):
        return templates.TemplateResponse(
            request,
            "error.html",
            {"lang": lang, "status_code": 500, "detail": message("unexpected", lang)},
            status_code=500,
        )

    return JSONResponse(status_code=500, content={"ok": False, "message": message("unexpected", lang)})


# Routers
app.include_router(auth_router)
app.include_router(applications_router)
app.include_router(dashboard_router)


@app.on_event("startup")
def on_startup():
    # Server databases are migrated by idcard_portal.scripts.migrate; a local
    # SQLite file is created on the fly.
    if settings.store_backend() == "sql" and settings.DATABASE_URL.startswith("sqlite"):
        from idcard_portal.db.base import Base
        from idcard_portal.db.session import engine
        import idcard_portal.db.models  # noqa: F401

        Base.metadata.create_all(bind=engine)


@app.get("/health", response_class=JSONResponse)
def health():
    return {"status": "ok", "app": settings.APP_NAME, "store": settings.store_backend()}


@app.get("/", response_class=HTMLResponse)
def landing(request: Request):
    lang = _lang(request)
    return templates.TemplateResponse(request, "landing.html", {"lang": lang, "app_name": settings.APP_NAME})
