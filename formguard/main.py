from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from formguard.csrf.errors import TokenMismatch
from formguard.csrf.guard import CsrfGuard
from formguard.database import get_db
from formguard.forms import Form as HtmlForm
from formguard.forms import token_html
from formguard.migrations import run_migrations
from formguard.models import Note
from formguard.observability import configure_logging, request_logging_middleware
from formguard.routers import health
from formguard.settings import get_settings, validate_runtime_configuration
from formguard.vocab import get_vocab
from formguard.web import (
    StarletteSession,
    client_ip,
    csrf_cookie_middleware,
    get_csrf_guard,
    request_language,
)

settings = get_settings()
logger = configure_logging()
NOTE_MAX_LENGTH = 500

validate_runtime_configuration(settings)
if settings.auto_run_migrations:
    run_migrations()

app = FastAPI(title=settings.app_name)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.globals["csrf_field"] = token_html

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    same_site=settings.session_same_site,
    https_only=settings.session_https_only,
)

app.include_router(health.router)


def set_flash(request: Request, message: str, category: str = "info") -> None:
    request.session["flash"] = {"message": message, "category": category}


def pop_flash(request: Request):
    return request.session.pop("flash", None)


app.middleware("http")(csrf_cookie_middleware)
app.middleware("http")(request_logging_middleware(logger))


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(TokenMismatch)
async def token_mismatch_handler(request: Request, exc: TokenMismatch):
    return templates.TemplateResponse(
        request,
        "session_expired.html",
        {"message": exc.message},
        status_code=403,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception(
        "Unhandled error request_id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
    )


@app.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    guard: CsrfGuard = Depends(get_csrf_guard),
    db: Session = Depends(get_db),
):
    session = StarletteSession(request)
    notes = db.query(Note).order_by(Note.id.desc()).limit(50).all()
    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "flash": pop_flash(request),
            "notes": notes,
            "user": session.get("user"),
            "session_active": session.is_active(),
            "note_form": HtmlForm(guard, "/notes"),
            "session_form": HtmlForm(guard, "/session/end" if session.is_active() else "/session/start"),
            "search_form": HtmlForm(guard, "/search"),
        },
    )


@app.post("/notes")
def create_note(
    request: Request,
    body: str = Form(""),
    guard: CsrfGuard = Depends(get_csrf_guard),
    db: Session = Depends(get_db),
):
    guard.check()
    language = request_language(request)

    text = body.strip()[:NOTE_MAX_LENGTH]
    if not text:
        set_flash(request, get_vocab("note_empty", language), "error")
        return RedirectResponse("/", status_code=303)

    db.add(Note(author=StarletteSession(request).get("user"), body=text))
    db.commit()
    logger.info("Note created ip=%s", client_ip(request))
    set_flash(request, get_vocab("note_saved", language), "success")
    return RedirectResponse("/", status_code=303)


@app.api_route("/search", methods=["GET", "POST"], response_class=HTMLResponse)
def search(
    request: Request,
    guard: CsrfGuard = Depends(get_csrf_guard),
    db: Session = Depends(get_db),
):
    # Reachable through a plain link or a form post; only the post is checked.
    guard.check(post_only=True)

    if guard.is_state_changing():
        query = guard.form.read_post_field("q") or ""
    else:
        query = request.query_params.get("q", "")
    query = query.strip()

    notes = []
    if query:
        notes = (
            db.query(Note)
            .filter(Note.body.contains(query))
            .order_by(Note.id.desc())
            .limit(50)
            .all()
        )
    return templates.TemplateResponse(
        request,
        "search.html",
        {
            "title": get_vocab("search_results", request_language(request)),
            "query": query,
            "notes": notes,
            "guard": guard,
        },
    )


@app.post("/session/start")
def start_session(
    request: Request,
    display_name: str = Form(""),
    guard: CsrfGuard = Depends(get_csrf_guard),
):
    guard.check()
    session = StarletteSession(request)
    session.start(user=display_name.strip()[:64] or None)
    set_flash(request, get_vocab("session_started", request_language(request)), "success")
    return RedirectResponse("/", status_code=303)


@app.post("/session/end")
def end_session(
    request: Request,
    guard: CsrfGuard = Depends(get_csrf_guard),
):
    guard.check()
    StarletteSession(request).clear()
    return RedirectResponse("/", status_code=303)
