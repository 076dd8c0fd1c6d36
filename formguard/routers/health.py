from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from formguard.csrf.errors import ConfigurationError
from formguard.database import SessionLocal
from formguard.web import get_cookie_signer

router = APIRouter(tags=["Health"])


@router.get("/healthz")
def healthz():
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    checks = {}
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError:
        checks["database"] = "unavailable"

    try:
        checks["csrf_cookie_signing"] = get_cookie_signer().algorithm
    except ConfigurationError:
        checks["csrf_cookie_signing"] = "unavailable"

    if "unavailable" in checks.values():
        return JSONResponse(status_code=503, content={"status": "not_ready", "checks": checks})
    return {"status": "ready", "checks": checks}
