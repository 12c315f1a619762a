"""
main.py
-------
Entry point de stepup-guard.

El servicio es un shell HTTP delgado sobre el núcleo de decisión:
  POST /detect          → clasificación de riesgo + verificación TOTP
  POST /2fa/enroll      → secreto TOTP + URI otpauth:// para onboarding
  GET  /app/version     → nombre y versión
  GET  /app/health-check

Orden de registro de middlewares (importa el orden, se ejecutan al revés):
  1. CORS            → primero en registrarse, último en ejecutarse
  2. SecurityHeaders → headers de seguridad en todas las respuestas
  3. RequestTiming   → mide el request completo
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stepup_guard.core.config import settings
from stepup_guard.core.exceptions import StepUpGuardException
from stepup_guard.api.routers import app_info, detection, enrollment
from stepup_guard.api.middlewares import (
    RequestTimingMiddleware,
    SecurityHeadersMiddleware,
    setup_cors,
)

logger = logging.getLogger(__name__)


app = FastAPI(
    title    = "Step-up Guard API",
    version  = settings.APP_VERSION,
    docs_url = "/docs"  if settings.DEBUG else None,
    redoc_url= "/redoc" if settings.DEBUG else None,
)

# ── Middlewares (registrar en este orden exacto) ──────────────────────
setup_cors(app, allowed_origins=settings.ALLOWED_ORIGINS)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestTimingMiddleware)

# ── Routers ───────────────────────────────────────────────────────────
app.include_router(detection.router)
app.include_router(enrollment.router)
app.include_router(app_info.router)


# ── Handler global de excepciones ────────────────────────────────────
@app.exception_handler(StepUpGuardException)
async def stepup_exception_handler(
    request: Request, exc: StepUpGuardException
) -> JSONResponse:
    logger.warning(
        f"[API] {request.method} {request.url.path} → "
        f"{exc.status_code} {exc.__class__.__name__}"
    )
    return JSONResponse(
        status_code = exc.status_code,
        content     = {"error": exc.message},
    )


def configure_logging() -> None:
    """Handler raíz al nivel de LOG_LEVEL. Importar el módulo no lo toca."""
    logging.basicConfig(
        level  = settings.LOG_LEVEL,
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run() -> None:
    """Entry point de consola: `stepup-guard`."""
    import uvicorn

    configure_logging()
    uvicorn.run(
        "stepup_guard.main:app",
        host      = settings.HOST,
        port      = settings.PORT,
        log_level = settings.LOG_LEVEL.lower(),
    )
