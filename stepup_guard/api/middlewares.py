"""
middlewares.py
--------------
Middlewares de stepup-guard.

Middlewares incluidos:
  1. RequestTimingMiddleware   → mide cada request y agrega X-Response-Time-Ms
  2. SecurityHeadersMiddleware → agrega headers de seguridad HTTP
  3. setup_cors()              → configura CORS para los clientes web

Orden de registro en main.py (importa el orden):
  1. CORS            → primero, para que preflight requests pasen
  2. SecurityHeaders → segundo, aplica a todas las respuestas
  3. RequestTiming   → último registrado, primero en ejecutarse
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 1. Request timing
# ─────────────────────────────────────────────────────────────────────

class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Agrega X-Response-Time-Ms y deja una línea DEBUG por request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)
        logger.debug(
            f"[HTTP] {request.method} {request.url.path} "
            f"status={response.status_code} ms={elapsed_ms}"
        )
        return response


# ─────────────────────────────────────────────────────────────────────
# 2. Security Headers Middleware
# ─────────────────────────────────────────────────────────────────────

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Headers incluidos:
      - X-Content-Type-Options → evita MIME sniffing
      - X-Frame-Options        → evita clickjacking
      - Referrer-Policy        → controla información del referrer
      - Cache-Control          → los secretos de /2fa/enroll no se cachean
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = (
            "no-store, no-cache, must-revalidate, private"
        )
        return response


# ─────────────────────────────────────────────────────────────────────
# 3. CORS
# ─────────────────────────────────────────────────────────────────────

def setup_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    """
    Llamar desde main.py antes de registrar otros middlewares:
        setup_cors(app, settings.ALLOWED_ORIGINS)
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins     = allowed_origins,
        allow_credentials = True,
        allow_methods     = ["GET", "POST", "OPTIONS"],
        allow_headers     = ["Content-Type", "Authorization", "X-Request-ID"],
        max_age           = 600,
    )
