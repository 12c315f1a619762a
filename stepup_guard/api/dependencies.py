"""
dependencies.py
---------------
Dependencias reutilizables para inyectar en los routers de FastAPI.

Los routers nunca importan los singletons directamente: los reciben
con Depends() para que los tests puedan reemplazarlos con
app.dependency_overrides (por ejemplo, un orquestador con reloj fijo).

      @router.post("/detect")
      async def detect(orchestrator = Depends(get_detection_orchestrator)):
          ...
"""

from stepup_guard.core.config import Settings, settings
from stepup_guard.services.detection_orchestrator import (
    DetectionOrchestrator,
    detection_orchestrator,
)
from stepup_guard.services.totp_engine import TotpEngine, totp_engine


def get_settings() -> Settings:
    return settings


def get_detection_orchestrator() -> DetectionOrchestrator:
    return detection_orchestrator


def get_totp_engine() -> TotpEngine:
    return totp_engine
