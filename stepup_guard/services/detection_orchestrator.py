"""
detection_orchestrator.py
-------------------------
Orquestador de la decisión step-up.

No contiene lógica de detección propia: delega en el clasificador de
riesgo y en el motor TOTP y traduce sus resultados a un
DetectionVerdict.

Flujo:
  1. risk_reasons()          → ¿la transacción requiere step-up?
  2. no requiere             → permitido ("not required")
  3. falta código o secreto  → bloqueado + errored ("missing credentials")
  4. TotpEngine.verify()     → permitido ("verified") o bloqueado ("invalid code")

Ninguna rama lanza excepción: toda falla termina en un veredicto.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from stepup_guard.core.config import settings
from stepup_guard.domain.models import DetectionVerdict, TransactionTrace
from stepup_guard.services.risk_classifier import DEFAULT_POLICY, RiskPolicy, risk_reasons
from stepup_guard.services.totp_engine import TimeInput, TotpEngine, totp_engine

logger = logging.getLogger(__name__)

MSG_NOT_REQUIRED        = "not required"
MSG_MISSING_CREDENTIALS = "missing credentials"
MSG_VERIFIED            = "verified"
MSG_INVALID_CODE        = "invalid code"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DetectionOrchestrator:
    """
    Compone RiskClassifier y TotpEngine.

    El reloj se inyecta (clock) para que el motor TOTP siempre reciba
    el instante como argumento explícito; los tests pasan un reloj fijo
    o el parámetro now de decide().
    """

    def __init__(
        self,
        policy:      RiskPolicy                  = DEFAULT_POLICY,
        totp_engine: Optional[TotpEngine]        = None,
        clock:       Callable[[], datetime]      = _utc_now,
    ):
        self.policy      = policy
        self.totp_engine = totp_engine or TotpEngine()
        self.clock       = clock

    def decide(
        self,
        trace:           TransactionTrace,
        protocol_name:   Optional[str]       = None,
        supplied_code:   Optional[str]       = None,
        supplied_secret: Optional[str]       = None,
        now:             Optional[TimeInput] = None,
    ) -> DetectionVerdict:
        reasons = risk_reasons(trace, protocol_name, self.policy)

        if not reasons:
            return DetectionVerdict(
                requires_step_up = False,
                blocked          = False,
                errored          = False,
                message          = MSG_NOT_REQUIRED,
            )

        if not supplied_code or not supplied_secret:
            logger.info(
                f"[Orchestrator] Step-up requerido sin credenciales "
                f"reasons={','.join(reasons)}"
            )
            return DetectionVerdict(
                requires_step_up = True,
                blocked          = True,
                errored          = True,
                message          = MSG_MISSING_CREDENTIALS,
                reason_codes     = reasons,
            )

        instant = now if now is not None else self.clock()
        valid   = self.totp_engine.verify(supplied_secret, supplied_code, instant)

        if not valid:
            logger.info(
                f"[Orchestrator] Código TOTP inválido, bloqueando "
                f"reasons={','.join(reasons)}"
            )

        return DetectionVerdict(
            requires_step_up = True,
            blocked          = not valid,
            errored          = False,
            message          = MSG_VERIFIED if valid else MSG_INVALID_CODE,
            reason_codes     = reasons,
        )


# Singleton configurado desde settings
detection_orchestrator = DetectionOrchestrator(
    policy      = RiskPolicy.from_settings(settings),
    totp_engine = totp_engine,
)
