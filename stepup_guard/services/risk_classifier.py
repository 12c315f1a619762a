"""
risk_classifier.py
------------------
Decide si una transacción requiere verificación step-up (TOTP).

Una transacción es de alto riesgo si cumple CUALQUIERA de:
  1. value > umbral (1 ETH = 10**18 wei por defecto)
  2. el protocolo destino es conocido (Uniswap, Aave, etc.)
  3. la transacción dispara al menos una sub-llamada a contrato

Las reglas se combinan con OR: el orden no cambia el resultado.
Función pura: sin I/O, sin reloj, sin estado global. La
configuración llega explícita en un RiskPolicy.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from stepup_guard.core.config import (
    DEFAULT_HIGH_RISK_THRESHOLD_WEI,
    DEFAULT_KNOWN_PROTOCOLS,
)
from stepup_guard.domain.models import TransactionTrace


@dataclass(frozen=True)
class RiskPolicy:
    high_risk_threshold: int            = DEFAULT_HIGH_RISK_THRESHOLD_WEI
    known_protocols:     frozenset[str] = frozenset(DEFAULT_KNOWN_PROTOCOLS)

    @classmethod
    def build(cls, high_risk_threshold: int, known_protocols: Iterable[str]) -> "RiskPolicy":
        return cls(
            high_risk_threshold = high_risk_threshold,
            known_protocols     = frozenset(p.lower() for p in known_protocols if p),
        )

    @classmethod
    def from_settings(cls, settings) -> "RiskPolicy":
        return cls.build(settings.HIGH_RISK_THRESHOLD_WEI, settings.KNOWN_PROTOCOLS)


DEFAULT_POLICY = RiskPolicy()


def risk_reasons(
    trace:         TransactionTrace,
    protocol_name: Optional[str] = None,
    policy:        RiskPolicy    = DEFAULT_POLICY,
) -> tuple[str, ...]:
    """
    Retorna un reason code por cada regla que se activa.
    Tupla vacía → la transacción no requiere step-up.
    """
    reasons: list[str] = []

    if trace.value > policy.high_risk_threshold:
        reasons.append("HIGH_VALUE_TRANSFER")

    if protocol_name is None:
        protocol_name = trace.protocol_name

    if protocol_name:
        normalized = protocol_name.lower()
        if normalized in policy.known_protocols:
            reasons.append(f"KNOWN_PROTOCOL_{normalized.upper()}")

    if trace.calls:
        reasons.append(f"CONTRACT_INTERACTION_{len(trace.calls)}_CALLS")

    return tuple(reasons)


def requires_step_up(
    trace:         TransactionTrace,
    protocol_name: Optional[str] = None,
    policy:        RiskPolicy    = DEFAULT_POLICY,
) -> bool:
    return bool(risk_reasons(trace, protocol_name, policy))
