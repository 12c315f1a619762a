"""
models.py
---------
Tipos de dominio del núcleo de decisión.

Son inmutables (dataclasses frozen): el caller construye el
TransactionTrace antes de invocar al núcleo y el orquestador produce
un DetectionVerdict nuevo en cada llamada.
"""

from dataclasses import dataclass
from typing import Any, Optional

from stepup_guard.core.exceptions import InvalidTraceValueException


@dataclass(frozen=True)
class TransactionTrace:
    """
    Vista mínima de la transacción que necesita el clasificador.

    value          → monto en la denominación mínima (wei), int sin límite
    calls          → sub-llamadas en orden; solo importa si hay alguna
    protocol_name  → nombre del protocolo destino, si se conoce
    """
    value:         int                  = 0
    calls:         tuple[Any, ...]      = ()
    protocol_name: Optional[str]        = None


@dataclass(frozen=True)
class DetectionVerdict:
    """
    Resultado del orquestador.

    blocked = True significa que la transacción NO debe continuar.
    errored = True solo cuando faltan credenciales para el step-up.
    """
    requires_step_up: bool
    blocked:          bool
    errored:          bool
    message:          str
    reason_codes:     tuple[str, ...] = ()

    @property
    def allowed(self) -> bool:
        return not self.blocked


def parse_wei_value(raw: Optional[str | int]) -> int:
    """
    Convierte trace.value del wire (string decimal) a int.

    None o "" se tratan como 0. Cualquier otra cosa que no sea un
    entero decimal sin signo lanza InvalidTraceValueException.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise InvalidTraceValueException()
    if isinstance(raw, int):
        if raw < 0:
            raise InvalidTraceValueException()
        return raw

    text = raw.strip()
    if not text:
        return 0
    # str.isdigit acepta dígitos unicode como '²'; exigimos ASCII
    if not (text.isascii() and text.isdigit()):
        raise InvalidTraceValueException(
            f"trace.value must be an unsigned decimal integer, got {raw!r}."
        )
    try:
        return int(text)
    except ValueError:
        # Supera el límite de dígitos de int() del intérprete
        raise InvalidTraceValueException(
            f"trace.value has too many digits ({len(text)})."
        )
