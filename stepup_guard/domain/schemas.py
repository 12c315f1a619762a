"""
schemas.py
----------
Schemas Pydantic para requests y responses de la API.

El wire usa camelCase (compatible con los consumidores del detector
original); internamente los campos son snake_case. La validación se
limita a lo necesario para construir un TransactionTrace: direcciones y
hashes no se validan aquí.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from stepup_guard.core.config import settings
from stepup_guard.domain.models import DetectionVerdict, TransactionTrace, parse_wei_value


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator  = to_camel,
        populate_by_name = True,
        extra            = "ignore",
    )


# ─────────────────────────────────────────────────────────────────────
# DETECCIÓN
# ─────────────────────────────────────────────────────────────────────

class TraceCall(WireModel):
    """Sub-llamada del trace. Para el núcleo solo importa que exista."""
    model_config = ConfigDict(extra="allow")

    from_:   Optional[str] = Field(None, alias="from")
    to:      Optional[str] = None
    input:   Optional[str] = None
    output:  Optional[str] = None
    gas_used: Optional[str] = None
    value:   Optional[str] = None


class TraceInput(WireModel):
    block_number:     Optional[int]  = None
    from_:            Optional[str]  = Field(None, alias="from")
    to:               Optional[str]  = None
    transaction_hash: Optional[str]  = None
    input:            Optional[str]  = None
    output:           Optional[str]  = None
    gas:              Optional[str]  = None
    gas_used:         Optional[str]  = None
    # String decimal de un entero sin signo; se parsea sin límite de bits
    value:            Optional[str | int] = None
    calls:            List[TraceCall] = Field(default_factory=list)


class AdditionalData(WireModel):
    model_config = ConfigDict(extra="allow")

    two_factor_code: Optional[str] = None
    user_secret:     Optional[str] = None

    @field_validator("two_factor_code", mode="before")
    @classmethod
    def stringify_code(cls, v):
        """Clientes laxos mandan el código como número JSON: 12345 → '012345'."""
        if isinstance(v, int) and not isinstance(v, bool) and v >= 0:
            return str(v).zfill(settings.TOTP_DIGITS)
        return v


class DetectionRequest(WireModel):
    id:               Optional[str]            = None
    detector_name:    Optional[str]            = None
    chain_id:         Optional[int]            = None
    hash:             Optional[str]            = None
    protocol_name:    Optional[str]            = None
    protocol_address: Optional[str]            = None
    trace:            TraceInput
    additional_data:  Optional[AdditionalData] = None

    def to_trace(self) -> TransactionTrace:
        """Lanza InvalidTraceValueException si trace.value no es un entero."""
        return TransactionTrace(
            value         = parse_wei_value(self.trace.value),
            calls         = tuple(self.trace.calls),
            protocol_name = self.protocol_name,
        )

    @property
    def two_factor_code(self) -> Optional[str]:
        return self.additional_data.two_factor_code if self.additional_data else None

    @property
    def user_secret(self) -> Optional[str]:
        return self.additional_data.user_secret if self.additional_data else None


class DetectionResponse(WireModel):
    # Eco de la identidad del request
    id:               Optional[str] = None
    detector_name:    Optional[str] = None
    chain_id:         Optional[int] = None
    hash:             Optional[str] = None
    protocol_name:    Optional[str] = None
    protocol_address: Optional[str] = None

    # Veredicto
    requires_step_up: bool
    blocked:          bool
    # Alias de blocked para consumidores del flag "detected" original
    detected:         bool
    error:            bool
    message:          str
    reason_codes:     List[str] = Field(default_factory=list)

    @classmethod
    def from_verdict(cls, request: DetectionRequest, verdict: DetectionVerdict) -> "DetectionResponse":
        return cls(
            id               = request.id,
            detector_name    = request.detector_name,
            chain_id         = request.chain_id,
            hash             = request.hash,
            protocol_name    = request.protocol_name,
            protocol_address = request.protocol_address,
            requires_step_up = verdict.requires_step_up,
            blocked          = verdict.blocked,
            detected         = verdict.blocked,
            error            = verdict.errored,
            message          = verdict.message,
            reason_codes     = list(verdict.reason_codes),
        )


# ─────────────────────────────────────────────────────────────────────
# ENROLAMIENTO 2FA
# ─────────────────────────────────────────────────────────────────────

class EnrollmentRequest(WireModel):
    account: str           = Field(..., min_length=1, max_length=200)
    # Si no viene, el servicio genera uno nuevo
    secret:  Optional[str] = Field(None, min_length=16, max_length=128)


class EnrollmentResponse(WireModel):
    secret: str
    uri:    str
    issuer: str


# ─────────────────────────────────────────────────────────────────────
# APP
# ─────────────────────────────────────────────────────────────────────

class VersionResponse(BaseModel):
    name:    str
    version: str


class HealthResponse(BaseModel):
    message: str = "OK"
