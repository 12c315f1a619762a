from datetime import datetime, timezone

import pytest

from stepup_guard.domain.models import TransactionTrace
from stepup_guard.services.detection_orchestrator import DetectionOrchestrator
from stepup_guard.services.totp_engine import TotpEngine

ONE_ETH = 10**18

# Secreto ASCII "12345678901234567890" del apéndice B de RFC 6238
RFC6238_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"

# Múltiplo exacto de 30s: inicio de un paso TOTP
FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine() -> TotpEngine:
    return TotpEngine()


@pytest.fixture
def secret(engine) -> str:
    return engine.generate_secret()


@pytest.fixture
def orchestrator(engine) -> DetectionOrchestrator:
    return DetectionOrchestrator(totp_engine=engine, clock=lambda: FIXED_NOW)


@pytest.fixture
def high_value_trace() -> TransactionTrace:
    return TransactionTrace(value=2 * ONE_ETH)


@pytest.fixture
def low_risk_trace() -> TransactionTrace:
    return TransactionTrace(value=10)
