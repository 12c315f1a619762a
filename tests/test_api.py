import pyotp
import pytest
from fastapi.testclient import TestClient

from stepup_guard.api.dependencies import get_detection_orchestrator
from stepup_guard.core.config import settings
from stepup_guard.main import app
from stepup_guard.services.detection_orchestrator import DetectionOrchestrator
from stepup_guard.services.totp_engine import TotpEngine

from conftest import FIXED_NOW

client = TestClient(app)

ETHEREUM_ADDRESS = "0xfdD055Cf3EaD343AD51f4C7d1F12558c52BaDFA5"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

engine = TotpEngine()
USER_SECRET = engine.generate_secret()
TWO_FACTOR_CODE = engine.generate_code_at(USER_SECRET, FIXED_NOW)


@pytest.fixture(autouse=True)
def fixed_clock():
    app.dependency_overrides[get_detection_orchestrator] = lambda: DetectionOrchestrator(
        totp_engine=engine, clock=lambda: FIXED_NOW
    )
    yield
    app.dependency_overrides = {}


def build_payload(**overrides):
    payload = {
        "id": "unique-id",
        "detectorName": "test-detector",
        "chainId": 1,
        "hash": "some hash",
        "protocolName": "some protocol",
        "protocolAddress": ZERO_ADDRESS,
        "trace": {
            "blockNumber": 12345,
            "from": ETHEREUM_ADDRESS,
            "to": ETHEREUM_ADDRESS,
            "transactionHash": "some hash",
            "input": "input",
            "output": "output",
            "gas": "100000",
            "gasUsed": "100",
            "value": "10",
            "pre": {ZERO_ADDRESS: {"balance": "0x..", "nonce": 2}},
            "post": {ZERO_ADDRESS: {"balance": "0x.."}},
            "logs": [{"address": ETHEREUM_ADDRESS, "data": "0x...", "topics": ["0x..."]}],
            "calls": [
                {
                    "from": ETHEREUM_ADDRESS,
                    "to": ETHEREUM_ADDRESS,
                    "input": "input",
                    "output": "output",
                    "gasUsed": "100",
                    "value": "10",
                }
            ],
        },
        "additionalData": {
            "twoFactorCode": TWO_FACTOR_CODE,
            "userSecret": USER_SECRET,
        },
    }
    payload.update(overrides)
    return payload


def with_trace(payload, **trace_fields):
    payload["trace"] = {**payload["trace"], **trace_fields}
    return payload


# ─────────────────────────────────────────────────────────────────────
# App
# ─────────────────────────────────────────────────────────────────────

def test_version():
    response = client.get("/app/version")
    assert response.status_code == 200
    assert response.json() == {"name": settings.APP_NAME, "version": settings.APP_VERSION}


def test_health_check():
    response = client.get("/app/health-check")
    assert response.status_code == 200
    assert response.json() == {"message": "OK"}


def test_security_and_timing_headers():
    response = client.get("/app/health-check")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert int(response.headers["X-Response-Time-Ms"]) >= 0


# ─────────────────────────────────────────────────────────────────────
# Detect
# ─────────────────────────────────────────────────────────────────────

def test_detect_success_echoes_request_identity():
    response = client.post("/detect", json=build_payload())
    body = response.json()

    assert response.status_code == 200
    assert body["id"] == "unique-id"
    assert body["detectorName"] == "test-detector"
    assert body["protocolName"] == "some protocol"
    assert body["protocolAddress"] == ZERO_ADDRESS
    assert body["chainId"] == 1
    assert body["error"] is False
    # La sub-llamada del trace dispara el step-up
    assert body["requiresStepUp"] is True
    assert body["blocked"] is False
    assert body["message"] == "verified"


def test_detect_high_value_with_valid_code():
    payload = with_trace(build_payload(), value="2000000000000000000", calls=[])
    body = client.post("/detect", json=payload).json()

    assert body["requiresStepUp"] is True
    assert body["blocked"] is False
    assert body["detected"] is False
    assert body["error"] is False
    assert body["message"] == "verified"
    assert body["reasonCodes"] == ["HIGH_VALUE_TRANSFER"]


def test_detect_high_value_missing_credentials():
    payload = with_trace(build_payload(additionalData=None), value="2000000000000000000")
    response = client.post("/detect", json=payload)
    body = response.json()

    assert response.status_code == 200
    assert body["blocked"] is True
    assert body["detected"] is True
    assert body["error"] is True
    assert body["message"] == "missing credentials"


def test_detect_high_value_wrong_code():
    wrong = "000000" if TWO_FACTOR_CODE != "000000" else "111111"
    payload = with_trace(
        build_payload(additionalData={"twoFactorCode": wrong, "userSecret": USER_SECRET}),
        value="2000000000000000000",
    )
    window = {
        engine.generate_code_at(USER_SECRET, FIXED_NOW.timestamp() + d) for d in (-30, 30)
    }
    if wrong in window:
        pytest.skip("wrong code collided with an adjacent step")

    body = client.post("/detect", json=payload).json()
    assert body["blocked"] is True
    assert body["error"] is False
    assert body["message"] == "invalid code"


def test_detect_accepts_numeric_two_factor_code():
    # int() pierde los ceros a la izquierda; el schema los restaura
    payload = with_trace(
        build_payload(additionalData={"twoFactorCode": int(TWO_FACTOR_CODE), "userSecret": USER_SECRET}),
        value="2000000000000000000",
    )
    response = client.post("/detect", json=payload)
    body = response.json()

    assert response.status_code == 200
    assert body["blocked"] is False
    assert body["message"] == "verified"


def test_detect_negative_numeric_code_is_rejected():
    payload = build_payload(additionalData={"twoFactorCode": -123456, "userSecret": USER_SECRET})
    assert client.post("/detect", json=payload).status_code == 422


def test_detect_low_risk_is_not_required():
    payload = with_trace(build_payload(additionalData=None), calls=[])
    body = client.post("/detect", json=payload).json()

    assert body["requiresStepUp"] is False
    assert body["blocked"] is False
    assert body["message"] == "not required"
    assert body["reasonCodes"] == []


def test_detect_accepts_value_beyond_uint128():
    payload = with_trace(build_payload(additionalData=None), value=str(2**200), calls=[])
    body = client.post("/detect", json=payload).json()
    assert body["requiresStepUp"] is True
    assert body["message"] == "missing credentials"


def test_detect_missing_value_is_zero():
    payload = build_payload(additionalData=None)
    payload["trace"] = {k: v for k, v in payload["trace"].items() if k != "value"}
    payload["trace"]["calls"] = []
    body = client.post("/detect", json=payload).json()
    assert body["requiresStepUp"] is False


@pytest.mark.parametrize("value", ["-1", "1.5", "0x10", "ten", "1e18"])
def test_detect_rejects_non_integer_value(value):
    payload = with_trace(build_payload(), value=value)
    response = client.post("/detect", json=payload)
    assert response.status_code == 422
    assert "trace.value" in response.json()["error"]


def test_detect_requires_trace():
    payload = build_payload()
    del payload["trace"]
    response = client.post("/detect", json=payload)
    assert response.status_code == 422


# ─────────────────────────────────────────────────────────────────────
# Enrollment
# ─────────────────────────────────────────────────────────────────────

def test_enroll_generates_secret_and_uri():
    account = "0x1234567890123456789012345678901234567890"
    response = client.post("/2fa/enroll", json={"account": account})
    body = response.json()

    assert response.status_code == 201
    assert len(body["secret"]) == 32
    assert body["issuer"] == settings.TOTP_ISSUER
    assert body["uri"].startswith(f"otpauth://totp/{settings.TOTP_ISSUER}:")
    assert account in body["uri"]
    assert f"secret={body['secret']}" in body["uri"]


def test_enroll_reuses_supplied_secret_normalized():
    response = client.post(
        "/2fa/enroll",
        json={"account": "0xabc", "secret": "jbsw y3dp ehpk 3pxp"},
    )
    assert response.status_code == 201
    assert response.json()["secret"] == "JBSWY3DPEHPK3PXP"


def test_enroll_rejects_malformed_secret():
    response = client.post(
        "/2fa/enroll",
        json={"account": "0xabc", "secret": "1111111111111111"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "TOTP secret is not valid base32."}


def test_enroll_accepts_caip10_account():
    account = "eip155:1:0xab16a96D359eC26a11e2C2b3d8f8B8942d5Bfcdb"
    response = client.post("/2fa/enroll", json={"account": account})
    body = response.json()

    assert response.status_code == 201
    parsed = pyotp.parse_uri(body["uri"])
    assert parsed.name == account
    assert parsed.issuer == settings.TOTP_ISSUER
    assert parsed.secret == body["secret"]


def test_enroll_rejects_blank_account():
    response = client.post("/2fa/enroll", json={"account": "   "})
    assert response.status_code == 422
    assert response.json() == {"error": "Account and issuer labels must be non-empty."}
