from fastapi import APIRouter, Depends, status

from stepup_guard.api.dependencies import get_settings, get_totp_engine
from stepup_guard.core.config import Settings
from stepup_guard.domain.schemas import EnrollmentRequest, EnrollmentResponse
from stepup_guard.services.totp_engine import TotpEngine

router = APIRouter(prefix="/2fa", tags=["2FA Enrollment"])


@router.post(
    "/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generar secreto TOTP y URI otpauth://",
    description=(
        "Genera un secreto nuevo (o reutiliza el enviado) y arma la URI "
        "de enrolamiento para la app autenticadora. No persiste nada: "
        "guardar el secreto es responsabilidad del flujo de onboarding."
    ),
)
async def enroll(
    body:   EnrollmentRequest,
    engine: TotpEngine = Depends(get_totp_engine),
    config: Settings   = Depends(get_settings),
) -> EnrollmentResponse:
    if body.secret:
        # Lanza MalformedSecretException (400) si no es base32
        engine.decode_secret(body.secret)
        secret = engine.normalize_secret(body.secret)
    else:
        secret = engine.generate_secret()

    uri = engine.build_enrollment_uri(secret, body.account, config.TOTP_ISSUER)
    return EnrollmentResponse(secret=secret, uri=uri, issuer=config.TOTP_ISSUER)
