import logging

from fastapi import APIRouter, Depends

from stepup_guard.api.dependencies import get_detection_orchestrator
from stepup_guard.domain.schemas import DetectionRequest, DetectionResponse
from stepup_guard.services.detection_orchestrator import DetectionOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Detection"])


@router.post("/detect", response_model=DetectionResponse)
async def detect(
    request:      DetectionRequest,
    orchestrator: DetectionOrchestrator = Depends(get_detection_orchestrator),
) -> DetectionResponse:
    """
    Clasifica la transacción y, si es de alto riesgo, exige un código
    TOTP válido en additionalData.twoFactorCode / additionalData.userSecret.

    blocked = true → la transacción no debe continuar.
    """
    # InvalidTraceValueException la maneja el handler global (422)
    trace = request.to_trace()

    verdict = orchestrator.decide(
        trace,
        protocol_name   = request.protocol_name,
        supplied_code   = request.two_factor_code,
        supplied_secret = request.user_secret,
    )

    logger.info(
        f"[Detect] id={request.id} chain={request.chain_id} "
        f"step_up={verdict.requires_step_up} blocked={verdict.blocked} "
        f"message={verdict.message!r}"
    )

    return DetectionResponse.from_verdict(request, verdict)
