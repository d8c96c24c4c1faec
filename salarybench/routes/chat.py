import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from salarybench.routes.deps import get_rate_limiter, require_quota
from salarybench.schemas.chat import LabourLawChatRequest
from salarybench.services.ai_gateway import (
    AIGatewayClient,
    GatewayError,
    GatewayNotConfigured,
    GatewayPaymentRequired,
    GatewayRateLimited,
    get_gateway,
)
from salarybench.services.prompts import build_labour_law_prompt
from salarybench.services.rate_limiter import FixedWindowRateLimiter

router = APIRouter()
logger = logging.getLogger(__name__)

ENDPOINT_NAME = "labour-law-chat"


def gateway_http_error(exc: GatewayError) -> HTTPException:
    """Map gateway failures onto the status codes the frontend understands."""
    if isinstance(exc, GatewayRateLimited):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    if isinstance(exc, GatewayPaymentRequired):
        return HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc))
    if isinstance(exc, GatewayNotConfigured):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="AI gateway error"
    )


@router.post("/labour-law")
def labour_law_chat(
    request: Request,
    payload: LabourLawChatRequest,
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    gateway: AIGatewayClient = Depends(get_gateway),
):
    """Stream an answer from the labour-law assistant as server-sent events."""
    require_quota(rate_limiter, request, ENDPOINT_NAME)

    messages = [{"role": "system", "content": build_labour_law_prompt()}]
    messages.extend(message.model_dump() for message in payload.messages)

    try:
        events = gateway.stream(messages)
    except GatewayError as exc:
        logger.error("Error in labour-law chat: %s", exc)
        raise gateway_http_error(exc)

    return StreamingResponse(events, media_type="text/event-stream")
