import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from salarybench.core.config import settings
from salarybench.core.database import get_db
from salarybench.models.compensation import CompensationData
from salarybench.routes.chat import gateway_http_error
from salarybench.routes.deps import get_rate_limiter, require_quota
from salarybench.schemas.chat import MarketAnalysisRequest, MarketAnalysisResponse
from salarybench.services.ai_gateway import AIGatewayClient, GatewayError, get_gateway
from salarybench.services.prompts import (
    build_market_messages,
    build_market_summary,
    build_user_context,
)
from salarybench.services.rate_limiter import FixedWindowRateLimiter
from salarybench.services.stats import group_average, percentile_rank, quartiles

router = APIRouter()
logger = logging.getLogger(__name__)

ENDPOINT_NAME = "market-analysis"


@router.post("/market", response_model=MarketAnalysisResponse)
def market_analysis(
    request: Request,
    payload: MarketAnalysisRequest,
    db: Session = Depends(get_db),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    gateway: AIGatewayClient = Depends(get_gateway),
):
    """Compare the caller's submission with the market and ask the AI for advice."""
    require_quota(rate_limiter, request, ENDPOINT_NAME)

    submission = None
    if payload.anonymous_id is not None:
        submission = (
            db.query(CompensationData)
            .filter(CompensationData.anonymous_id == payload.anonymous_id)
            .first()
        )
        if submission is None:
            logger.info("No submission found for anonymous id")

    market_rows = (
        db.query(CompensationData.gross_salary)
        .limit(settings.MARKET_SAMPLE_LIMIT)
        .all()
    )
    gross_salaries = sorted(float(gross) for (gross,) in market_rows)

    average = distribution = user_percentile = None
    if gross_salaries:
        average = group_average(gross_salaries, lambda _: "all", lambda v: v)["all"].average
        distribution = quartiles(gross_salaries)
        if submission is not None:
            user_percentile = percentile_rank(float(submission.gross_salary), gross_salaries)

    messages = build_market_messages(
        build_user_context(submission),
        build_market_summary(gross_salaries, average, distribution, user_percentile),
    )

    try:
        analysis = gateway.complete(messages)
    except GatewayError as exc:
        logger.error("Error in market analysis: %s", exc)
        raise gateway_http_error(exc)

    return MarketAnalysisResponse(analysis=analysis)
