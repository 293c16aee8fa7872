"""Admin endpoints: login and link analytics."""

from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from biolink.aggregators import query_link_stats
from biolink.core.deps import AUTH_COOKIE_NAME, AppSettings, CurrentAdmin, Recorder
from biolink.core.observability import record_analytics_query
from biolink.core.rate_limit import RATE_LIMIT_AUTH, limiter
from biolink.core.security import create_cookie_token, verify_admin_credentials
from biolink.schemas import (
    AdminResponse,
    AnalyticsRange,
    LinkAnalytics,
    LoginRequest,
    NormalizeResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=AdminResponse)
@limiter.limit(RATE_LIMIT_AUTH)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    settings: AppSettings,
) -> AdminResponse:
    """Log in as the admin and set the auth cookie."""
    if not verify_admin_credentials(settings, credentials.username, credentials.password):
        logger.info("Admin login rejected", username=credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_value, max_age = create_cookie_token(settings, credentials.username)
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token_value,
        max_age=max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )
    logger.info("Admin logged in", username=credentials.username)
    return AdminResponse(username=credentials.username)


@router.post("/logout")
async def logout(response: Response) -> dict[str, str]:
    """Log out by clearing the auth cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=AdminResponse)
async def me(admin: CurrentAdmin) -> AdminResponse:
    """Return the authenticated admin."""
    return AdminResponse(username=admin)


@router.get("/stats/links/{link_id}", response_model=LinkAnalytics)
async def get_link_analytics(
    link_id: str,
    admin: CurrentAdmin,
    recorder: Recorder,
    range_: Annotated[
        AnalyticsRange,
        Query(alias="range", description="Time window: 7d, 30d or all"),
    ] = "7d",
) -> LinkAnalytics:
    """Get click analytics for a link.

    Links that were never clicked return zero totals and empty lists.
    """
    link_stats = await recorder.get_link_stats(link_id)
    analytics = query_link_stats(link_stats, range_, now=recorder.now())
    record_analytics_query(range_)

    logger.debug(
        "Analytics fetched",
        link_id=link_id,
        range=range_,
        total_clicks=analytics.total_clicks,
        days=len(analytics.daily),
    )
    return analytics


@router.post("/stats/normalize", response_model=NormalizeResponse)
async def normalize_stats(admin: CurrentAdmin, recorder: Recorder) -> NormalizeResponse:
    """Recompute cached unique counts across all link stats."""
    links = await recorder.normalize_stats()
    logger.info("Stats normalization requested", admin=admin, links=links)
    return NormalizeResponse(links=links)
