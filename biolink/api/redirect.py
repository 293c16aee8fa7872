"""Redirect endpoint for outbound links."""

import structlog
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from biolink.core.config import Settings
from biolink.core.deps import AppSettings, GeoIP, Recorder, Store
from biolink.core.observability import record_redirect
from biolink.core.rate_limit import RATE_LIMIT_REDIRECT, get_real_client_ip, limiter
from biolink.services import link as link_service
from biolink.services.click_recorder import ClickRecorder, build_click_context
from biolink.services.geoip import GeoIPService

logger = structlog.get_logger()

router = APIRouter(tags=["redirect"])


async def record_click_best_effort(
    recorder: ClickRecorder,
    geoip: GeoIPService,
    settings: Settings,
    link_id: str,
    ip_address: str | None,
    user_agent: str | None,
    referer: str | None,
) -> None:
    """Record a click without letting failures reach the visitor."""
    try:
        context = await build_click_context(
            ip_address=ip_address,
            user_agent=user_agent,
            referer=referer,
            geoip=geoip,
            salt=settings.fingerprint_salt,
            now=recorder.now(),
        )
        await recorder.record_click(link_id, context)
    except Exception as e:
        # Log but don't fail the redirect if analytics cannot be stored
        logger.warning("Click not recorded", link_id=link_id, error=str(e))


@router.get("/go/{slug}")
@limiter.limit(RATE_LIMIT_REDIRECT)
async def redirect_to_link(
    request: Request,
    slug: str,
    background_tasks: BackgroundTasks,
    settings: AppSettings,
    store: Store,
    recorder: Recorder,
    geoip: GeoIP,
) -> RedirectResponse:
    """Redirect a slug to its link URL and record the click.

    With ``record_clicks_in_background`` the click is written after the
    response is sent; otherwise it is written before redirecting. Either
    way a failed write never prevents the redirect.
    """
    link = await link_service.get_active_link_by_slug(store, slug)

    if not link:
        logger.info("Redirect failed - link not found", slug=slug)
        record_redirect(status.HTTP_404_NOT_FOUND)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )

    click_args = (
        recorder,
        geoip,
        settings,
        link.id,
        get_real_client_ip(request),
        request.headers.get("User-Agent"),
        request.headers.get("Referer"),
    )
    if settings.record_clicks_in_background:
        background_tasks.add_task(record_click_best_effort, *click_args)
    else:
        await record_click_best_effort(*click_args)

    logger.info("Redirect", slug=slug, link_id=link.id)
    record_redirect(status.HTTP_302_FOUND)

    return RedirectResponse(url=link.url, status_code=status.HTTP_302_FOUND)
