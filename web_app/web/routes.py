"""Redirect route. Registered last so it does not shadow other paths."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request, status
from fastapi.responses import RedirectResponse

from shortener.analytics import RequestContext
from shortener.errors import ShortcodeNotFound

from ..errors import internal_error_response, shortener_error_response

router = APIRouter()
logger = logging.getLogger("url_shortener.redirect")


@router.get("/{shortcode}", include_in_schema=False)
async def redirect_to_url(request: Request, shortcode: str, background_tasks: BackgroundTasks):
    """Redirect to the original URL.

    The click event and click count are written after the response is sent.
    """
    service = request.app.state.service
    analytics = request.app.state.analytics

    logger.info(f"Redirect request for shortcode: {shortcode}")

    try:
        link = await service.get_original_url(shortcode)
    except Exception as e:
        logger.exception(f"Error during redirect: {e}")
        return internal_error_response()

    if link is None:
        logger.error(f"Shortcode not found or expired: {shortcode}")
        return shortener_error_response(ShortcodeNotFound())

    context = RequestContext(
        remote_addr=getattr(request.state, "client_ip", None),
        headers=dict(request.headers),
    )
    background_tasks.add_task(analytics.record_click, shortcode, context)
    background_tasks.add_task(service.increment_click_count, shortcode)

    logger.info(f"Successful redirect performed for: {shortcode}")

    # Perform 302 redirect (temporary redirect for tracking)
    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)
