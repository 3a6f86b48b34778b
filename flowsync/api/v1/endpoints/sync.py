"""Sync API endpoint: batch trigger and image proxy."""

from typing import AsyncIterator, Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from flowsync import schemas
from flowsync.api import deps
from flowsync.core.config import Settings
from flowsync.core.exceptions import (
    ConfigurationError,
    ImageNormalizationError,
    ImageSourceNotFoundError,
)
from flowsync.core.logging import logger
from flowsync.platform.sync.factory import SyncFactory

router = APIRouter()

IDLE_MESSAGE = "Rien à synchroniser."


@router.get(
    "/sync",
    response_model=Union[schemas.SyncSuccessResponse, schemas.SyncIdleResponse],
    responses={
        401: {"model": schemas.UnauthorizedResponse},
        500: {"model": schemas.SyncErrorResponse},
    },
)
async def sync(
    *,
    request: Request,
    proxy_url: Optional[str] = Query(None, description="Image URL to normalize"),
    secret: Optional[str] = Query(None, description="Shared secret for batch runs"),
    settings: Settings = Depends(deps.get_settings),
) -> Response:
    """Run one sync batch, or serve a normalized image when ``proxy_url`` is given.

    The image proxy takes precedence and needs no secret: Webflow fetches the
    rewritten asset URLs anonymously.
    """
    if proxy_url is not None:
        return await _proxy_image(proxy_url, settings)

    if not deps.secret_matches(secret, settings.SYNC_SECRET):
        return JSONResponse(status_code=401, content=schemas.UnauthorizedResponse().model_dump())

    try:
        async with SyncFactory.create_orchestrator(
            settings, asset_base_url=deps.get_public_base_url(request)
        ) as orchestrator:
            report = await orchestrator.run_batch()
    except ConfigurationError as e:
        logger.error(f"Sync not configured: {e}")
        return JSONResponse(
            status_code=500, content=schemas.SyncErrorResponse(error=str(e)).model_dump()
        )

    if report.failed:
        return JSONResponse(
            status_code=500,
            content=schemas.SyncErrorResponse(error=report.error, logs=report.logs).model_dump(),
        )
    if report.is_empty:
        return JSONResponse(
            content=schemas.SyncIdleResponse(message=IDLE_MESSAGE, logs=report.logs).model_dump()
        )
    return JSONResponse(content=schemas.SyncSuccessResponse(logs=report.logs).model_dump())


async def _proxy_image(url: str, settings: Settings) -> Response:
    if not url:
        return PlainTextResponse("No URL provided", status_code=404)

    try:
        async with SyncFactory.create_image_normalizer(settings) as normalizer:
            if settings.IMAGE_PROXY_MODE == "streaming":
                chunks = normalizer.stream(url)
                # Fetch and decode happen before the first chunk; errors surface here
                first = await chunks.__anext__()
                return StreamingResponse(
                    _prepend(first, chunks),
                    media_type=normalizer.streaming_constraints.content_type,
                )
            image = await normalizer.normalize(url)
    except ImageSourceNotFoundError as e:
        logger.warning(f"Proxy source not found: {e}")
        return PlainTextResponse("Image not found", status_code=404)
    except (ImageNormalizationError, StopAsyncIteration) as e:
        logger.error(f"Proxy error for {url}: {e}")
        return PlainTextResponse("Error fetching or processing image", status_code=500)

    return Response(content=image.content, media_type=image.content_type)


async def _prepend(first: bytes, rest: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    yield first
    async for chunk in rest:
        yield chunk
