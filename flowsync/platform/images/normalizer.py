"""Image normalization for assets attached to Webflow items.

Webflow downloads every image URL it is given and rejects files above its size
limit. Source attachments are arbitrary uploads (phone photos of several MB),
so they are served through a proxy that downsizes and recompresses them.

Two modes:
- buffered: the whole source is downloaded, transcoded, and returned with an
  exact size; the output is guaranteed to fit ``max_bytes``
- streaming: the source is decoded incrementally while it downloads and the
  encoded output is yielded in chunks; no size guarantee and no Content-Length
"""

from dataclasses import dataclass
from io import BytesIO
from typing import AsyncIterator, Optional

import httpx
from PIL import Image, ImageFile, ImageOps, UnidentifiedImageError
from tenacity import retry, stop_after_attempt

from flowsync.core.config import Settings
from flowsync.core.exceptions import ImageNormalizationError, ImageSourceNotFoundError
from flowsync.core.logging import ContextualLogger
from flowsync.core.logging import logger as default_logger
from flowsync.platform.sources.retry_helpers import (
    retry_if_retryable,
    wait_retry_after_or_backoff,
)
from flowsync.platform.sync.async_helpers import run_in_thread_pool

CONTENT_TYPES = {"jpeg": "image/jpeg", "webp": "image/webp"}
PIL_FORMATS = {"jpeg": "JPEG", "webp": "WEBP"}


@dataclass(frozen=True)
class ImageConstraints:
    """Output constraints derived for one asset."""

    max_width: int = 1600
    format: str = "jpeg"
    quality: int = 80
    min_quality: int = 40
    max_bytes: Optional[int] = 4 * 1024 * 1024
    quality_step: int = 10
    shrink_factor: float = 0.8
    min_width: int = 64

    @property
    def content_type(self) -> str:
        """MIME type of the encoded output."""
        return CONTENT_TYPES[self.format]

    @classmethod
    def buffered(cls, settings: Settings) -> "ImageConstraints":
        """Constraints of the buffered proxy mode."""
        return cls(
            max_width=settings.IMAGE_MAX_WIDTH,
            format=settings.IMAGE_BUFFERED_FORMAT,
            quality=settings.IMAGE_QUALITY,
            min_quality=min(settings.IMAGE_MIN_QUALITY, settings.IMAGE_QUALITY),
            max_bytes=settings.IMAGE_MAX_BYTES,
        )

    @classmethod
    def streaming(cls, settings: Settings) -> "ImageConstraints":
        """Constraints of the streaming proxy mode (no byte ceiling)."""
        return cls(
            max_width=settings.IMAGE_MAX_WIDTH,
            format=settings.IMAGE_STREAMING_FORMAT,
            quality=settings.IMAGE_QUALITY,
            min_quality=settings.IMAGE_QUALITY,
            max_bytes=None,
        )


@dataclass(frozen=True)
class NormalizedImage:
    """Encoded image ready to be served."""

    content: bytes
    content_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        """Exact byte length of ``content``."""
        return len(self.content)


def _prepare(image: Image.Image, fmt: str) -> Image.Image:
    """Apply EXIF orientation and convert to a mode the encoder accepts."""
    image = ImageOps.exif_transpose(image)
    has_alpha = image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if fmt == "jpeg":
        if has_alpha:
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        return image.convert("RGB") if image.mode != "RGB" else image
    target_mode = "RGBA" if has_alpha else "RGB"
    return image.convert(target_mode) if image.mode != target_mode else image


def _resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """Downscale to ``width`` keeping the aspect ratio; never upscale."""
    if width >= image.width:
        return image
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.LANCZOS)


def _encode(image: Image.Image, fmt: str, quality: int) -> bytes:
    buffer = BytesIO()
    if fmt == "jpeg":
        image.save(buffer, format=PIL_FORMATS[fmt], quality=quality, optimize=True)
    else:
        image.save(buffer, format=PIL_FORMATS[fmt], quality=quality, method=4)
    return buffer.getvalue()


def fit_image(image: Image.Image, constraints: ImageConstraints) -> NormalizedImage:
    """Resize and recompress a decoded image until it satisfies ``constraints``.

    Quality is lowered first, down to ``min_quality``; after that the width is
    reduced by ``shrink_factor`` per round, quality reset, down to ``min_width``.

    Raises:
        ImageNormalizationError: If the byte ceiling cannot be met
    """
    if constraints.format not in CONTENT_TYPES:
        raise ImageNormalizationError(f"Unsupported output format: {constraints.format}")

    prepared = _prepare(image, constraints.format)
    width = min(prepared.width, constraints.max_width)

    while True:
        resized = _resize_to_width(prepared, width)
        quality = constraints.quality
        while True:
            content = _encode(resized, constraints.format, quality)
            if constraints.max_bytes is None or len(content) <= constraints.max_bytes:
                return NormalizedImage(
                    content=content,
                    content_type=constraints.content_type,
                    width=resized.width,
                    height=resized.height,
                )
            if quality <= constraints.min_quality:
                break
            quality = max(constraints.min_quality, quality - constraints.quality_step)

        next_width = int(width * constraints.shrink_factor)
        if next_width < constraints.min_width:
            raise ImageNormalizationError(
                f"Cannot bring image under {constraints.max_bytes} bytes "
                f"(still {len(content)} bytes at {resized.width}px, quality {quality})"
            )
        width = next_width


def transcode(data: bytes, constraints: ImageConstraints) -> NormalizedImage:
    """Decode ``data`` and fit it to ``constraints`` (CPU-bound, synchronous).

    Raises:
        ImageNormalizationError: If the bytes are not a decodable image
    """
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            return fit_image(image, constraints)
    except ImageNormalizationError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageNormalizationError(f"Could not decode image: {e}") from e


class ImageNormalizer:
    """Fetches remote images and normalizes them for Webflow."""

    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        buffered_constraints: ImageConstraints = ImageConstraints(),
        streaming_constraints: ImageConstraints = ImageConstraints(format="webp", max_bytes=None),
        max_source_bytes: int = 50 * 1024 * 1024,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the normalizer.

        Args:
            http_client: Client used to download source images
            buffered_constraints: Output constraints of ``normalize``
            streaming_constraints: Output constraints of ``stream``
            max_source_bytes: Sources larger than this are rejected
            logger: Contextual logger
        """
        self.http_client = http_client
        self.buffered_constraints = buffered_constraints
        self.streaming_constraints = streaming_constraints
        self.max_source_bytes = max_source_bytes
        self.logger = logger or default_logger

    @classmethod
    def from_settings(
        cls,
        http_client: httpx.AsyncClient,
        settings: Settings,
        logger: Optional[ContextualLogger] = None,
    ) -> "ImageNormalizer":
        """Build a normalizer with the constraints configured in ``settings``."""
        return cls(
            http_client,
            buffered_constraints=ImageConstraints.buffered(settings),
            streaming_constraints=ImageConstraints.streaming(settings),
            logger=logger,
        )

    def _check_status(self, url: str, response: httpx.Response) -> None:
        if response.status_code == 404:
            raise ImageSourceNotFoundError(f"Image not found: {url}")
        response.raise_for_status()

    @retry(
        stop=stop_after_attempt(3),
        retry=retry_if_retryable,
        wait=wait_retry_after_or_backoff,
        reraise=True,
    )
    async def _download(self, url: str) -> bytes:
        """Download the full source, enforcing ``max_source_bytes``."""
        async with self.http_client.stream("GET", url, follow_redirects=True) as response:
            self._check_status(url, response)
            buffer = bytearray()
            async for chunk in response.aiter_bytes(self.CHUNK_SIZE):
                buffer.extend(chunk)
                if len(buffer) > self.max_source_bytes:
                    raise ImageNormalizationError(
                        f"Source image exceeds {self.max_source_bytes} bytes: {url}"
                    )
            return bytes(buffer)

    async def fetch(self, url: str) -> bytes:
        """Download a source image.

        Raises:
            ImageSourceNotFoundError: If the source answers 404
            ImageNormalizationError: For any other fetch failure
        """
        try:
            return await self._download(url)
        except ImageNormalizationError:
            raise
        except httpx.HTTPError as e:
            raise ImageNormalizationError(f"Error fetching image {url}: {e}") from e

    async def normalize(self, url: str) -> NormalizedImage:
        """Buffered mode: fetch and transcode, returning the exact output bytes."""
        data = await self.fetch(url)
        image = await run_in_thread_pool(transcode, data, self.buffered_constraints)
        self.logger.debug(
            f"Normalized {url}: {len(data)} → {image.size} bytes "
            f"({image.width}x{image.height}, {image.content_type})"
        )
        return image

    async def stream(self, url: str) -> AsyncIterator[bytes]:
        """Streaming mode: decode while downloading, then yield the encoded output.

        Fetch and decode errors are raised before the first chunk is yielded,
        so a caller that primes the iterator can still answer with an error.
        """
        constraints = self.streaming_constraints
        parser = ImageFile.Parser()
        try:
            async with self.http_client.stream("GET", url, follow_redirects=True) as response:
                self._check_status(url, response)
                received = 0
                async for chunk in response.aiter_bytes(self.CHUNK_SIZE):
                    received += len(chunk)
                    if received > self.max_source_bytes:
                        raise ImageNormalizationError(
                            f"Source image exceeds {self.max_source_bytes} bytes: {url}"
                        )
                    parser.feed(chunk)
            image = parser.close()
        except ImageNormalizationError:
            raise
        except httpx.HTTPError as e:
            raise ImageNormalizationError(f"Error fetching image {url}: {e}") from e
        except (OSError, ValueError) as e:
            raise ImageNormalizationError(f"Could not decode image {url}: {e}") from e

        normalized = await run_in_thread_pool(fit_image, image, constraints)
        content = normalized.content
        for offset in range(0, len(content), self.CHUNK_SIZE):
            yield content[offset : offset + self.CHUNK_SIZE]
