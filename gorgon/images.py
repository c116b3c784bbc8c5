"""Image transcoding for Gorgon.

Each image referenced from a post is decoded once with Pillow and re-encoded
into a JPEG fallback plus, when optimization is on, AVIF and WebP renditions.
Every rendition is registered in the asset store before any markup points at it.

Key classes:
- ImageFormat: One output encoding (Pillow format name, extension, media type).
- PictureSource: A modern rendition listed as a <source> element.
- PictureDescriptor: Everything needed to emit a <picture> element.
- ImageTranscoder: Decodes and encodes images, registering the results.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import ImageError
from .protocols import AssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageFormat:
    """An output encoding.

    Attributes:
        pillow_format: Format name understood by ``Image.save``.
        ext: File extension including the dot.
        media_type: MIME type used in ``<source type=...>``.
    """

    pillow_format: str
    ext: str
    media_type: str


FALLBACK_FORMAT = ImageFormat("JPEG", ".jpg", "image/jpeg")

# Most preferred first; browsers pick the first <source> they support.
OPTIMIZED_FORMATS = (
    ImageFormat("AVIF", ".avif", "image/avif"),
    ImageFormat("WEBP", ".webp", "image/webp"),
)

# Modes JPEG can store without conversion
_JPEG_MODES = {"RGB", "L", "CMYK"}


@dataclass(frozen=True)
class PictureSource:
    """A modern rendition of an image."""

    path: str
    media_type: str


@dataclass(frozen=True)
class PictureDescriptor:
    """Renditions and intrinsic size of one transcoded image.

    Attributes:
        fallback_path: Reference path of the JPEG fallback.
        width: Width in pixels.
        height: Height in pixels.
        sources: Modern renditions, most preferred first. Empty when
            optimization is off.
    """

    fallback_path: str
    width: int
    height: int
    sources: tuple[PictureSource, ...] = field(default_factory=tuple)


class ImageTranscoder:
    """Encodes source images into web renditions.

    The transcoder holds no reference to the asset store; the store is passed
    in for the duration of each ``transcode`` call.

    Attributes:
        optimize: Whether to produce AVIF and WebP renditions.
        fallback_format: Encoding that is always produced.
        optimized_formats: Extra encodings produced when optimizing.
    """

    def __init__(
        self,
        optimize: bool = False,
        fallback_format: ImageFormat = FALLBACK_FORMAT,
        optimized_formats: tuple[ImageFormat, ...] = OPTIMIZED_FORMATS,
    ):
        self.optimize = optimize
        self.fallback_format = fallback_format
        self.optimized_formats = optimized_formats

    def transcode(self, path: Path, store: AssetRegistry) -> PictureDescriptor:
        """Decode ``path`` and register its renditions in ``store``.

        Args:
            path: Filesystem path of the source image.
            store: Asset registry receiving the encoded bytes.

        Returns:
            PictureDescriptor for the image.

        Raises:
            ImageError: If the image has no usable name, cannot be opened or
                decoded, or an encoder is unavailable.
        """
        name = path.stem
        if not name:
            raise ImageError(path, "image does not have a name")

        image = self._decode(path)
        fallback_path = self._encode(image, path, name, self.fallback_format, store)

        sources: list[PictureSource] = []
        if self.optimize:
            for image_format in self.optimized_formats:
                reference = self._encode(image, path, name, image_format, store)
                sources.append(PictureSource(reference, image_format.media_type))

        width, height = image.size
        logger.debug(
            "Transcoded %s (%dx%d) into %d rendition(s)",
            path,
            width,
            height,
            len(sources) + 1,
        )
        return PictureDescriptor(
            fallback_path=fallback_path,
            width=width,
            height=height,
            sources=tuple(sources),
        )

    def _decode(self, path: Path) -> Image.Image:
        """Open and fully decode an image.

        Args:
            path: Path to the image file.

        Returns:
            Decoded Pillow image, detached from the file handle.
        """
        try:
            with Image.open(path) as img:
                img.load()
                return img.copy()
        except FileNotFoundError as exc:
            raise ImageError(path, "reading image: file not found") from exc
        except UnidentifiedImageError as exc:
            raise ImageError(path, "decoding image: unrecognized format") from exc
        except Image.DecompressionBombError as exc:
            raise ImageError(path, f"decoding image: {exc}") from exc
        except OSError as exc:
            raise ImageError(path, f"decoding image: {exc}") from exc

    def _encode(
        self,
        image: Image.Image,
        path: Path,
        name: str,
        image_format: ImageFormat,
        store: AssetRegistry,
    ) -> str:
        """Encode ``image`` in ``image_format`` and register the bytes.

        Returns:
            Reference path returned by the store.
        """
        if image_format.pillow_format == "JPEG" and image.mode not in _JPEG_MODES:
            image = image.convert("RGB")
        buffer = io.BytesIO()
        try:
            image.save(buffer, format=image_format.pillow_format)
        except KeyError as exc:
            # Pillow raises KeyError for formats it has no encoder for
            raise ImageError(
                path, f"encoding {image_format.pillow_format}: encoder not available"
            ) from exc
        except (OSError, ValueError) as exc:
            raise ImageError(path, f"encoding {image_format.pillow_format}: {exc}") from exc
        return store.register(name, image_format.ext, buffer.getvalue())
