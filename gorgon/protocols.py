"""Protocol definitions for Gorgon.

These protocols are the seams between the markdown rewriter, the image
transcoder and the asset store. The rewriter only depends on them, so tests
can hand it a fake transcoder that never touches Pillow.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .images import PictureDescriptor


@runtime_checkable
class AssetRegistry(Protocol):
    """Protocol for registering content-addressed assets."""

    @abstractmethod
    def register(self, name: str, ext: str, content: bytes) -> str:
        """Register bytes under a logical name.

        Args:
            name: Human-readable base name.
            ext: Extension including the dot.
            content: Asset bytes.

        Returns:
            Reference path the asset will be served from.
        """
        ...


@runtime_checkable
class Transcoder(Protocol):
    """Protocol for turning a source image into a picture descriptor."""

    @abstractmethod
    def transcode(self, path: Path, store: AssetRegistry) -> PictureDescriptor:
        """Encode an image and register every rendition in ``store``.

        Args:
            path: Filesystem path of the source image.
            store: Asset registry receiving the encoded renditions.

        Returns:
            Descriptor of the fallback and optional modern renditions.

        Raises:
            ImageError: If the image cannot be read, decoded or encoded.
        """
        ...
