"""Error types for Gorgon.

Every failure in the content pipeline is one of the types below. Errors
raised by the loader, rewriter and transcoder are wrapped by the build driver
in a BuildError that names the failing post, with the original exception
chained as ``__cause__``. Filesystem failures surface as plain OSError.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class FrontmatterError(ValueError):
    """A post header is missing, unterminated, or has the wrong shape."""


class MarkdownStructureError(ValueError):
    """An image tag is not followed by alt text and an image end tag."""


class ImageError(Exception):
    """An image could not be opened, decoded, encoded or named.

    Attributes:
        path: Path of the source image.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class AssetStoreError(RuntimeError):
    """The static asset store was used out of order."""


class AssetCollisionError(AssetStoreError):
    """Two different byte buffers produced the same asset identifier."""
