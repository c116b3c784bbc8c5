"""Content-addressed static asset store for Gorgon.

Every file the site serves from ``/static/`` passes through a StaticFileStore.
Assets are named after a digest of their bytes, so identical content always
maps to the same identifier and a browser can cache it forever.

Key components:
- content_hash: Short base58 digest of a byte buffer.
- StaticFileStore: In-memory registry of assets, flushed once at the end of a build.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterator
from pathlib import Path

import base58

from .errors import AssetCollisionError, AssetStoreError

logger = logging.getLogger(__name__)

# 128 bits of SHA-256
HASH_BYTES = 16

STATIC_DIR = "static"


def content_hash(content: bytes) -> str:
    """Return a short, URL-safe digest of ``content``.

    Args:
        content: Bytes to hash.

    Returns:
        The first 128 bits of the SHA-256 digest, base58 encoded.

    Examples:
        >>> content_hash(b"") == content_hash(b"")
        True
    """
    digest = hashlib.sha256(content).digest()
    return base58.b58encode(digest[:HASH_BYTES]).decode("ascii")


class StaticFileStore:
    """Holds static assets in memory until the build writes them out.

    The store is owned by the build driver for the whole run. Registration is
    idempotent: the same bytes under the same name always yield the same
    identifier and are stored once.

    Attributes:
        url_prefix: Public URL prefix of the static directory.
    """

    url_prefix = f"/{STATIC_DIR}"

    def __init__(self):
        self._files: dict[str, bytes] = {}
        self._flushed = False

    def register(self, name: str, ext: str, content: bytes) -> str:
        """Add an asset and return the path it will be served from.

        Args:
            name: Human-readable base name, e.g. ``cat``.
            ext: Extension including the dot, e.g. ``.jpg``.
            content: Encoded bytes of the asset.

        Returns:
            Reference path like ``/static/cat-<hash>.jpg``.

        Raises:
            AssetStoreError: If the store has already been flushed.
            AssetCollisionError: If the identifier is taken by different bytes.
        """
        if self._flushed:
            raise AssetStoreError(f"cannot register {name}{ext}: static files already written")

        identifier = f"{name}-{content_hash(content)}{ext}"
        existing = self._files.get(identifier)
        if existing is None:
            self._files[identifier] = bytes(content)
            logger.debug("Registered static file %s (%d bytes)", identifier, len(content))
        elif existing != content:
            raise AssetCollisionError(
                f"static file {identifier} already registered with different content"
            )
        else:
            logger.debug("Static file %s already registered", identifier)
        return f"{self.url_prefix}/{identifier}"

    def get(self, identifier: str) -> bytes | None:
        """Return the bytes stored under ``identifier``, if any."""
        return self._files.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._files))

    def flush(self, output_dir: Path) -> list[Path]:
        """Write every registered asset to ``output_dir/static``.

        Must be called exactly once, after every post has been rendered.

        Args:
            output_dir: Root of the generated site.

        Returns:
            Paths of the written files, in identifier order.

        Raises:
            AssetStoreError: If called a second time.
            OSError: If any file cannot be written.
        """
        if self._flushed:
            raise AssetStoreError("static files already written")
        self._flushed = True

        static_dir = output_dir / STATIC_DIR
        static_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for identifier in sorted(self._files):
            target = static_dir / identifier
            target.write_bytes(self._files[identifier])
            written.append(target)
        logger.info("Wrote %d static files to %s", len(written), static_dir)
        return written
