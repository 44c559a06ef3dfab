"""Content hashing and content-addressed asset writing.

Every file the build emits under ``assets/`` is named after its own bytes:
``baseName[.variantLabel].digestPrefix.extension``. Identical bytes always
produce the identical name, so the files can be cached indefinitely by the
browser and any CDN in front of the site.

Example
-------
>>> from blaze_pages.hashing import content_digest, hashed_name
>>> digest = content_digest(b"body { color: red }")
>>> hashed_name("app", "css", digest)  # doctest: +ELLIPSIS
'app....css'
"""

from __future__ import annotations

import dataclasses as dc
import hashlib
import threading
import typing as typ

import msgspec.json
import structlog

from ._constants import ASSET_DIGEST_LENGTH, VERSION_TOKEN_LENGTH
from .errors import HashCollisionError

if typ.TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()


def content_digest(data: bytes | str) -> str:
    """Return the hex-encoded SHA-256 digest of ``data``.

    Strings are encoded as UTF-8 before hashing so text assets and their
    written bytes share one digest.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hashed_name(
    base: str,
    extension: str,
    digest: str,
    *,
    label: str | None = None,
    length: int = ASSET_DIGEST_LENGTH,
) -> str:
    """Compose a content-addressed file name from its parts."""
    parts = [base]
    if label:
        parts.append(label)
    parts.append(digest[:length])
    parts.append(extension.lstrip("."))
    return ".".join(parts)


def manifest_token(urls: typ.Sequence[str], length: int = VERSION_TOKEN_LENGTH) -> str:
    """Return the build version token for an ordered precache manifest.

    The list is serialized as compact JSON, the same bytes a browser's
    ``JSON.stringify`` produces, so any change to the manifest changes the
    token.

    Examples
    --------
    >>> len(manifest_token(["./", "404.html"]))
    12
    """
    serialized = msgspec.json.encode(list(urls))
    return content_digest(serialized)[:length]


@dc.dataclass(frozen=True, slots=True)
class HashedAsset:
    """A written asset and the digest its name was derived from.

    Attributes
    ----------
    base : str
        Logical name of the asset (``"app"``, ``"diagram"``).
    extension : str
        File extension without the leading dot.
    digest : str
        Full hex digest of the written bytes.
    label : str or None
        Optional variant label (``"w640"``, ``"vp9"``).
    subdir : str
        Directory below the store root, POSIX separated; empty for the root.
    """

    base: str
    extension: str
    digest: str
    label: str | None = None
    subdir: str = ""

    @property
    def file_name(self) -> str:
        """Return the content-addressed file name."""
        return hashed_name(self.base, self.extension, self.digest, label=self.label)

    @property
    def relative_path(self) -> str:
        """Return the POSIX path of the asset relative to the store root."""
        if self.subdir:
            return f"{self.subdir}/{self.file_name}"
        return self.file_name


class HashedAssetStore:
    """Write bytes under content-addressed names below ``root``.

    The store remembers every name it produced during the build. A repeated
    write of identical bytes is a no-op returning the same asset; a name that
    reappears with a different full digest raises ``HashCollisionError``.
    Writes are serialized by a lock so stages may run per-asset in parallel.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._assets: dict[str, HashedAsset] = {}
        self._lock = threading.Lock()

    def write(
        self,
        base: str,
        extension: str,
        data: bytes | str,
        *,
        label: str | None = None,
        subdir: str = "",
    ) -> HashedAsset:
        """Persist ``data`` and return the asset describing its hashed name.

        Parameters
        ----------
        base : str
            Logical name used as the first name segment.
        extension : str
            File extension, with or without a leading dot.
        data : bytes or str
            Content to write; strings are encoded as UTF-8.
        label : str, optional
            Variant label inserted between the base name and the digest.
        subdir : str, optional
            POSIX subdirectory below the store root.

        Returns
        -------
        HashedAsset
            Description of the written file.

        Raises
        ------
        HashCollisionError
            If the derived name was already written for different content.
        """
        payload = data.encode("utf-8") if isinstance(data, str) else data
        asset = HashedAsset(
            base=base,
            extension=extension.lstrip("."),
            digest=content_digest(payload),
            label=label,
            subdir=subdir.strip("/"),
        )
        key = asset.relative_path
        with self._lock:
            existing = self._assets.get(key)
            if existing is not None:
                if existing.digest != asset.digest:
                    raise HashCollisionError(key, existing.digest, asset.digest)
                return existing
            target = self.root / key
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
            self._assets[key] = asset
        log.debug("asset_written", path=key, size=len(payload))
        return asset

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    @property
    def assets(self) -> list[HashedAsset]:
        """Return every asset written so far, in write order."""
        return list(self._assets.values())


__all__ = [
    "HashedAsset",
    "HashedAssetStore",
    "content_digest",
    "hashed_name",
    "manifest_token",
]
