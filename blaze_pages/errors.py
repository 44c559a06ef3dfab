"""Fatal build errors raised by the blaze_pages pipeline.

Only structural violations live here: a missing input set, two documents
claiming one output path, unreadable frontmatter, or two different byte
sequences hashed to one asset name. Everything in the media path degrades to
a logged warning instead and never raises one of these.
"""

from __future__ import annotations


class BuildError(RuntimeError):
    """Base class for errors that abort the whole build."""


class NoSourceDocumentsError(BuildError):
    """Raised when the content directory holds no markdown sources."""


class DuplicateOutputPathError(BuildError):
    """Raised when two documents resolve to the same output path."""

    def __init__(self, output_path: str, first: str, second: str) -> None:
        self.output_path = output_path
        self.first = first
        self.second = second
        msg = f"Duplicate output path: {output_path} ({first}, {second})"
        super().__init__(msg)


class FrontmatterError(BuildError):
    """Raised when a source's frontmatter block is not a YAML mapping."""

    def __init__(self, source_path: str, reason: str) -> None:
        self.source_path = source_path
        super().__init__(f"Invalid frontmatter in {source_path}: {reason}")


class HashCollisionError(BuildError):
    """Raised when an asset name is produced for two different digests."""

    def __init__(self, file_name: str, existing: str, incoming: str) -> None:
        self.file_name = file_name
        self.existing = existing
        self.incoming = incoming
        msg = (
            f"Hash collision on {file_name}: "
            f"{existing[:16]}... != {incoming[:16]}..."
        )
        super().__init__(msg)


__all__ = [
    "BuildError",
    "DuplicateOutputPathError",
    "FrontmatterError",
    "HashCollisionError",
    "NoSourceDocumentsError",
]
