"""Download a STAC catalog subtree to a local directory.

The catalog is walked from its root and every document reached is written
under the destination directory, mirroring its position relative to the
root document. The local copy is self-contained:

- links between downloaded documents become relative hrefs
- links to documents that were not downloaded, and every asset href, become
  absolute so they still point at the original
- `self` links are dropped

Only the JSON documents are copied; asset files stay where they are.

Usage:
    from pathlib import Path
    from stacgraph.download import download_catalog
    from stacgraph.fetch import ObstoreFetcher

    result = download_catalog(
        "https://example.com/catalog.json",
        Path("mirror/"),
        ObstoreFetcher(),
    )
    if not result.success:
        for location, err in result.errors:
            print(location, err)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

from stacgraph.constants import DEFAULT_MAX_WORKERS
from stacgraph.document import serialize
from stacgraph.errors import ResolveError, TraversalError
from stacgraph.fetch import FetchFn
from stacgraph.href import (
    document_base,
    is_absolute,
    is_url,
    make_relative,
    map_hrefs,
    normalize,
    resolve,
    with_self_href,
)
from stacgraph.models import Document
from stacgraph.walk import walk

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class PathTraversalError(ValueError):
    """Raised when a document would be written outside the destination directory."""

    pass


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class DownloadResult:
    """Result of a download operation.

    Attributes:
        success: True if every reached document was written.
        files_downloaded: Number of documents written.
        files_failed: Number of documents that could not be fetched, parsed
            or placed under the destination.
        total_bytes: Total bytes written.
        written: Location -> local path of every written document.
        errors: List of (location, exception) tuples for failed documents.
    """

    success: bool
    files_downloaded: int
    files_failed: int
    total_bytes: int
    written: dict[str, Path] = field(default_factory=dict)
    errors: list[tuple[str, Exception]] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert to JSON-serializable dict."""
        return {
            "success": self.success,
            "files_downloaded": self.files_downloaded,
            "files_failed": self.files_failed,
            "total_bytes": self.total_bytes,
            "written": {location: str(path) for location, path in self.written.items()},
            "errors": [
                {"location": location, "type": type(err).__name__, "message": str(err)}
                for location, err in self.errors
            ],
        }


# =============================================================================
# Target Path Building
# =============================================================================


def _validate_local_path(local_path: Path, destination: Path) -> None:
    """Validate that local path is within destination directory.

    Raises:
        PathTraversalError: If local_path escapes destination directory
    """
    resolved_local = local_path.resolve()
    resolved_dest = destination.resolve()

    try:
        resolved_local.relative_to(resolved_dest)
    except ValueError as err:
        raise PathTraversalError(
            f"Path traversal detected: {local_path} escapes destination {destination}"
        ) from err


def local_path_for(root: str, location: str, destination: Path) -> Path:
    """Local file path for a document, preserving its position relative to ``root``.

    Args:
        root: Location of the root document.
        location: Location of the document to place.
        destination: Local destination directory.

    Raises:
        PathTraversalError: If the document does not live in the root
            document's directory or below it.
    """
    relative = make_relative(root, location)
    if not relative.startswith("./"):
        raise PathTraversalError(f"{location} is outside the directory of {root}")

    path = unquote(urlsplit(relative).path) if is_url(location) else relative
    local_path = destination.joinpath(*PurePosixPath(path).parts)
    _validate_local_path(local_path, destination)
    return local_path


# =============================================================================
# Href Localization
# =============================================================================


def localize(doc: Document, location: str, downloaded: set[str]) -> Document:
    """Rewrite the hrefs of ``doc`` for its local copy.

    Args:
        doc: The document as fetched.
        location: Where it was fetched from; the local copy mirrors it.
        downloaded: Normalized locations of every document being written.

    Returns:
        The document with relative links to downloaded documents, absolute
        links and asset hrefs elsewhere, and no `self` link.
    """
    base = document_base(doc, location)
    link_hrefs = {link.href for link in doc.links}

    def rewrite(href: str) -> str:
        try:
            target = normalize(resolve(base, href))
        except ResolveError as err:
            logger.warning("Keeping unresolvable href %s in %s: %s", href, location, err)
            return href
        if href in link_hrefs and target in downloaded:
            return make_relative(location, target)
        if is_absolute(href):
            return href
        return target

    return with_self_href(map_hrefs(doc, rewrite), None)


# =============================================================================
# Download Functions
# =============================================================================


def download_catalog(
    root: str,
    destination: Path,
    fetch: FetchFn,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    dry_run: bool = False,
    overwrite: bool = True,
) -> DownloadResult:
    """Download every document reachable from ``root`` into ``destination``.

    Args:
        root: Location of the root Catalog, Collection or Item.
        destination: Local destination directory (created if missing).
        fetch: Fetch capability used for every document.
        max_workers: Number of concurrent fetches during the walk.
        dry_run: If True, walk and plan without writing anything.
        overwrite: If False, skip documents whose local file already exists.

    Returns:
        DownloadResult with download statistics

    Raises:
        ValueError: If root is empty.
    """
    if not root or not root.strip():
        raise ValueError("root location cannot be empty")

    root = normalize(root)
    errors: list[tuple[str, Exception]] = []
    planned: list[tuple[str, Document, Path]] = []

    for location, outcome in walk(root, fetch, max_workers=max_workers):
        if isinstance(outcome, TraversalError):
            errors.append((location, outcome))
            continue
        try:
            local_path = local_path_for(root, location, destination)
        except PathTraversalError as err:
            logger.warning("Skipping %s: %s", location, err)
            errors.append((location, err))
            continue
        planned.append((location, outcome, local_path))

    downloaded = {location for location, _, _ in planned}
    written: dict[str, Path] = {}
    total_bytes = 0

    for location, doc, local_path in planned:
        if not overwrite and local_path.exists():
            logger.debug("Skipping existing file: %s", local_path)
            continue
        if dry_run:
            logger.info("[DRY RUN] Would write %s -> %s", location, local_path)
            continue

        payload = serialize(localize(doc, location, downloaded))
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(payload)
        except OSError as err:
            logger.warning("Failed to write %s: %s", local_path, err)
            errors.append((location, err))
            continue

        logger.debug("Wrote %s (%d bytes)", local_path, len(payload))
        written[location] = local_path
        total_bytes += len(payload)

    return DownloadResult(
        success=not errors,
        files_downloaded=len(written),
        files_failed=len(errors),
        total_bytes=total_bytes,
        written=written,
        errors=errors,
    )
