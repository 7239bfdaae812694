"""Href resolution and rebasing.

A location is a string naming where a document lives: either a URL with a
scheme (``https://``, ``s3://``, ``file://``...) or a filesystem path. Hrefs
found in links and assets are absolute (they carry a scheme, or are absolute
paths) or relative to the location of the document that holds them.

All functions here are pure string transforms; nothing touches the network
or the filesystem.

Key rules:
- A base ending in "/" is a directory; otherwise its parent directory is used.
- "." and ".." segments collapse; a trailing slash on the href is kept.
- URL and filesystem forms are never mixed (SchemeMismatchError).
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Callable
from dataclasses import replace
from urllib.parse import SplitResult, urlsplit, urlunsplit

from stacgraph.constants import MEDIA_TYPE_JSON, REL_SELF
from stacgraph.errors import SchemeMismatchError
from stacgraph.models import Collection, Document, Item, Link

# "C:\data" or "C:/data"; a one-letter "scheme" is a Windows drive, not a URL
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:[\\/]")


def is_url(location: str) -> bool:
    """True if ``location`` carries a URL scheme."""
    return len(urlsplit(location).scheme) > 1


def is_absolute(href: str) -> bool:
    """True if ``href`` does not depend on the location of its document."""
    return is_url(href) or href.startswith("/") or bool(_WINDOWS_DRIVE.match(href))


def _normpath(path: str) -> str:
    """Collapse "." and ".." segments, keeping a trailing slash."""
    if not path:
        return path
    trailing = path.endswith(("/", "/.", "/..")) or path in (".", "..")
    normalized = posixpath.normpath(path)
    # POSIX allows exactly two leading slashes to be special; URLs do not
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    if trailing and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def _directory(path: str) -> str:
    """The directory part of a path, with a trailing slash when non-empty."""
    if path.endswith("/"):
        return path
    head = posixpath.dirname(path)
    return f"{head}/" if head and head != "/" else head


def _join_url(base: SplitResult, href: str) -> str:
    ref = urlsplit(href)
    if href.startswith("//"):
        return urlunsplit((base.scheme, ref.netloc, _normpath(ref.path), ref.query, ref.fragment))

    if not ref.path:
        path = base.path
        query = ref.query or base.query
    elif ref.path.startswith("/"):
        path = _normpath(ref.path)
        query = ref.query
    else:
        directory = _directory(base.path) or "/"
        path = _normpath(posixpath.join(directory, ref.path))
        query = ref.query
    return urlunsplit((base.scheme, base.netloc, path, query, ref.fragment))


def resolve(base: str, href: str) -> str:
    """Resolve ``href`` against the location ``base``.

    Args:
        base: Location of the document holding the href (URL or path).
        href: The href to resolve.

    Returns:
        ``href`` unchanged when it has a scheme; otherwise the joined location.

    Raises:
        SchemeMismatchError: If a URL base meets a Windows/backslash path
            href, or a filesystem base meets a network-path ("//host") href.

    Examples:
        >>> resolve("/a/b/", "../c.json")
        '/a/c.json'
        >>> resolve("https://x/y/", "z.json")
        'https://x/y/z.json'
    """
    if is_url(href):
        return href
    if not href:
        return base

    if is_url(base):
        if _WINDOWS_DRIVE.match(href) or "\\" in href:
            raise SchemeMismatchError(base, href)
        return _join_url(urlsplit(base), href)

    if href.startswith("//"):
        raise SchemeMismatchError(base, href)
    if href.startswith("/") or _WINDOWS_DRIVE.match(href):
        return _normpath(href)
    directory = _directory(base)
    return _normpath(posixpath.join(directory, href) if directory else href)


def normalize(location: str) -> str:
    """Canonical form of a location, used to detect already-visited documents.

    URLs get a lowercase scheme and host, dot segments removed and the
    fragment dropped. Paths get dot segments collapsed.
    """
    if not is_url(location):
        return _normpath(location)
    parts = urlsplit(location)
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), _normpath(parts.path), parts.query, "")
    )


def _relative_path(base_path: str, target_path: str) -> str:
    start = _directory(base_path) or "."
    rel = posixpath.relpath(target_path, start)
    if rel == ".":
        return "./"
    if target_path.endswith("/"):
        rel += "/"
    if rel != ".." and not rel.startswith("../"):
        rel = "./" + rel
    return rel


def make_relative(base: str, target: str) -> str:
    """Express ``target`` relative to the location ``base``.

    The inverse of :func:`resolve`: ``resolve(base, make_relative(base, t))``
    equals ``t`` (up to normalization). Targets that cannot be reached
    relatively (another scheme or host, URL versus path, absolute versus
    relative path) are returned unchanged. Targets in the base directory or
    below get a "./" prefix.
    """
    if is_url(base) != is_url(target):
        return target

    if is_url(base):
        b, t = urlsplit(base), urlsplit(target)
        if (b.scheme.lower(), b.netloc.lower()) != (t.scheme.lower(), t.netloc.lower()):
            return target
        rel = _relative_path(b.path or "/", t.path or "/")
        return urlunsplit(("", "", rel, t.query, t.fragment))

    if base.startswith("/") != target.startswith("/"):
        return target
    return _relative_path(base, target)


def _same_directory(a: str, b: str) -> bool:
    if is_url(a) != is_url(b):
        return False
    if is_url(a):
        pa, pb = urlsplit(normalize(a)), urlsplit(normalize(b))
        left = (pa.scheme, pa.netloc, _directory(pa.path))
        return left == (pb.scheme, pb.netloc, _directory(pb.path))
    return _directory(normalize(a)) == _directory(normalize(b))


def _related(a: str, b: str) -> bool:
    """True if a relative path can lead from location ``a`` to location ``b``."""
    if is_url(a) != is_url(b):
        return False
    if is_url(a):
        pa, pb = urlsplit(a), urlsplit(b)
        return (pa.scheme.lower(), pa.netloc.lower()) == (pb.scheme.lower(), pb.netloc.lower())
    return a.startswith("/") == b.startswith("/")


def _spelled_like(href: str, rel: str) -> str:
    """``rel`` with a leading "./" exactly when ``href`` has one."""
    if rel == "./":
        return rel if href.startswith("./") else "."
    body = rel[2:] if rel.startswith("./") else rel
    return f"./{body}" if href.startswith("./") else body


def _is_plain(location: str, href: str) -> bool:
    """True if ``href`` is the shortest spelling of its target as seen from ``location``."""
    return _spelled_like(href, make_relative(location, resolve(location, href))) == href


def _directory_step(start: str, end: str) -> str:
    """Relative path from the directory of ``start`` to the directory of ``end``."""
    step = make_relative(start, resolve(end, "./"))
    return step[2:] if step.startswith("./") else step


def _drops(body: str, drop: str, add: str, at: str, back_at: str, lead: str) -> bool:
    """Whether moving ``body`` to ``at`` removes the ``drop`` prefix instead of adding ``add``.

    The reverse move makes the mirror decision, so a body that loses its
    prefix on the way there gets it back on the way home and vice versa.
    """
    if not body.startswith(drop):
        return False
    rest = body[len(drop) :]
    href = lead + rest
    if is_absolute(href) or not urlsplit(href).path or rest.startswith("./"):
        return False
    if _is_plain(at, href):
        return False
    return not _drops(rest, add, drop, back_at, at, lead)


def rebase(doc: Document, old_location: str, new_location: str) -> Document:
    """Rewrite the relative hrefs of ``doc`` for a move from one location to another.

    Every relative href in the document's links and assets keeps pointing at
    the same target after the document is moved, and rebasing back restores
    the original strings exactly. Hrefs already in their shortest form
    (``col.json``, ``./col.json``, ``../up.json``) are recomputed for the new
    location and keep their leading "./", or its absence. Any other spelling
    (``a/../col.json``, ``./x/./y.json``) gets the path from the new directory
    to the old one prepended, or that prefix removed when the href already
    starts with the opposite step. Absolute hrefs and hrefs naming the
    document itself (``#frag``) are left alone. The input document is not
    modified.

    Args:
        doc: The document to rewrite.
        old_location: Where the document lived.
        new_location: Where the document will live.

    Returns:
        A new document (or ``doc`` itself when both locations share a directory).

    Raises:
        SchemeMismatchError: If no relative path joins the two locations (a
            URL and a filesystem path, or URLs on different hosts).

    Examples:
        >>> moved = rebase(doc, "/a/b/catalog.json", "/a/catalog.json")
        >>> [link.href for link in moved.links]  # was ["col.json", "./col.json"]
        ['b/col.json', './b/col.json']
    """
    if not _related(old_location, new_location):
        raise SchemeMismatchError(old_location, new_location)
    if _same_directory(old_location, new_location):
        return doc

    down = _directory_step(old_location, new_location)
    up = _directory_step(new_location, old_location)

    def rewrite(href: str) -> str:
        if is_absolute(href) or not urlsplit(href).path:
            return href
        if _is_plain(old_location, href):
            target = resolve(old_location, href)
            return _spelled_like(href, make_relative(new_location, target))

        body = href
        while body.startswith("./"):
            body = body[2:]
        lead = href[: len(href) - len(body)]
        if _drops(body, down, up, new_location, old_location, lead):
            return lead + body[len(down) :]
        return lead + up + body

    return map_hrefs(doc, rewrite)


def map_hrefs(doc: Document, rewrite: Callable[[str], str]) -> Document:
    """Return a copy of ``doc`` with ``rewrite`` applied to every link and asset href."""
    links = tuple(link.with_href(rewrite(link.href)) for link in doc.links)
    if isinstance(doc, (Item, Collection)) and doc.assets is not None:
        assets = {
            key: replace(asset, href=rewrite(asset.href)) for key, asset in doc.assets.items()
        }
        return replace(doc, links=links, assets=assets)
    return replace(doc, links=links)


def document_base(doc: Document, location: str) -> str:
    """The location that relative hrefs of ``doc`` resolve against.

    An absolute `self` href is the document's canonical location and wins;
    otherwise the location the document was read from is used.
    """
    self_href = doc.self_href()
    if self_href is not None and is_absolute(self_href):
        return self_href
    return location


def with_self_href(doc: Document, location: str | None) -> Document:
    """Return ``doc`` with its `self` link set to ``location``.

    An existing `self` link is replaced in place, otherwise one is appended.
    Passing None removes every `self` link.
    """
    links: list[Link] = []
    replaced = False
    for link in doc.links:
        if link.rel != REL_SELF:
            links.append(link)
        elif location is not None and not replaced:
            links.append(link.with_href(location))
            replaced = True

    if location is not None and not replaced:
        links.append(Link(rel=REL_SELF, href=location, type=MEDIA_TYPE_JSON))
    return replace(doc, links=tuple(links))
