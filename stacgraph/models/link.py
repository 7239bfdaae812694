"""Link dataclass for STAC hyperlinks.

Links connect catalogs, collections, items, and external resources. A link
never points back at the document that owns it; the location used to resolve
a relative href is supplied by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from stacgraph.constants import (
    REL_CHILD,
    REL_COLLECTION,
    REL_ITEM,
    REL_PARENT,
    REL_ROOT,
    REL_SELF,
)
from stacgraph.errors import MalformedError
from stacgraph.models.base import (
    collect_extra,
    merge_extra,
    present,
    require,
    require_list,
    require_mapping,
)

_OPTIONAL_FIELDS = ("type", "title")


@dataclass(frozen=True)
class Link:
    """A STAC link object.

    Attributes:
        rel: Link relationship (e.g., "self", "root", "child", "item").
        href: Link URL or relative path.
        type: Media type of linked resource (optional).
        title: Human-readable link title (optional).
        extra: Any other fields (e.g. "method", "body" on API links).
    """

    rel: str
    href: str
    type: str | None = None
    title: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def is_self(self) -> bool:
        return self.rel == REL_SELF

    def is_root(self) -> bool:
        return self.rel == REL_ROOT

    def is_parent(self) -> bool:
        return self.rel == REL_PARENT

    def is_child(self) -> bool:
        return self.rel == REL_CHILD

    def is_item(self) -> bool:
        return self.rel == REL_ITEM

    def is_collection(self) -> bool:
        return self.rel == REL_COLLECTION

    def with_href(self, href: str) -> Link:
        """Return a copy of this link pointing at ``href``."""
        return replace(self, href=href)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict.

        Returns:
            Dict with non-None fields, followed by the extra fields.
        """
        result: dict[str, Any] = {
            "rel": self.rel,
            "href": self.href,
        }
        if self.type is not None:
            result["type"] = self.type
        if self.title is not None:
            result["title"] = self.title
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Link:
        """Create Link from dict.

        Raises:
            MissingRequiredFieldError: If `rel` or `href` is absent.
            MalformedError: If `rel` or `href` is not a string.
        """
        rel = require(data, "rel", "Link")
        href = require(data, "href", "Link")
        if not isinstance(rel, str) or not isinstance(href, str):
            raise MalformedError("link 'rel' and 'href' must be strings")

        return cls(
            rel=rel,
            href=href,
            type=data.get("type"),
            title=data.get("title"),
            extra=collect_extra(data, {"rel", "href"} | present(data, _OPTIONAL_FIELDS)),
        )


def parse_links(data: dict[str, Any], owner: str) -> tuple[Link, ...]:
    """Parse the required `links` array of a document."""
    raw = require_list(require(data, "links", owner), "links")
    return tuple(Link.from_dict(require_mapping(item, "links[]")) for item in raw)
