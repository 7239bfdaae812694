"""Tests for stacgraph.href resolution, normalization and rebasing."""

from __future__ import annotations

import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

from stacgraph.errors import SchemeMismatchError
from stacgraph.href import (
    document_base,
    is_absolute,
    make_relative,
    normalize,
    rebase,
    resolve,
    with_self_href,
)
from stacgraph.models import Asset, Catalog, Item, Link


class TestResolve:
    """Tests for resolve()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("base", "href", "expected"),
        [
            ("/a/b/", "../c.json", "/a/c.json"),
            ("https://x/y/", "z.json", "https://x/y/z.json"),
            ("https://x/y/catalog.json", "./col/c.json", "https://x/y/col/c.json"),
            ("https://x/y/catalog.json", "../other.json", "https://x/other.json"),
            ("https://x/y/catalog.json", "/abs.json", "https://x/abs.json"),
            ("https://x/y/catalog.json", "//cdn/z.json", "https://cdn/z.json"),
            ("s3://bucket/root/catalog.json", "./a/b.json", "s3://bucket/root/a/b.json"),
            ("/data/catalog.json", "sub/item.json", "/data/sub/item.json"),
            ("/data/catalog.json", "./sub/", "/data/sub/"),
            ("catalog.json", "./col.json", "col.json"),
            ("rel/catalog.json", "../x.json", "x.json"),
            ("/data/catalog.json", "/elsewhere/x.json", "/elsewhere/x.json"),
        ],
    )
    def test_joins(self, base: str, href: str, expected: str) -> None:
        assert resolve(base, href) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("base", ["/a/b/", "https://x/y/", "C:/data/catalog.json", ""])
    def test_absolute_url_unchanged(self, base: str) -> None:
        assert resolve(base, "https://other/cat.json") == "https://other/cat.json"

    @pytest.mark.unit
    def test_empty_href_is_base(self) -> None:
        assert resolve("https://x/y/catalog.json", "") == "https://x/y/catalog.json"

    @pytest.mark.unit
    @pytest.mark.parametrize("href", ["C:\\data\\item.json", "sub\\item.json", "D:/item.json"])
    def test_url_base_with_windows_href_raises(self, href: str) -> None:
        with pytest.raises(SchemeMismatchError) as exc_info:
            resolve("https://x/y/catalog.json", href)

        assert exc_info.value.code == "STG-RES001"

    @pytest.mark.unit
    def test_path_base_with_network_path_raises(self) -> None:
        with pytest.raises(SchemeMismatchError):
            resolve("/data/catalog.json", "//host/item.json")


class TestIsAbsolute:
    """Tests for is_absolute()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("href", "expected"),
        [
            ("https://x/a.json", True),
            ("s3://b/a.json", True),
            ("/a.json", True),
            ("C:\\a.json", True),
            ("./a.json", False),
            ("../a.json", False),
            ("a.json", False),
        ],
    )
    def test_forms(self, href: str, expected: bool) -> None:
        assert is_absolute(href) is expected


class TestNormalize:
    """Tests for normalize()."""

    @pytest.mark.unit
    def test_url(self) -> None:
        location = "HTTPS://Example.COM/a/./b/../c.json#frag"

        assert normalize(location) == "https://example.com/a/c.json"

    @pytest.mark.unit
    def test_path_keeps_trailing_slash(self) -> None:
        assert normalize("/a/b/../c/") == "/a/c/"

    @pytest.mark.unit
    def test_query_is_kept(self) -> None:
        assert normalize("https://x/search?limit=10") == "https://x/search?limit=10"


class TestMakeRelative:
    """Tests for make_relative()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("base", "target", "expected"),
        [
            ("https://x/a/catalog.json", "https://x/a/col/c.json", "./col/c.json"),
            ("https://x/a/col/c.json", "https://x/a/catalog.json", "../catalog.json"),
            ("/a/catalog.json", "/a/catalog.json", "./catalog.json"),
            ("/a/b/c.json", "/x/y.json", "../../x/y.json"),
        ],
    )
    def test_relative(self, base: str, target: str, expected: str) -> None:
        assert make_relative(base, target) == expected
        assert resolve(base, expected) == target

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("base", "target"),
        [
            ("https://x/a/catalog.json", "https://y/a/c.json"),
            ("https://x/a/catalog.json", "s3://x/a/c.json"),
            ("/a/catalog.json", "https://x/a/c.json"),
            ("https://x/a/catalog.json", "/a/c.json"),
        ],
    )
    def test_unrelatable_target_unchanged(self, base: str, target: str) -> None:
        assert make_relative(base, target) == target


def _item(*hrefs: str) -> Item:
    return Item(
        id="item",
        links=tuple(Link(rel="child", href=href) for href in hrefs),
        assets={"data": Asset(href="./data.tif"), "remote": Asset(href="https://cdn/x.tif")},
    )


class TestRebase:
    """Tests for rebase()."""

    @pytest.mark.unit
    def test_rewrites_relative_hrefs(self) -> None:
        item = _item("./sibling.json", "../up.json", "https://abs/x.json")

        moved = rebase(item, "https://x/a/b/item.json", "https://x/a/item.json")

        assert [link.href for link in moved.links] == [
            "./b/sibling.json",
            "up.json",
            "https://abs/x.json",
        ]
        assert moved.assets["data"].href == "./b/data.tif"
        assert moved.assets["remote"].href == "https://cdn/x.tif"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("href", "expected"),
        [
            ("col.json", "../a/b/col.json"),
            ("./col.json", "./../a/b/col.json"),
            ("sub/col.json", "../a/b/sub/col.json"),
            ("./a/../col.json", "./../a/b/a/../col.json"),
            ("../../c/col.json", "col.json"),
        ],
    )
    def test_keeps_spelling(self, href: str, expected: str) -> None:
        item = _item(href)
        a, b = "https://x/a/b/cat.json", "https://x/c/cat.json"

        moved = rebase(item, a, b)

        assert moved.links[0].href == expected
        assert resolve(b, expected) == resolve(a, href)
        assert rebase(moved, b, a) == item

    @pytest.mark.unit
    def test_moving_into_subdirectory(self) -> None:
        item = _item("sub/x.json", "./sub/x.json", "sub/", "up.json")

        moved = rebase(item, "/data/cat.json", "/data/sub/cat.json")

        assert [link.href for link in moved.links] == ["x.json", "./x.json", ".", "../up.json"]
        assert rebase(moved, "/data/sub/cat.json", "/data/cat.json") == item

    @pytest.mark.unit
    def test_fragment_href_is_unchanged(self) -> None:
        item = _item("#part")

        moved = rebase(item, "https://x/a/b/item.json", "https://x/item.json")

        assert moved.links[0].href == "#part"

    @pytest.mark.unit
    def test_input_is_not_modified(self) -> None:
        item = _item("./sibling.json")

        rebase(item, "/a/b/item.json", "/a/item.json")

        assert item.links[0].href == "./sibling.json"

    @pytest.mark.unit
    def test_same_directory_is_noop(self) -> None:
        item = _item("./sibling.json")

        assert rebase(item, "/a/b/item.json", "/a/b/renamed.json") is item

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("old", "new"),
        [
            ("https://x/a/item.json", "https://y/item.json"),
            ("https://x/a/cat.json", "/local/cat.json"),
            ("/local/cat.json", "https://x/a/cat.json"),
            ("/local/cat.json", "relative/cat.json"),
        ],
    )
    def test_unrelated_locations_raise(self, old: str, new: str) -> None:
        item = _item("./col.json")

        with pytest.raises(SchemeMismatchError):
            rebase(item, old, new)

    @pytest.mark.unit
    def test_round_trip(self) -> None:
        item = _item("./sibling.json", "../up.json", "./deep/er/x.json", "col.json")
        a, b = "https://x/a/b/item.json", "https://x/c/item.json"

        assert rebase(rebase(item, a, b), b, a) == item


_segment = st.text(
    st.sampled_from(string.ascii_lowercase + string.digits + "_-"), min_size=1, max_size=8
)


@st.composite
def _relative_href(draw: st.DrawFn) -> str:
    lead = draw(st.sampled_from(["", "./", "././"]))
    ups = draw(st.integers(min_value=0, max_value=2))
    detour = draw(st.sampled_from(["", "./", "tmp/../"]))
    path = "/".join(draw(st.lists(_segment, min_size=1, max_size=3)))
    if draw(st.booleans()):
        path = path.replace("/", "//", 1)
    return lead + "../" * ups + detour + path + ".json"


@st.composite
def _locations(draw: st.DrawFn) -> tuple[str, str]:
    root = draw(st.sampled_from(["https://example.com/", "/"]))
    a, b = draw(st.lists(st.lists(_segment, min_size=3, max_size=5), min_size=2, max_size=2))
    return root + "/".join(a) + ".json", root + "/".join(b) + ".json"


class TestRebaseProperties:
    """Property-based tests for the rebase round-trip law."""

    @pytest.mark.unit
    @given(hrefs=st.lists(_relative_href(), min_size=1, max_size=5), locations=_locations())
    def test_rebase_there_and_back(self, hrefs: list[str], locations: tuple[str, str]) -> None:
        a, b = locations
        item = _item(*hrefs)

        assert rebase(rebase(item, a, b), b, a) == item

    @pytest.mark.unit
    @given(href=_relative_href(), locations=_locations())
    def test_rebase_preserves_target(self, href: str, locations: tuple[str, str]) -> None:
        a, b = locations
        item = _item(href)

        moved = rebase(item, a, b)

        assert resolve(b, moved.links[0].href) == resolve(a, href)


class TestSelfHref:
    """Tests for with_self_href() and document_base()."""

    @pytest.mark.unit
    def test_appends_self(self) -> None:
        catalog = Catalog(id="c", description="d")

        updated = with_self_href(catalog, "https://x/catalog.json")

        assert updated.self_href() == "https://x/catalog.json"

    @pytest.mark.unit
    def test_replaces_self_in_place(self) -> None:
        catalog = Catalog(
            id="c",
            description="d",
            links=(Link(rel="root", href="./c.json"), Link(rel="self", href="old")),
        )

        updated = with_self_href(catalog, "new")

        assert [link.rel for link in updated.links] == ["root", "self"]
        assert updated.self_href() == "new"

    @pytest.mark.unit
    def test_none_removes_self(self) -> None:
        catalog = Catalog(id="c", description="d", links=(Link(rel="self", href="old"),))

        assert with_self_href(catalog, None).links == ()

    @pytest.mark.unit
    def test_document_base_prefers_absolute_self(self) -> None:
        catalog = Catalog(
            id="c", description="d", links=(Link(rel="self", href="https://canon/c.json"),)
        )

        assert document_base(catalog, "/local/c.json") == "https://canon/c.json"

    @pytest.mark.unit
    def test_document_base_ignores_relative_self(self) -> None:
        catalog = Catalog(id="c", description="d", links=(Link(rel="self", href="./c.json"),))

        assert document_base(catalog, "/local/c.json") == "/local/c.json"
