from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from lynx_tui.datamodels import AuthSession, Tag
from lynx_tui.errors import AuthError
from lynx_tui.tags import TagService, TagSort, generate_slug, resolve_tags, sort_tags


@pytest.fixture
def backend():
    mock = MagicMock()
    mock.is_authenticated = True
    mock.session = AuthSession(token="tok", user_id="user_1")
    return mock


def test_generate_slug():
    assert generate_slug("Go & Rust!") == "go-rust"
    assert generate_slug("  multi   space ") == "multi-space"
    assert generate_slug("Already-slugged_name") == "already-slugged_name"


def test_resolve_tags_keeps_join_order():
    expand = {
        "tags": [
            {"id": "b", "name": "Zeta", "slug": "zeta", "user": "u"},
            {"id": "a", "name": "Alpha", "slug": "alpha", "user": "u"},
        ]
    }
    tags = resolve_tags(["a", "b"], expand)
    assert [t.id for t in tags] == ["b", "a"]
    assert tags[0] == Tag(id="b", name="Zeta", slug="zeta")


@pytest.mark.parametrize("expand", [None, {}, {"tags": None}, {"tags": []}])
def test_resolve_tags_without_expansion_is_empty_list(expand):
    assert resolve_tags(["a"], expand) == []


def test_tag_sort_toggle():
    sort = TagSort()
    assert (sort.field, sort.direction) == ("name", "asc")
    sort.toggle("name")
    assert sort.direction == "desc"
    sort.toggle("link_count")
    assert (sort.field, sort.direction) == ("link_count", "asc")
    sort.toggle("link_count")
    assert sort.direction == "desc"


def test_sort_tags_by_name_is_case_insensitive():
    tags = [Tag("1", "beta", "beta"), Tag("2", "Alpha", "alpha"), Tag("3", "Gamma", "gamma")]
    assert [t.name for t in sort_tags(tags, TagSort("name", "asc"))] == ["Alpha", "beta", "Gamma"]
    assert [t.name for t in sort_tags(tags, TagSort("name", "desc"))] == ["Gamma", "beta", "Alpha"]


def test_sort_tags_by_link_count():
    tags = [Tag("1", "a", "a", 5), Tag("2", "b", "b", 12), Tag("3", "c", "c", 0)]
    assert [t.link_count for t in sort_tags(tags, TagSort("link_count", "asc"))] == [0, 5, 12]
    assert [t.link_count for t in sort_tags(tags, TagSort("link_count", "desc"))] == [12, 5, 0]


def test_create_tag_sends_name_slug_and_owner(backend):
    backend.create_record.return_value = {"id": "t9", "name": "Go & Rust!", "slug": "go-rust"}
    tag = TagService(backend).create_tag("Go & Rust!")
    backend.create_record.assert_called_once_with(
        "tags", {"name": "Go & Rust!", "slug": "go-rust", "user": "user_1"}
    )
    assert tag.id == "t9"
    assert tag.slug == "go-rust"


def test_create_tag_rejects_blank_name(backend):
    with pytest.raises(ValueError):
        TagService(backend).create_tag("   ")
    backend.create_record.assert_not_called()


def test_delete_tag(backend):
    TagService(backend).delete_tag("t1")
    backend.delete_record.assert_called_once_with("tags", "t1")


def test_list_tags_reads_every_page(backend):
    first = [{"id": f"t{i}", "name": f"n{i}", "slug": f"n{i}", "link_count": i} for i in range(200)]
    second = [{"id": "last", "name": "last", "slug": "last", "link_count": 3}]
    backend.list_records.side_effect = [
        {"items": first, "totalItems": 201},
        {"items": second, "totalItems": 201},
    ]
    tags = TagService(backend).list_tags()
    assert len(tags) == 201
    assert tags[-1] == Tag("last", "last", "last", 3)
    assert backend.list_records.call_args_list[1].kwargs["page"] == 2
    assert backend.list_records.call_args.kwargs["filter"] == 'user = "user_1"'


def test_tag_service_requires_session(backend):
    backend.is_authenticated = False
    with pytest.raises(AuthError):
        TagService(backend).list_tags()
    backend.list_records.assert_not_called()
