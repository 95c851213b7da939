from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .backends.base import Backend
from .datamodels import Tag
from .errors import AuthError
from .records import filter_literal

logger = logging.getLogger("lynx")

TAGS_COLLECTION = "tags"
TAG_FIELDS = ["id", "name", "slug", "link_count"]
TAG_LIST_PAGE_SIZE = 200

_SLUG_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_SPACES = re.compile(r"\s+")


def resolve_tags(raw_ids: Optional[Iterable[str]], expand: Optional[Dict[str, Any]]) -> List[Tag]:
    """Turn the expanded ``tags`` relation of a record into Tag objects.

    The result keeps the order of the expansion. ``raw_ids`` is only used to
    spot tags the join dropped; those are skipped rather than surfaced as
    bare ids.
    """
    expanded = (expand or {}).get("tags") or []
    if isinstance(expanded, dict):
        expanded = [expanded]

    tags = [
        Tag(
            id=item.get("id", ""),
            name=item.get("name", ""),
            slug=item.get("slug", ""),
        )
        for item in expanded
        if isinstance(item, dict)
    ]

    if raw_ids:
        missing = set(raw_ids) - {t.id for t in tags}
        if missing:
            logger.debug("Tag ids without expansion: %s", sorted(missing))
    return tags


def generate_slug(name: str) -> str:
    slug = _SLUG_STRIP.sub("", name.lower()).strip()
    return _SLUG_SPACES.sub("-", slug)


@dataclass
class TagSort:
    field: str = "name"
    direction: str = "asc"

    def toggle(self, field: str) -> None:
        """Select ``field``; selecting the current field again flips direction."""
        if field == self.field:
            self.direction = "desc" if self.direction == "asc" else "asc"
        else:
            self.field = field
            self.direction = "asc"


def sort_tags(tags: Iterable[Tag], sort: TagSort) -> List[Tag]:
    if sort.field == "link_count":
        key = lambda t: t.link_count or 0
    else:
        key = lambda t: t.name.casefold()
    return sorted(tags, key=key, reverse=sort.direction == "desc")


class TagService:
    """Tag CRUD for the current user."""

    def __init__(self, backend: Backend):
        self.backend = backend

    def _require_user(self) -> str:
        if not self.backend.is_authenticated:
            raise AuthError("Not logged in.")
        return self.backend.session.user_id

    def list_tags(self) -> List[Tag]:
        user_id = self._require_user()
        tags: List[Tag] = []
        page = 1
        while True:
            data = self.backend.list_records(
                TAGS_COLLECTION,
                page=page,
                per_page=TAG_LIST_PAGE_SIZE,
                filter=f"user = {filter_literal(user_id)}",
                sort="name",
                fields=TAG_FIELDS,
            )
            items = data.get("items") or []
            for item in items:
                tags.append(
                    Tag(
                        id=item.get("id", ""),
                        name=item.get("name", ""),
                        slug=item.get("slug", ""),
                        link_count=item.get("link_count"),
                    )
                )
            if page * TAG_LIST_PAGE_SIZE >= (data.get("totalItems") or 0) or not items:
                return tags
            page += 1

    def create_tag(self, name: str) -> Tag:
        user_id = self._require_user()
        name = name.strip()
        if not name:
            raise ValueError("Tag name must not be empty")
        record = self.backend.create_record(
            TAGS_COLLECTION,
            {"name": name, "slug": generate_slug(name), "user": user_id},
        )
        logger.info("Created tag %s", record.get("id"))
        return Tag(
            id=record.get("id", ""),
            name=record.get("name", name),
            slug=record.get("slug", generate_slug(name)),
            link_count=0,
        )

    def delete_tag(self, tag_id: str) -> None:
        self._require_user()
        self.backend.delete_record(TAGS_COLLECTION, tag_id)
        logger.info("Deleted tag %s", tag_id)
