"""
Feed querying and feed view state.

``FeedQueryEngine`` turns a page number and SearchParams into one PocketBase
list query and normalizes the answer into a FeedPage.

``FeedController`` owns the filter/sort/page state the UI edits, keeps the
shareable location (``s``/``t``) in sync with it, and makes sure only the
answer to the most recent request ever becomes visible.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .backends.base import Backend
from .config import PAGE_SIZE, READ_THRESHOLD
from .datamodels import FeedPage, Link, ReadState, SearchParams, SortBy
from .errors import LynxError, QueryError
from .pagination import compute_page_info
from .query_params import decode, encode, to_query_string
from .records import filter_literal, optional_float, optional_str, parse_datetime
from .tags import resolve_tags

logger = logging.getLogger("lynx")

LINKS_COLLECTION = "links"
FEED_FIELDS = [
    "id",
    "title",
    "hostname",
    "excerpt",
    "header_image_url",
    "article_date",
    "author",
    "cleaned_url",
    "reading_progress",
    "last_viewed_at",
    "read_time_display",
    "added_to_library",
    "tags",
    "expand.tags.*",
]
SEARCH_FIELDS = ("title", "excerpt", "article_html")


def link_from_record(record: Dict[str, Any]) -> Link:
    return Link(
        id=record.get("id", ""),
        title=optional_str(record.get("title")),
        hostname=optional_str(record.get("hostname")),
        excerpt=optional_str(record.get("excerpt")),
        header_image_url=optional_str(record.get("header_image_url")),
        article_date=parse_datetime(record.get("article_date")),
        author=optional_str(record.get("author")),
        cleaned_url=optional_str(record.get("cleaned_url")),
        reading_progress=optional_float(record.get("reading_progress")),
        last_viewed_at=parse_datetime(record.get("last_viewed_at")),
        read_time_display=optional_str(record.get("read_time_display")),
        added_to_library=parse_datetime(record.get("added_to_library")),
        tags=resolve_tags(record.get("tags"), record.get("expand")),
    )


def _total_items(data: Any) -> int:
    try:
        total = int(data.get("totalItems") or 0)
    except (AttributeError, TypeError, ValueError) as e:
        raise QueryError("The server returned an invalid response.") from e
    if total < 0:
        raise QueryError("The server returned an invalid response.")
    return total


class FeedQueryEngine:
    def __init__(
        self,
        backend: Backend,
        page_size: int = PAGE_SIZE,
        read_threshold: float = READ_THRESHOLD,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        self.backend = backend
        self.page_size = page_size
        self.read_threshold = read_threshold

    def build_filter(self, params: SearchParams) -> str:
        clauses: List[str] = []

        search_text = params.search_text.strip()
        if search_text:
            literal = filter_literal(search_text)
            matches = " || ".join(f"{name} ~ {literal}" for name in SEARCH_FIELDS)
            clauses.append(f"({matches})")

        if params.tag_id:
            clauses.append(f"tags ~ {filter_literal(params.tag_id)}")

        if params.read_state == ReadState.READ:
            clauses.append(f"reading_progress >= {self.read_threshold}")
        elif params.read_state == ReadState.UNREAD:
            clauses.append(
                f"(reading_progress = null || reading_progress < {self.read_threshold})"
            )

        return " && ".join(clauses)

    def build_sort(self, params: SearchParams) -> str:
        sort_by = params.sort_by.value if isinstance(params.sort_by, SortBy) else str(params.sort_by)
        return f"-{sort_by}"

    def _query(self, page: int, params: SearchParams) -> Dict[str, Any]:
        try:
            return self.backend.list_records(
                LINKS_COLLECTION,
                page=page,
                per_page=self.page_size,
                filter=self.build_filter(params),
                sort=self.build_sort(params),
                fields=FEED_FIELDS,
                expand="tags",
            )
        except QueryError:
            raise
        except LynxError as e:
            raise QueryError(e.message, e.status) from e

    def fetch_feed(self, page: int, params: SearchParams) -> FeedPage:
        requested = max(page, 1)
        data = self._query(requested, params)
        total_items = _total_items(data)
        info = compute_page_info(total_items, self.page_size, requested)

        if info.current_page != requested and total_items > 0:
            # Past the last page: fetch the page we clamp to so items and
            # current_page agree.
            logger.debug("Page %d out of range, loading page %d", requested, info.current_page)
            data = self._query(info.current_page, params)
            total_items = _total_items(data)
            info = compute_page_info(total_items, self.page_size, info.current_page)

        try:
            items = [link_from_record(r) for r in data.get("items") or []]
        except (AttributeError, TypeError, ValueError) as e:
            raise QueryError("The server returned an invalid response.") from e
        return FeedPage(
            items=items,
            current_page=info.current_page,
            total_pages=info.total_pages,
            total_items=total_items,
        )


@dataclass(frozen=True)
class FeedRequest:
    token: int
    page: int
    params: SearchParams


class FeedController:
    def __init__(
        self,
        engine: FeedQueryEngine,
        location: Union[str, Mapping[str, Any], None] = None,
    ):
        self.engine = engine
        # Shareable fields live in the location; the rest is session-local.
        self.location: Dict[str, str] = encode(SearchParams())
        self.read_state = ReadState.ALL
        self.sort_by = SortBy.ADDED_TO_LIBRARY
        self.page = 1

        self.feed_page: Optional[FeedPage] = None
        self.error: Optional[QueryError] = None
        self.loading = False

        self._latest_token = 0
        self._listeners: List[Callable[[FeedController], None]] = []

        if location is not None:
            self.load_location(location)

    @property
    def params(self) -> SearchParams:
        shared = decode(self.location)
        return SearchParams(
            search_text=shared["search_text"] or "",
            tag_id=shared["tag_id"],
            read_state=self.read_state,
            sort_by=self.sort_by,
        )

    def subscribe(self, callback: Callable[[FeedController], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback(self)

    def apply_search_params(self, params: SearchParams) -> None:
        """Apply a filter change made by the user.

        This is the only place the location is written from UI state.
        """
        self.location = encode(params)
        self.read_state = params.read_state
        self.sort_by = params.sort_by
        self.page = 1

    def load_location(self, query: Union[str, Mapping[str, Any], None]) -> None:
        """Adopt a location coming from outside (startup, a pasted link)."""
        before = self.params
        shared = decode(query)
        self.location = encode(
            SearchParams(search_text=shared["search_text"] or "", tag_id=shared["tag_id"])
        )
        if self.params != before:
            self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, page)

    def query_string(self) -> str:
        return to_query_string(self.params)

    def share_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/?{self.query_string()}"

    def begin_request(self) -> FeedRequest:
        self._latest_token += 1
        request = FeedRequest(token=self._latest_token, page=self.page, params=self.params)
        self.loading = True
        self.error = None
        logger.debug("Feed request %d: page=%d params=%s", request.token, request.page, request.params)
        self._notify()
        return request

    def is_current(self, request: FeedRequest) -> bool:
        return (
            request.token == self._latest_token
            and request.page == self.page
            and request.params == self.params
        )

    def _discard(self, request: FeedRequest) -> None:
        logger.debug("Discarding stale feed response %d", request.token)
        if request.token == self._latest_token and self.loading:
            # State moved on without a new request; stop showing a spinner.
            self.loading = False
            self._notify()

    async def run(self, request: FeedRequest) -> Optional[FeedPage]:
        """Fetch ``request`` and commit it if it is still the current one."""
        try:
            result = await asyncio.to_thread(self.engine.fetch_feed, request.page, request.params)
        except QueryError as e:
            if not self.is_current(request):
                self._discard(request)
                return None
            logger.error("Feed query failed: %s", e)
            self.error = e
            self.loading = False
            self._notify()
            return None

        if not self.is_current(request):
            self._discard(request)
            return None

        self.feed_page = result
        self.page = result.current_page
        self.error = None
        self.loading = False
        self._notify()
        return result

    async def refresh(self) -> Optional[FeedPage]:
        return await self.run(self.begin_request())
