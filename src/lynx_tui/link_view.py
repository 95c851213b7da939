from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from .backends.base import Backend
from .config import UPDATE_LAST_VIEWED_HEADER
from .datamodels import LinkView
from .errors import AuthError, LynxError
from .feed import LINKS_COLLECTION
from .records import optional_float, optional_str, parse_datetime
from .tags import resolve_tags

logger = logging.getLogger("lynx")

LINK_VIEW_FIELDS = [
    "id",
    "article_date",
    "author",
    "excerpt",
    "header_image_url",
    "hostname",
    "last_viewed_at",
    "read_time_display",
    "title",
    "tags",
    "cleaned_url",
    "article_html",
    "reading_progress",
    "expand.tags.*",
]


def link_view_from_record(record: Dict[str, Any]) -> LinkView:
    return LinkView(
        id=record.get("id", ""),
        title=optional_str(record.get("title")),
        hostname=optional_str(record.get("hostname")),
        excerpt=optional_str(record.get("excerpt")),
        header_image_url=optional_str(record.get("header_image_url")),
        article_date=parse_datetime(record.get("article_date")),
        author=optional_str(record.get("author")),
        cleaned_url=optional_str(record.get("cleaned_url")),
        article_html=optional_str(record.get("article_html")),
        reading_progress=optional_float(record.get("reading_progress")),
        last_viewed_at=parse_datetime(record.get("last_viewed_at")),
        read_time_display=optional_str(record.get("read_time_display")),
        tags=resolve_tags(record.get("tags"), record.get("expand")),
    )


def fetch_link_view(backend: Backend, link_id: str, record_view: bool) -> LinkView:
    """Load one link for reading.

    With ``record_view`` the same request asks the server to stamp
    ``last_viewed_at``; the client never sends a timestamp of its own.
    Raises AuthError without touching the network when logged out.
    """
    if not backend.is_authenticated:
        raise AuthError("Not logged in.")

    headers = {UPDATE_LAST_VIEWED_HEADER: "true"} if record_view else {}
    record = backend.get_record(
        LINKS_COLLECTION,
        link_id,
        fields=LINK_VIEW_FIELDS,
        expand="tags",
        headers=headers,
    )
    return link_view_from_record(record)


class LinkViewQuery:
    """Loading/error/result state for one link, with a refetch handle.

    Logged out, the query sits in the unauthenticated state: nothing is
    loading, there is no error, and ``refetch`` is None.
    """

    def __init__(self, backend: Backend, link_id: str, record_view: bool):
        self.backend = backend
        self.link_id = link_id
        self.record_view = record_view
        self.result: Optional[LinkView] = None
        self.error: Optional[LynxError] = None
        self.unauthenticated = not backend.is_authenticated
        self.loading = not self.unauthenticated
        self._latest_token = 0
        self._lock = threading.Lock()

    @property
    def refetch(self):
        if self.unauthenticated:
            return None
        return self.fetch

    def fetch(self) -> Optional[LinkView]:
        """Load the link; only the most recent call may update the state."""
        if self.unauthenticated:
            return None
        with self._lock:
            self._latest_token += 1
            token = self._latest_token
            self.loading = True
            self.error = None

        result: Optional[LinkView] = None
        error: Optional[LynxError] = None
        rejected = False
        try:
            result = fetch_link_view(self.backend, self.link_id, self.record_view)
        except AuthError:
            rejected = True
        except LynxError as e:
            error = e
        finally:
            with self._lock:
                if token != self._latest_token:
                    logger.debug("Discarding stale load %d of link %s", token, self.link_id)
                else:
                    if rejected:
                        logger.info("Session rejected while loading link %s", self.link_id)
                        self.unauthenticated = True
                        self.result = None
                    elif error is not None:
                        logger.error("Failed to load link %s: %s", self.link_id, error)
                        self.error = error
                    elif result is not None:
                        self.result = result
                    self.loading = False
        return self.result
