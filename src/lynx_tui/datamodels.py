from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ReadState(str, Enum):
    ALL = "all"
    READ = "read"
    UNREAD = "unread"


class SortBy(str, Enum):
    ADDED_TO_LIBRARY = "added_to_library"
    ARTICLE_DATE = "article_date"
    LAST_VIEWED_AT = "last_viewed_at"


# --- Data models ---
@dataclass
class Tag:
    id: str
    name: str
    slug: str
    link_count: Optional[int] = None


@dataclass
class Link:
    id: str
    title: Optional[str] = None
    hostname: Optional[str] = None
    excerpt: Optional[str] = None
    header_image_url: Optional[str] = None
    article_date: Optional[datetime] = None
    author: Optional[str] = None
    cleaned_url: Optional[str] = None
    reading_progress: Optional[float] = None
    last_viewed_at: Optional[datetime] = None
    read_time_display: Optional[str] = None
    added_to_library: Optional[datetime] = None
    tags: List[Tag] = field(default_factory=list)


@dataclass
class LinkView:
    id: str
    title: Optional[str] = None
    hostname: Optional[str] = None
    excerpt: Optional[str] = None
    header_image_url: Optional[str] = None
    article_date: Optional[datetime] = None
    author: Optional[str] = None
    cleaned_url: Optional[str] = None
    article_html: Optional[str] = None
    reading_progress: Optional[float] = None
    last_viewed_at: Optional[datetime] = None
    read_time_display: Optional[str] = None
    tags: List[Tag] = field(default_factory=list)


@dataclass(frozen=True)
class SearchParams:
    search_text: str = ""
    tag_id: Optional[str] = None
    read_state: ReadState = ReadState.ALL
    sort_by: SortBy = SortBy.ADDED_TO_LIBRARY


@dataclass
class PageInfo:
    current_page: int
    total_pages: int


@dataclass
class FeedPage:
    items: List[Link]
    current_page: int
    total_pages: int
    total_items: int


@dataclass
class AuthSession:
    token: str
    user_id: str
