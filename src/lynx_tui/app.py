from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.timer import Timer
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Header,
    Input,
    ListView,
    LoadingIndicator,
    Select,
    Static,
)

from .backends.base import Backend
from .backends.manager import get_backend
from .config import PAGE_SIZE, READ_THRESHOLD, UI_DEFAULTS
from .datamodels import AuthSession, ReadState, SearchParams, SortBy, Tag
from .feed import FeedController, FeedQueryEngine
from .messages import TagsChanged
from .screens import ErrorScreen, LinkViewScreen, TagsScreen
from .tags import TagService
from .widgets import ErrorMessage, LinkItem, StatusBar

logger = logging.getLogger("lynx")

SEARCH_DEBOUNCE = 0.3

READ_STATE_OPTIONS = [
    ("All", ReadState.ALL.value),
    ("Unread", ReadState.UNREAD.value),
    ("Read", ReadState.READ.value),
]
SORT_OPTIONS = [
    ("Added to library", SortBy.ADDED_TO_LIBRARY.value),
    ("Article date", SortBy.ARTICLE_DATE.value),
    ("Last viewed", SortBy.LAST_VIEWED_AT.value),
]


class LynxApp(App):
    TITLE = "Lynx"
    SUB_TITLE = "My Feed"

    CSS_PATH = "app.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("/", "focus_search", "Search"),
        Binding("[", "prev_page", "Previous page"),
        Binding("]", "next_page", "Next page"),
        Binding("t", "show_tags", "Tags"),
        Binding("y", "share", "Share link"),
    ]

    def __init__(
        self,
        config: Optional[dict[str, Any]] = None,
        session: Optional[AuthSession] = None,
        location: Optional[str] = None,
        backend: Optional[Backend] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.config = config or {}
        self.backend = backend or get_backend(self.config, session=session)
        engine = FeedQueryEngine(
            self.backend,
            page_size=int(self.config.get("page_size", PAGE_SIZE)),
            read_threshold=float(self.config.get("read_threshold", READ_THRESHOLD)),
        )
        self.feed = FeedController(engine, location=location)
        self.feed.subscribe(self._on_feed_changed)
        self.tags: List[Tag] = []
        self._search_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            with Horizontal(id="filters"):
                yield Input(placeholder="Search links...", id="search")
                yield Select([], id="tag-filter", prompt="All tags")
                yield Select(
                    READ_STATE_OPTIONS,
                    id="read-state",
                    value=self.feed.read_state.value,
                    allow_blank=False,
                )
                yield Select(
                    SORT_OPTIONS,
                    id="sort-by",
                    value=self.feed.sort_by.value,
                    allow_blank=False,
                )
            yield ListView(id="links-list")
            yield Static("", id="pager")
        yield StatusBar()

    def on_mount(self) -> None:
        if not self.backend.is_authenticated:
            self.push_screen(
                ErrorScreen(
                    "Not logged in",
                    "Log in with `lynx --login EMAIL` to browse your feed.",
                )
            )
            return

        with self.prevent(Input.Changed):
            self.query_one("#search", Input).value = self.feed.params.search_text
        self.query_one(StatusBar).set_keybindings(
            self.config.get("ui", {}).get(
                "statusbar_keybindings", UI_DEFAULTS["statusbar_keybindings"]
            )
        )
        self.load_tags()
        self.load_feed()
        self.query_one("#links-list").focus()

    # --- Feed ---
    def load_feed(self) -> None:
        self.run_worker(self.feed.refresh(), name="feed_loader", group="feed")

    def _apply_params(self, params: SearchParams) -> None:
        if params == self.feed.params:
            return
        self.feed.apply_search_params(params)
        self.load_feed()

    def _search_params_with(self, **changes: Any) -> SearchParams:
        """Current filters with only the fields the user just edited replaced."""
        return replace(self.feed.params, **changes)

    def _search_text(self) -> str:
        return self.query_one("#search", Input).value.strip()

    def _on_feed_changed(self, feed: FeedController) -> None:
        status = self.query_one(StatusBar)
        links_list = self.query_one("#links-list", ListView)
        pager = self.query_one("#pager", Static)

        if feed.loading:
            status.loading_status = "Loading links..."
            links_list.clear()
            links_list.mount(LoadingIndicator())
            return

        status.loading_status = ""
        status.show_location(feed.query_string())
        links_list.clear()

        if feed.error is not None:
            links_list.mount(ErrorMessage(feed.error))
            pager.update("")
            return

        page = feed.feed_page
        if page is None or not page.items:
            links_list.mount(
                Static("No links found. Try adjusting your filters or add some new links.")
            )
            pager.update("")
            return

        for link in page.items:
            links_list.append(LinkItem(link))
        if page.total_pages > 1:
            pager.update(
                f"Page {page.current_page} of {page.total_pages} ({page.total_items} links)"
            )
        else:
            pager.update(f"{page.total_items} links")

    # --- Tags ---
    def load_tags(self) -> None:
        self.run_worker(TagService(self.backend).list_tags, name="tags_loader", thread=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "tags_loader":
            return
        if event.state is WorkerState.SUCCESS:
            self.tags = event.worker.result or []
            tag_select = self.query_one("#tag-filter", Select)
            tag_id = self.feed.params.tag_id
            # Mirror state into the widget without it counting as a user filter change.
            with self.prevent(Select.Changed):
                tag_select.set_options([(t.name, t.id) for t in self.tags])
                if tag_id and any(t.id == tag_id for t in self.tags):
                    tag_select.value = tag_id
        elif event.state is WorkerState.ERROR:
            logger.error("Failed to load tags: %s", event.worker.error)

    def on_tags_changed(self, message: TagsChanged) -> None:
        self.load_tags()

    # --- Events ---
    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "search":
            return
        if self._search_timer is not None:
            self._search_timer.stop()
        self._search_timer = self.set_timer(
            SEARCH_DEBOUNCE,
            lambda: self._apply_params(self._search_params_with(search_text=self._search_text())),
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            if self._search_timer is not None:
                self._search_timer.stop()
            self._apply_params(self._search_params_with(search_text=self._search_text()))
            self.query_one("#links-list").focus()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "tag-filter":
            tag_id = None if event.value is Select.BLANK else str(event.value)
            self._apply_params(self._search_params_with(tag_id=tag_id))
        elif event.select.id == "read-state":
            self._apply_params(self._search_params_with(read_state=ReadState(event.value)))
        elif event.select.id == "sort-by":
            self._apply_params(self._search_params_with(sort_by=SortBy(event.value)))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, LinkItem):
            self.push_screen(LinkViewScreen(self.backend, event.item.link.id, record_view=True))

    # --- Actions ---
    def action_refresh(self) -> None:
        self.load_feed()

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_prev_page(self) -> None:
        if self.feed.page > 1:
            self.feed.set_page(self.feed.page - 1)
            self.load_feed()

    def action_next_page(self) -> None:
        page = self.feed.feed_page
        if page is not None and self.feed.page < page.total_pages:
            self.feed.set_page(self.feed.page + 1)
            self.load_feed()

    def action_show_tags(self) -> None:
        self.push_screen(TagsScreen(self.backend))

    def action_share(self) -> None:
        url = self.feed.share_url(self.config.get("server_url", ""))
        self.notify(url, title="Share link")
