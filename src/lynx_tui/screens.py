from __future__ import annotations

import logging
import webbrowser
from typing import List, Optional

from bs4 import BeautifulSoup
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import Screen
from textual.worker import Worker, WorkerState
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    LoadingIndicator,
    Markdown,
)

from .backends.base import Backend
from .datamodels import LinkView, Tag
from .link_view import LinkViewQuery
from .messages import TagsChanged
from .tags import TagService, TagSort, sort_tags
from .widgets import StatusBar, format_progress

logger = logging.getLogger("lynx")

_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "p", "li", "blockquote", "pre"]


def article_markdown(article_html: Optional[str]) -> str:
    """Flatten article HTML into the Markdown subset the reader renders."""
    if not article_html:
        return ""
    soup = BeautifulSoup(article_html, "lxml")
    for junk in soup(["script", "style", "noscript"]):
        junk.decompose()

    parts: List[str] = []
    for node in soup.find_all(_BLOCK_TAGS):
        # Nested blocks (a <p> inside <li>) are emitted by their outermost parent.
        if node.find_parent(_BLOCK_TAGS):
            continue
        text = node.get_text(" ", strip=True)
        if not text:
            continue
        if node.name in ("h1", "h2", "h3", "h4"):
            parts.append(f"{'#' * (int(node.name[1]) + 1)} {text}")
        elif node.name == "li":
            parts.append(f"- {text}")
        elif node.name == "blockquote":
            parts.append(f"> {text}")
        elif node.name == "pre":
            parts.append(f"```\n{node.get_text()}\n```")
        else:
            parts.append(text)

    if not parts:
        return soup.get_text(" ", strip=True)
    return "\n\n".join(parts)


def link_view_markdown(link: LinkView) -> str:
    lines = [f"# {link.title or link.cleaned_url or 'Untitled'}", ""]
    byline = [p for p in (link.author, link.hostname) if p]
    if link.article_date:
        byline.append(link.article_date.strftime("%Y-%m-%d"))
    if link.read_time_display:
        byline.append(link.read_time_display)
    if byline:
        lines.extend([f"*{' · '.join(byline)}*", ""])
    if link.tags:
        lines.extend([" ".join(f"`{t.name}`" for t in link.tags), ""])
    body = article_markdown(link.article_html) or link.excerpt or "No article content saved."
    lines.append(body)
    return "\n".join(lines)


# --- Link reader screen ---
class LinkViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,b,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open in browser"),
        Binding("r", "reload_link", "Reload"),
        Binding("down", "scroll_down", "Scroll Down"),
        Binding("up", "scroll_up", "Scroll Up"),
    ]

    def __init__(self, backend: Backend, link_id: str, record_view: bool = True):
        super().__init__()
        self.link_query = LinkViewQuery(backend, link_id, record_view)

    def compose(self) -> ComposeResult:
        yield Header()
        yield StatusBar()
        yield LoadingIndicator(id="link-loading")
        yield VerticalScroll(
            Markdown("", id="link-markdown"),
            id="link-scroll",
        )

    def on_mount(self) -> None:
        self.query_one("#link-scroll").focus()
        self.query_one(StatusBar).set_keybindings(
            "[b cyan]up/down[/] to scroll, [b cyan]o[/] to open, [b cyan]r[/] to reload"
        )
        if self.link_query.unauthenticated:
            self._show_unauthenticated()
            return
        self.load_link()

    def _show_unauthenticated(self) -> None:
        self.query_one("#link-loading", LoadingIndicator).display = False
        self.query_one("#link-markdown", Markdown).update(
            "You are not logged in. Run `lynx --login EMAIL` first."
        )

    def load_link(self) -> None:
        refetch = self.link_query.refetch
        if refetch is None:
            self._show_unauthenticated()
            return
        self.query_one("#link-loading", LoadingIndicator).display = True
        self.query_one("#link-scroll").display = False
        self.run_worker(refetch, name="link_loader", group="link", exclusive=True, thread=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "link_loader":
            return
        if event.state in (WorkerState.PENDING, WorkerState.RUNNING, WorkerState.CANCELLED):
            return
        if self.link_query.loading:
            # A newer reload is still running; it will render when done.
            return

        self.query_one("#link-loading", LoadingIndicator).display = False
        self.query_one("#link-scroll").display = True
        md = self.query_one("#link-markdown", Markdown)

        if self.link_query.unauthenticated:
            self._show_unauthenticated()
        elif self.link_query.error is not None:
            md.update(f"**Unable to load link:** {self.link_query.error.message}")
        elif self.link_query.result is not None:
            link = self.link_query.result
            self.title = link.title or "Link"
            self.sub_title = format_progress(link.reading_progress)
            md.update(link_view_markdown(link))
        else:
            error = getattr(event.worker, "error", None)
            logger.error("Link loader worker failed: %s", error)
            md.update("**Unable to load link.**")

    def action_open_in_browser(self) -> None:
        link = self.link_query.result
        if link and link.cleaned_url:
            webbrowser.open(link.cleaned_url)

    def action_reload_link(self) -> None:
        self.load_link()

    def action_scroll_down(self) -> None:
        self.query_one("#link-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#link-scroll").scroll_up()


class ErrorScreen(Screen):
    BINDINGS = [Binding("q", "app.quit", "Quit")]

    def __init__(self, title: str, message: str):
        super().__init__()
        self.title = title
        self.message = message

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label(self.title, classes="error-title")
        yield Markdown(self.message)
        yield Footer()


class TagsScreen(Screen):
    """List, sort, create and delete the user's tags."""

    BINDINGS = [
        Binding("escape,q", "app.pop_screen", "Back"),
        Binding("n", "focus_new_tag", "New tag"),
        Binding("d", "delete_tag", "Delete"),
        Binding("1", "sort('name')", "Sort by name"),
        Binding("2", "sort('link_count')", "Sort by links"),
    ]

    def __init__(self, backend: Backend):
        super().__init__()
        self.service = TagService(backend)
        self.tag_sort = TagSort()
        self.tags: List[Tag] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Input(placeholder="New tag name", id="new-tag")
            yield DataTable(id="tags-table")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Tags"
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_column("Name", key="name")
        table.add_column("Slug", key="slug")
        table.add_column("Links", key="link_count")
        self.load_tags()

    def load_tags(self) -> None:
        self.run_worker(self.service.list_tags, name="tags_loader", thread=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        name = getattr(event.worker, "name", None)
        if event.state is WorkerState.ERROR:
            logger.error("Tag worker %s failed: %s", name, event.worker.error)
            self.app.notify(f"Tag operation failed: {event.worker.error}", severity="error")
            return
        if event.state is not WorkerState.SUCCESS:
            return

        if name == "tags_loader":
            self.tags = event.worker.result or []
            self._render_table()
        elif name == "tag_creator":
            self.app.notify("Tag created successfully")
            self.query_one("#new-tag", Input).value = ""
            self.app.post_message(TagsChanged())
            self.load_tags()
        elif name == "tag_deleter":
            self.app.notify("Tag deleted successfully")
            self.app.post_message(TagsChanged())
            self.load_tags()

    def _render_table(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for tag in sort_tags(self.tags, self.tag_sort):
            table.add_row(tag.name, tag.slug, str(tag.link_count or 0), key=tag.id)

    def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
        if event.column_key.value in ("name", "link_count"):
            self.action_sort(event.column_key.value)

    def action_sort(self, field: str) -> None:
        self.tag_sort.toggle(field)
        self._render_table()

    def action_focus_new_tag(self) -> None:
        self.query_one("#new-tag", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "new-tag":
            return
        name = event.value.strip()
        if not name:
            self.app.notify("Tag name cannot be empty.", severity="error")
            return
        self.run_worker(lambda: self.service.create_tag(name), name="tag_creator", thread=True)

    def action_delete_tag(self) -> None:
        table = self.query_one(DataTable)
        if not table.is_valid_row_index(table.cursor_row):
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        tag_id = str(row_key.value)
        self.run_worker(lambda: self.service.delete_tag(tag_id), name="tag_deleter", thread=True)
