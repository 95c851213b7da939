from __future__ import annotations

from typing import Union

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import ListItem, Static
from textual.reactive import reactive
from rich.text import Text

from .datamodels import Link
from .errors import LynxError


def format_progress(progress) -> str:
    if progress is None:
        return ""
    return f"{round(progress * 100)}%"


# --- UI Widgets ---
class LinkItem(ListItem):
    def __init__(self, link: Link):
        super().__init__()
        self.link = link

    def compose(self) -> ComposeResult:
        with Horizontal(classes="link-container"):
            yield Static(self.link.hostname or "", classes="link-hostname")
            yield Static(self.link.title or self.link.cleaned_url or self.link.id, classes="link-title")
            yield Static(self.link.read_time_display or "", classes="link-read-time")
            yield Static(format_progress(self.link.reading_progress), classes="link-progress")
        if self.link.tags:
            yield Static(
                " ".join(f"#{t.slug or t.name}" for t in self.link.tags),
                classes="link-tags",
            )


class StatusBar(Static):
    """One-line footer: load state, shareable location and key hints."""

    loading_status = reactive("")
    location_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self._refresh_text()

    def set_keybindings(self, hint: str) -> None:
        self.keybinding_hint = hint

    def show_location(self, query_string: str) -> None:
        """Show the shareable location of the feed being viewed."""
        self.location_status = f"?{query_string}" if query_string else ""

    def _refresh_text(self) -> None:
        self.update(
            " | ".join(
                part
                for part in (self.loading_status, self.location_status, self.keybinding_hint)
                if part
            )
        )

    def watch_loading_status(self, _: str) -> None:
        self._refresh_text()

    def watch_location_status(self, _: str) -> None:
        self._refresh_text()

    def watch_keybinding_hint(self, _: str) -> None:
        self._refresh_text()


class ErrorMessage(Static):
    """Banner for a failed load; the user retries by refreshing."""

    def __init__(self, error: Union[LynxError, str]):
        text = Text("Error: ", style="bold red")
        if isinstance(error, LynxError):
            text.append(error.message, style="red")
            if error.status:
                text.append(f" (HTTP {error.status})", style="dim red")
        else:
            text.append(str(error), style="red")
        text.append("  press r to retry", style="dim")
        super().__init__(text)
