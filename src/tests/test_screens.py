from __future__ import annotations

import asyncio
from datetime import datetime
from unittest.mock import MagicMock

from textual.app import App

from lynx_tui.datamodels import AuthSession, LinkView, Tag
from lynx_tui.screens import TagsScreen, article_markdown, link_view_markdown


def test_article_markdown_blocks():
    html = """
        <html><body>
        <script>var x = 1;</script>
        <h2>Heading</h2>
        <p>First <b>para</b>.</p>
        <ul><li><p>Item one</p></li><li>Item two</li></ul>
        <blockquote>Quoted</blockquote>
        </body></html>
    """
    assert article_markdown(html) == (
        "### Heading\n\nFirst para .\n\n- Item one\n\n- Item two\n\n> Quoted"
    )


def test_article_markdown_empty():
    assert article_markdown(None) == ""
    assert article_markdown("") == ""


def test_article_markdown_plain_text_fallback():
    assert article_markdown("<div>just text</div>") == "just text"


def test_link_view_markdown_uses_excerpt_without_html():
    link = LinkView(
        id="l1",
        title="Title",
        author="Ada",
        hostname="example.com",
        article_date=datetime(2024, 1, 2),
        excerpt="Short excerpt",
        tags=[Tag("t1", "Python", "python")],
    )
    text = link_view_markdown(link)
    assert text.startswith("# Title")
    assert "*Ada · example.com · 2024-01-02*" in text
    assert "`Python`" in text
    assert text.endswith("Short excerpt")


class TagsHost(App):
    def __init__(self, backend):
        super().__init__()
        self.backend = backend

    def on_mount(self) -> None:
        self.push_screen(TagsScreen(self.backend))


def _tags_backend():
    backend = MagicMock()
    backend.is_authenticated = True
    backend.session = AuthSession(token="tok", user_id="u1")
    backend.list_records.return_value = {
        "items": [
            {"id": "t2", "name": "Rust", "slug": "rust", "link_count": 1},
            {"id": "t1", "name": "Python", "slug": "python", "link_count": 2},
        ],
        "totalItems": 2,
    }
    return backend


def test_delete_removes_the_highlighted_tag():
    backend = _tags_backend()

    async def run():
        app = TagsHost(backend)
        async with app.run_test() as pilot:
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, TagsScreen)
            # Rows are shown sorted by name, so the cursor starts on Python.
            screen.action_delete_tag()
            await app.workers.wait_for_complete()
            await pilot.pause()

    asyncio.run(run())
    backend.delete_record.assert_called_once_with("tags", "t1")


def test_delete_with_no_tags_does_nothing():
    backend = _tags_backend()
    backend.list_records.return_value = {"items": [], "totalItems": 0}

    async def run():
        app = TagsHost(backend)
        async with app.run_test() as pilot:
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            app.screen.action_delete_tag()
            await app.workers.wait_for_complete()
            await pilot.pause()

    asyncio.run(run())
    backend.delete_record.assert_not_called()
