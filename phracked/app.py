import logging

from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen, Screen
from textual.widgets import Footer, Header, Input, Label, ListItem, ListView, Log, Static

from .config import (
    FETCH_TIMEOUT,
    HEARTBEAT_INTERVAL,
    LOAD_ENTRY,
    LOADING_ENTRY,
    MISSING_PAGE_TEXT,
    PAGE_SUFFIX,
    PROMPT_TITLE,
)
from .errors import PageNotFoundError, PhrackedError, PipelineBusyError, StorageError
from .pipeline import LoadPipeline
from .session import Session, sanitize_issue

logger = logging.getLogger(__name__)


class IssuePrompt(ModalScreen[str]):
    """Modal input for the next issue number."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        with Container(id="prompt-box"):
            yield Input(placeholder="e.g. 20", id="issue-input")

    def on_mount(self) -> None:
        self.query_one("#prompt-box").border_title = PROMPT_TITLE
        self.query_one("#issue-input", Input).focus()

    @on(Input.Submitted, "#issue-input")
    def submit_issue(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ReaderScreen(Screen):
    """Page list, article body and status log for the loaded issue."""

    BINDINGS = [
        Binding("tab", "cycle_focus", "Switch Pane"),
    ]

    def __init__(self, session: Session, transport=None,
                 heartbeat: float = HEARTBEAT_INTERVAL, timeout: float = FETCH_TIMEOUT):
        super().__init__()
        self.session = session
        self.pipeline = LoadPipeline(self, transport=transport, heartbeat=heartbeat, timeout=timeout)
        self.current_page: str | None = None
        self._load_worker = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="reader"):
            yield ListView(ListItem(Label(LOADING_ENTRY)), id="pages")
            with VerticalScroll(id="main"):
                yield Static(id="body", markup=False)
        yield Log(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#pages").border_title = "Pages"
        self.query_one("#status").border_title = "Status"
        self.query_one("#main").focus()
        self._load_worker = self.load_issue()

    @property
    def load_in_progress(self) -> bool:
        if self.pipeline.active:
            return True
        return self._load_worker is not None and not self._load_worker.is_finished

    @work(group="load")
    async def load_issue(self) -> None:
        try:
            await self.pipeline.run(self.session)
        except PipelineBusyError as e:
            self.notify(e.message, severity="warning")
        except PhrackedError as e:
            self.app.exit(return_code=1, message=f"FATAL [{e.code}]: {e.message}")

    async def shutdown(self) -> None:
        """Join any in-flight load, then drop the session's scratch storage."""
        await self.pipeline.stop()
        self.session.release()

    # ── Display surface used by the load pipeline ─────────────

    def clear_status(self) -> None:
        self.query_one("#status", Log).clear()

    def append_status(self, text: str) -> None:
        self.query_one("#status", Log).write(text)

    def set_title(self, title: str) -> None:
        self.query_one("#main").border_title = title
        self.app.sub_title = title

    async def rebuild_pages(self, pages: int) -> None:
        page_list = self.query_one("#pages", ListView)
        await page_list.clear()
        items = [ListItem(Label(LOAD_ENTRY), name=LOAD_ENTRY)]
        items.extend(ListItem(Label(str(n)), name=str(n)) for n in range(1, pages + 1))
        await page_list.extend(items)

    def show_page(self, name: str) -> None:
        body = self.query_one("#body", Static)
        try:
            text = self.session.read_page(name)
        except PageNotFoundError:
            logger.warning("Missing page %s in issue %s", name, self.session.issue)
            self.current_page = None
            body.update(MISSING_PAGE_TEXT)
            return
        self.current_page = name
        body.update(Text(text))
        main = self.query_one("#main", VerticalScroll)
        main.scroll_home(animate=False)
        main.focus()

    # ── Input handling ────────────────────────────────────────

    @on(ListView.Selected, "#pages")
    def select_page(self, event: ListView.Selected) -> None:
        name = event.item.name
        if not name:
            return
        if name == LOAD_ENTRY:
            self.app.push_screen(IssuePrompt(), self.request_reload)
            return
        self.show_page(f"{name}{PAGE_SUFFIX}")

    def request_reload(self, raw: str | None) -> None:
        """Start loading the issue typed into the prompt."""
        if raw is None:
            return
        issue = sanitize_issue(raw)
        if not issue:
            self.notify("Issue number must contain digits", severity="warning")
            return
        if self.load_in_progress:
            self.notify(f"Issue #{self.session.issue} is still loading", severity="warning")
            return
        try:
            self.session.reset(issue)
        except StorageError as e:
            self.app.exit(return_code=1, message=f"FATAL [{e.code}]: {e.message}")
            return
        self._load_worker = self.load_issue()

    def action_cycle_focus(self) -> None:
        pages = self.query_one("#pages")
        if pages.has_focus:
            self.query_one("#main").focus()
        else:
            pages.focus()


class PhrackApp(App):
    """Terminal reader for archived Phrack issues."""

    TITLE = "PHRACKED"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", priority=True),
        Binding("ctrl+q", "quit", "Quit", priority=True, show=False),
    ]

    CSS = """
    #reader {
        height: 1fr;
    }

    #pages {
        width: 1fr;
        min-width: 10;
        border: solid $accent;
    }

    #main {
        width: 86;
        border: solid $accent;
    }

    #pages:focus-within, #main:focus {
        border: heavy $accent;
    }

    #status {
        height: 7;
        border: solid $secondary;
    }

    IssuePrompt {
        align: center middle;
    }

    #prompt-box {
        width: 60;
        height: auto;
        border: heavy $accent;
        background: $surface;
    }
    """

    def __init__(self, session: Session, transport=None,
                 heartbeat: float = HEARTBEAT_INTERVAL, timeout: float = FETCH_TIMEOUT):
        super().__init__()
        self.session = session
        self.reader = ReaderScreen(session, transport=transport, heartbeat=heartbeat, timeout=timeout)

    def on_mount(self) -> None:
        self.push_screen(self.reader)

    async def action_quit(self) -> None:
        await self.reader.shutdown()
        self.exit()
