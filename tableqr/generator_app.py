"""Main Textual app class."""

from __future__ import annotations

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from tableqr.compositor import CancellationToken, check_compositor_dependencies
from tableqr.config import BASE_URL
from tableqr.data import MenuCatalog, filter_targets, sample_catalog
from tableqr.debuglog import log_debug
from tableqr.errors import ClipboardFailure, CompositeCancelled, CompositingUnsupported, FetchFailure, ValidationError
from tableqr.export import ExportSurface
from tableqr.links import encode
from tableqr.models import QRRecord, RestaurantContext, ScopeKind, TargetRef
from tableqr.registry import CodeRegistry
from tableqr.rendering import (
    SCOPE_KEYS,
    badge_style,
    format_record_details,
    format_record_label,
    format_scope_tabs,
)
from tableqr.table_label_modal import TableLabelModal


class QRGeneratorApp(App):
    """A Textual app for generating and exporting table QR codes."""

    TITLE = "QR Generator"
    SUB_TITLE = "Create QR codes for your restaurant"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #settings-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #codes-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #scope-tabs {
        margin-bottom: 1;
    }

    #table-label {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #codes-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #code-details {
        height: auto;
        padding: 0 1;
    }

    #status {
        height: 2;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    scope = reactive(ScopeKind.TABLE)
    search_query = reactive("")
    selected_index = reactive(0)
    code_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "pick_selected", "Pick target"),
        ("backspace", "backspace_query", "Delete query char"),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        context: RestaurantContext,
        catalog: MenuCatalog | None = None,
        registry: CodeRegistry | None = None,
        exporter: ExportSurface | None = None,
        base_url: str = BASE_URL,
        startup_notice: str = "",
    ) -> None:
        super().__init__()
        self.context = context
        self.catalog = catalog or sample_catalog()
        self.registry = registry or CodeRegistry()
        self.exporter = exporter or ExportSurface(context, copy_text=self.copy_to_clipboard)
        self.base_url = base_url
        self.table_label = ""
        self.selected_target: TargetRef | None = None
        self.system_status = ""
        self.startup_notice = startup_notice
        self._pending_downloads: set[CancellationToken] = set()
        log_debug("app_init")

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="settings-pane"):
                yield Static("QR Code Settings", classes="pane-title")
                yield Static(id="scope-tabs")
                yield Static(id="table-label")
                yield Static(id="search-bar")
                yield Static(id="results")
            with Vertical(id="codes-pane"):
                yield Static(id="codes-title", classes="pane-title")
                yield Static("(no codes yet)", id="codes-list")
                yield Static(id="code-details")
        yield Static(id="status")

    def on_mount(self) -> None:
        _, msg = check_compositor_dependencies()
        self.system_status = self.startup_notice or msg
        log_debug(f"on_mount compositor_status={msg!r}")
        self._refresh_all()

    def on_unmount(self) -> None:
        for token in self._pending_downloads:
            token.cancel()

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, TableLabelModal):
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        if self.input_state == "search":
            self.search_query += event.character
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        key = event.character.lower()
        handlers = {
            "l": self._open_table_label_modal,
            "g": self._generate_code,
            "j": lambda: self._move_code_selection(1),
            "k": lambda: self._move_code_selection(-1),
            "d": self._delete_selected_code,
            "x": self._clear_codes,
            "s": self._download_selected_code,
            "y": self._copy_selected_url,
            "o": self._preview_selected_code,
        }
        if key in SCOPE_KEYS:
            self._switch_scope(SCOPE_KEYS[key])
            event.stop()
            return
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def action_cancel_active_mode(self) -> None:
        if isinstance(self.screen, TableLabelModal):
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if isinstance(self.screen, TableLabelModal):
            return
        if self.input_state != "search":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_pick_selected(self) -> None:
        if isinstance(self.screen, TableLabelModal):
            return
        if self.input_state != "search":
            return

        results = self._filtered_results()
        if not results:
            return

        self.selected_target = results[self.selected_index]
        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_backspace_query(self) -> None:
        if isinstance(self.screen, TableLabelModal):
            return
        if self.input_state != "search":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_status()

    def _switch_scope(self, scope: ScopeKind) -> None:
        if scope is not self.scope:
            self.selected_target = None
        self.scope = scope
        self.search_query = ""
        self.selected_index = 0
        self.input_state = "normal" if scope is ScopeKind.TABLE else "search"
        self._refresh_search()

    def _open_table_label_modal(self) -> None:
        self.push_screen(TableLabelModal(self.table_label), callback=self._on_table_label_chosen)

    def _on_table_label_chosen(self, label: str | None) -> None:
        if label is None:
            return
        self.table_label = label
        self._refresh_search()

    def _generate_code(self) -> None:
        target = self.selected_target if self.scope is not ScopeKind.TABLE else None
        try:
            record = encode(self.context.id, self.scope, self.table_label, target, base_url=self.base_url)
        except ValidationError as exc:
            self._set_status(str(exc))
            log_debug(f"generate_blocked reason={exc!s}")
            return

        self.registry.insert(record)
        self.selected_target = None
        self.code_selected_index = 0
        log_debug(f"generate_done record_id={record.id} url={record.url!r}")
        self._refresh_codes()
        self._refresh_search()
        self._set_status("QR code generated successfully!")

    def _delete_selected_code(self) -> None:
        record = self._selected_code()
        if record is None:
            return

        idx = self.code_selected_index
        self.registry.delete_by_id(record.id)
        if not len(self.registry):
            self.code_selected_index = None
        else:
            self.code_selected_index = min(idx, len(self.registry) - 1)
        self._refresh_codes()
        self._set_status("QR code deleted")

    def _clear_codes(self) -> None:
        if not len(self.registry):
            return
        self.registry.clear()
        self.code_selected_index = None
        self._refresh_codes()
        self._set_status("All QR codes cleared")

    def _download_selected_code(self) -> None:
        record = self._selected_code()
        if record is None:
            return
        token = CancellationToken()
        self._pending_downloads.add(token)
        self._set_status(f"Rendering {record.title}...")
        self.run_worker(self._download_record(record, token), group="downloads")

    async def _download_record(self, record: QRRecord, token: CancellationToken) -> None:
        try:
            path = await self.exporter.download(record, cancel_token=token)
        except CompositeCancelled:
            log_debug(f"download_discarded record_id={record.id}")
            return
        except FetchFailure as exc:
            log_debug(f"download_failed record_id={record.id} error={exc!r}")
            self._set_status("Failed to download QR code")
            return
        except CompositingUnsupported as exc:
            log_debug(f"download_unsupported record_id={record.id} error={exc!r}")
            self._set_status(f"Download unavailable: {exc}")
            return
        except OSError as exc:
            log_debug(f"download_write_failed record_id={record.id} error={exc!r}")
            self._set_status(f"Failed to save QR code: {exc}")
            return
        finally:
            self._pending_downloads.discard(token)

        self._set_status(f"QR code downloaded successfully! {path}")

    def _copy_selected_url(self) -> None:
        record = self._selected_code()
        if record is None:
            return
        try:
            self.exporter.copy_url(record)
        except ClipboardFailure as exc:
            log_debug(f"copy_failed record_id={record.id} error={exc!r}")
            self._set_status("Failed to copy URL")
            return
        self._set_status("URL copied to clipboard!")

    def _preview_selected_code(self) -> None:
        record = self._selected_code()
        if record is None:
            return
        if not self.exporter.preview(record):
            self._set_status(f"Could not open a browser. URL: {record.url}")
            return
        self._set_status(f"Opened {record.url}")

    def _filtered_results(self) -> list[TargetRef]:
        return filter_targets(self.catalog.targets_for_scope(self.scope), self.search_query)

    def _refresh_all(self) -> None:
        self._refresh_codes()
        self._refresh_search()

    def _move_code_selection(self, delta: int) -> None:
        total = len(self.registry)
        if not total:
            return

        if self.code_selected_index is None:
            self.code_selected_index = 0 if delta > 0 else total - 1
        else:
            self.code_selected_index = (self.code_selected_index + delta) % total
        self._refresh_codes()

    def _selected_code(self) -> QRRecord | None:
        if self.code_selected_index is None:
            return None
        records = self.registry.list()
        if not (0 <= self.code_selected_index < len(records)):
            return None
        return records[self.code_selected_index]

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            half = rows // 2
            start = selected - half
            start = max(0, start)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_codes(self) -> None:
        try:
            codes_widget = self.query_one("#codes-list", Static)
            title_widget = self.query_one("#codes-title", Static)
            details_widget = self.query_one("#code-details", Static)
        except NoMatches:
            return

        records = self.registry.list()
        noun = "code" if len(records) == 1 else "codes"
        title_widget.update(f"Generated QR Codes ({len(records)} {noun} created)")
        if not records:
            self.code_selected_index = None
            codes_widget.update("(no codes yet)")
            details_widget.update("")
            return

        if self.code_selected_index is not None and self.code_selected_index >= len(records):
            self.code_selected_index = len(records) - 1

        visible_rows = self._visible_rows(codes_widget)
        start, end = self._window_bounds(len(records), visible_rows, self.code_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")

            pointer = "➤ " if idx == self.code_selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_record_label(records[idx]))

        if end < len(records):
            lines.append("\n⋮", style="dim")

        codes_widget.update(lines)

        selected = self._selected_code()
        details_widget.update(format_record_details(selected) if selected is not None else "")

    def _refresh_search(self) -> None:
        try:
            self.query_one("#scope-tabs", Static).update(format_scope_tabs(self.scope))
        except NoMatches:
            return
        self._refresh_table_label()
        self._refresh_search_bar()
        self._refresh_status()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_table_label(self) -> None:
        widget = self.query_one("#table-label", Static)
        text = Text()
        text.append("Table: ", style="bold")
        if self.table_label:
            text.append(self.table_label)
        else:
            text.append("(press L to set)", style="dim")
        widget.update(text)

    def _refresh_search_bar(self) -> None:
        bar = self.query_one("#search-bar", Static)
        text = Text()
        if self.input_state == "normal":
            if self.scope is ScopeKind.TABLE:
                text.append("Whole menu for this table.")
            elif self.selected_target is None:
                text.append(f"No {self.scope.value} selected. Press {self.scope.value[0].upper()} to search.")
            else:
                text.append(f"{self.scope.value.title()}: ", style="bold")
                text.append(self.selected_target.display_name)
            bar.update(text)
            return

        text.append(f" {self.scope.value} ", style=badge_style(self.scope))
        text.append(f": {self.search_query}")
        bar.update(text)

    def _refresh_status(self) -> None:
        try:
            status = self.query_one("#status", Static)
        except NoMatches:
            return
        text = Text()
        text.append("T/C/I scope  L table  G generate  J/K select  S save  Y copy  O open  D delete  X clear\n", style="dim")
        text.append(self.system_status or "Ready")
        status.update(text)

    def _refresh_results(self, results: list[TargetRef]) -> None:
        results_widget = self.query_one("#results", Static)
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        visible_rows = self._visible_rows(results_widget)
        start, end = self._window_bounds(len(results), visible_rows, self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(f"{pointer}{results[idx].display_name}")

        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)
