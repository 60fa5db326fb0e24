"""Rich text helpers for the generated-codes list."""

from __future__ import annotations

from rich.text import Text

from tableqr.config import QR_PREVIEW_SIZE_PX
from tableqr.links import qr_service_url
from tableqr.models import QRRecord, ScopeKind

SCOPE_KEYS: dict[str, ScopeKind] = {
    "t": ScopeKind.TABLE,
    "c": ScopeKind.CATEGORY,
    "i": ScopeKind.ITEM,
}


def badge_style(scope: ScopeKind) -> str:
    """Return a consistent badge style for scope tags."""
    if scope is ScopeKind.CATEGORY:
        return "bold #ffffff on #047857"
    if scope is ScopeKind.ITEM:
        return "bold #ffffff on #6d28d9"
    return "bold #ffffff on #2563eb"


def format_scope_badge(scope: ScopeKind) -> Text:
    return Text(f" {scope.value} ", style=badge_style(scope))


def format_record_label(record: QRRecord) -> Text:
    """Render a record as a scope badge followed by its title."""
    text = Text()
    text.append_text(format_scope_badge(record.scope))
    text.append(f" {record.title}")
    return text


def format_record_details(record: QRRecord) -> Text:
    text = Text(style="dim")
    text.append(f"Table: {record.table_label}\n")
    text.append(f"URL: {record.url}\n")
    text.append(f"QR preview: {qr_service_url(record.url, QR_PREVIEW_SIZE_PX)}")
    return text


def format_scope_tabs(active: ScopeKind) -> Text:
    """Render the three scope tabs with the active one highlighted."""
    text = Text()
    for idx, (key, scope) in enumerate(SCOPE_KEYS.items()):
        if idx > 0:
            text.append("  ")
        label = f"[{key.upper()}] {scope.value.title()} QR"
        if scope is active:
            text.append(f" {label} ", style=badge_style(scope))
        else:
            text.append(label, style="dim")
    return text
