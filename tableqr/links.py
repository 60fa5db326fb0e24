"""Deep-link encoding for table, category and item QR codes."""

from __future__ import annotations

import itertools
import re
import time
from datetime import datetime, timezone
from urllib.parse import quote, urlencode

from tableqr.config import QR_SERVICE_MARGIN, QR_SERVICE_URL
from tableqr.errors import ValidationError
from tableqr.models import QRRecord, ScopeKind, TargetRef

_SEQUENCE = itertools.count(1)
_SLUG_UNSAFE = re.compile(r"[^a-z0-9]")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_record_id() -> str:
    # Millisecond timestamp plus a process-wide counter so ids stay unique
    # when two codes are generated within the same millisecond.
    return f"{int(time.time() * 1000)}-{next(_SEQUENCE)}"


def build_menu_url(
    restaurant_id: str,
    scope: ScopeKind,
    table_label: str,
    target: TargetRef | None = None,
    base_url: str = "",
) -> str:
    """Build the menu deep link; ``table`` always comes first in the query."""
    params: list[tuple[str, str]] = [("table", table_label)]
    if scope is ScopeKind.CATEGORY and target is not None:
        params.append(("category", target.id))
    elif scope is ScopeKind.ITEM and target is not None:
        params.append(("item", target.id))
    path = f"{base_url.rstrip('/')}/restaurant/{quote(restaurant_id, safe='')}/menu"
    return f"{path}?{urlencode(params)}"


def record_labels(scope: ScopeKind, table_label: str, target: TargetRef | None = None) -> tuple[str, str]:
    """Return ``(name, title)``: the list label and the printed heading."""
    if scope is ScopeKind.TABLE or target is None:
        label = f"Table {table_label}"
        return (label, label)
    return (
        f"{target.display_name} (Table {table_label})",
        f"Table {table_label} - {target.display_name}",
    )


def encode(
    restaurant_id: str,
    scope: ScopeKind,
    table_label: str,
    target: TargetRef | None = None,
    base_url: str = "",
    record_id: str | None = None,
) -> QRRecord:
    """
    Validate the inputs and build a new QR record.

    Raises ValidationError when the restaurant id or table label is blank, or
    when a category/item link has no target id. Nothing is stored here;
    callers insert the record into a CodeRegistry themselves.
    """
    if not restaurant_id or not restaurant_id.strip():
        raise ValidationError("Restaurant ID not found. Please log in again.")

    label = (table_label or "").strip()
    if not label:
        raise ValidationError("Please enter a table number or name")

    scope = ScopeKind(scope)
    if scope is ScopeKind.CATEGORY and (target is None or not target.id):
        raise ValidationError("Please select a category")
    if scope is ScopeKind.ITEM and (target is None or not target.id):
        raise ValidationError("Please select a menu item")
    if scope is ScopeKind.TABLE:
        target = None

    name, title = record_labels(scope, label, target)
    return QRRecord(
        id=record_id or _new_record_id(),
        scope=scope,
        table_label=label,
        url=build_menu_url(restaurant_id, scope, label, target, base_url),
        name=name,
        title=title,
        created_at=_utc_now_iso(),
        target=target,
    )


def download_filename(title: str) -> str:
    """Map a record title to its export file name, e.g. ``qr-table-5.png``."""
    return f"qr-{_SLUG_UNSAFE.sub('-', title.lower())}.png"


def qr_service_url(data: str, size_px: int, margin: int = QR_SERVICE_MARGIN, service_url: str = QR_SERVICE_URL) -> str:
    """Build the request URL for the external QR rendering service."""
    query = urlencode(
        [("size", f"{size_px}x{size_px}"), ("data", data), ("margin", str(margin))],
        quote_via=quote,
    )
    return f"{service_url}?{query}"
