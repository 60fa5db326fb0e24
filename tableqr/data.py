"""Menu catalog loading and target lookup."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tableqr.constant import SAMPLE_CATEGORIES, SAMPLE_MENU_ITEMS
from tableqr.debuglog import log_debug
from tableqr.models import MenuCategory, MenuItem, ScopeKind, TargetRef


@dataclass
class MenuCatalog:
    """Categories and items the operator can point a scoped code at."""

    categories: list[MenuCategory] = field(default_factory=list)
    items: list[MenuItem] = field(default_factory=list)

    def targets_for_scope(self, scope: ScopeKind) -> list[TargetRef]:
        if scope is ScopeKind.CATEGORY:
            return [TargetRef(c.category_id, c.name) for c in self.categories]
        if scope is ScopeKind.ITEM:
            return [TargetRef(i.item_id, i.name) for i in self.items]
        return []


def _raw_id(raw: dict[str, Any]) -> str:
    # Menu exports use either `id` or a Mongo-style `_id`.
    return str(raw.get("id") or raw.get("_id") or "")


def _unwrap_list(payload: Any, key: str) -> list[dict[str, Any]]:
    """Accept `{key: [...]}`, `{"data": {key: [...]}}`, `{"data": [...]}` or a bare list."""
    if isinstance(payload, list):
        return [raw for raw in payload if isinstance(raw, dict)]
    if not isinstance(payload, dict):
        return []
    if isinstance(payload.get(key), list):
        return _unwrap_list(payload[key], key)
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return _unwrap_list(data[key], key)
    if isinstance(data, list):
        return _unwrap_list(data, key)
    return []


def parse_categories(payload: Any) -> list[MenuCategory]:
    categories: list[MenuCategory] = []
    for raw in _unwrap_list(payload, "categories"):
        category_id = _raw_id(raw)
        if not category_id:
            continue
        categories.append(MenuCategory(category_id=category_id, name=str(raw.get("name", category_id))))
    return categories


def parse_menu_items(payload: Any) -> list[MenuItem]:
    items: list[MenuItem] = []
    for raw in _unwrap_list(payload, "menuItems"):
        item_id = _raw_id(raw)
        if not item_id:
            continue
        category = raw.get("category")
        if isinstance(category, dict):
            category_id = _raw_id(category) or None
        else:
            category_id = str(category) if category else None
        price = raw.get("price")
        items.append(
            MenuItem(
                item_id=item_id,
                name=str(raw.get("name", item_id)),
                category_id=category_id,
                price=float(price) if isinstance(price, (int, float)) else None,
            )
        )
    return items


def sample_catalog() -> MenuCatalog:
    return MenuCatalog(categories=parse_categories(SAMPLE_CATEGORIES), items=parse_menu_items(SAMPLE_MENU_ITEMS))


def load_menu_catalog(path: str | Path | None = None) -> MenuCatalog:
    """
    Load a menu export from JSON, falling back to the bundled sample menu.

    The file holds `categories` and `menuItems`, either at the top level or
    under `data`, as returned by the restaurant menu API.
    """
    if not path:
        return sample_catalog()
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return MenuCatalog(categories=parse_categories(payload), items=parse_menu_items(payload))


def load_menu_catalog_or_sample(path: str | Path | None = None) -> tuple[MenuCatalog, str]:
    """Load the menu export; on failure use the sample menu and return a notice."""
    try:
        return (load_menu_catalog(path), "")
    except (OSError, ValueError) as exc:
        log_debug(f"menu_load_failed path={str(path)!r} error={exc!r}")
        return (sample_catalog(), f"Failed to load menu data: {exc}. Using sample menu.")


def filter_targets(targets: list[TargetRef], query: str) -> list[TargetRef]:
    """Case-insensitive substring filter over target display names."""
    if not query:
        return targets
    q = query.lower()
    return [target for target in targets if q in target.display_name.lower()]
