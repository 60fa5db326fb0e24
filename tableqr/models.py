"""Domain models for tableqr."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScopeKind(str, Enum):
    """What a generated link opens: the whole menu, one category, or one item."""

    TABLE = "table"
    CATEGORY = "category"
    ITEM = "item"


@dataclass(frozen=True)
class TargetRef:
    """A category or menu item a scoped link points at."""

    id: str
    display_name: str


@dataclass(frozen=True)
class QRRecord:
    """A generated deep link and the labels shown next to it."""

    id: str
    scope: ScopeKind
    table_label: str
    url: str
    name: str
    title: str
    created_at: str
    target: TargetRef | None = None


@dataclass(frozen=True)
class RestaurantContext:
    """The restaurant the operator is generating codes for."""

    id: str
    logo_ref: str | None = None
    name: str = ""


@dataclass(frozen=True)
class MenuCategory:
    """A selectable menu category."""

    category_id: str
    name: str


@dataclass(frozen=True)
class MenuItem:
    """A selectable menu item."""

    item_id: str
    name: str
    category_id: str | None = None
    price: float | None = None
