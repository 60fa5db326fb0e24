"""Editable sample menu used when no menu export is configured."""

from __future__ import annotations

SAMPLE_CATEGORIES: list[dict[str, str]] = [
    {"id": "starters", "name": "Starters"},
    {"id": "mains", "name": "Mains"},
    {"id": "drinks", "name": "Drinks"},
    {"id": "desserts", "name": "Desserts"},
]

SAMPLE_MENU_ITEMS: list[dict[str, str | float]] = [
    {"id": "spring_rolls", "name": "Spring Rolls", "category": "starters", "price": 2500},
    {"id": "pepper_soup", "name": "Pepper Soup", "category": "starters", "price": 3000},
    {"id": "jollof_rice", "name": "Jollof Rice", "category": "mains", "price": 4500},
    {"id": "grilled_fish", "name": "Grilled Fish", "category": "mains", "price": 7000},
    {"id": "chicken_yassa", "name": "Chicken Yassa", "category": "mains", "price": 6000},
    {"id": "bissap", "name": "Bissap", "category": "drinks", "price": 1000},
    {"id": "ginger_juice", "name": "Ginger Juice", "category": "drinks", "price": 1000},
    {"id": "fresh_fruit", "name": "Fresh Fruit", "category": "desserts", "price": 1500},
]
