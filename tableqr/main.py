"""Entry point for the tableqr Textual app."""

from __future__ import annotations

from tableqr.config import BASE_URL, LOGO_REF, MENU_PATH, RESTAURANT_ID, RESTAURANT_NAME
from tableqr.data import load_menu_catalog_or_sample
from tableqr.generator_app import QRGeneratorApp
from tableqr.models import RestaurantContext


def build_context() -> RestaurantContext:
    """Build the restaurant context from configuration."""
    return RestaurantContext(id=RESTAURANT_ID, logo_ref=LOGO_REF or None, name=RESTAURANT_NAME)


def build_app(menu_path: str | None = MENU_PATH) -> QRGeneratorApp:
    context = build_context()
    catalog, notice = load_menu_catalog_or_sample(menu_path)
    app = QRGeneratorApp(context, catalog=catalog, base_url=BASE_URL, startup_notice=notice)
    if context.name:
        app.sub_title = context.name
    return app


def main() -> None:
    """Run the Textual application."""
    build_app().run()


if __name__ == "__main__":
    main()
