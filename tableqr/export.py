"""Side effects triggered from a generated code: save, copy, open."""

from __future__ import annotations

import webbrowser
from pathlib import Path
from typing import Callable

import httpx

from tableqr.compositor import CancellationToken, composite
from tableqr.config import EXPORT_DIR
from tableqr.debuglog import log_debug
from tableqr.errors import ClipboardFailure
from tableqr.links import download_filename
from tableqr.models import QRRecord, RestaurantContext


class ExportSurface:
    """Save, copy and preview generated codes without touching the registry."""

    def __init__(
        self,
        context: RestaurantContext,
        copy_text: Callable[[str], None],
        export_dir: str | Path = EXPORT_DIR,
        open_url: Callable[[str], bool] = webbrowser.open_new_tab,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.context = context
        self.copy_text = copy_text
        self.export_dir = Path(export_dir)
        self.open_url = open_url
        self.client = client

    async def download(self, record: QRRecord, cancel_token: CancellationToken | None = None) -> Path:
        """Composite ``record`` with the restaurant logo and write the PNG to disk."""
        png = await composite(record, self.context.logo_ref, client=self.client, cancel_token=cancel_token)
        target = self.export_dir / download_filename(record.title)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(png)
        log_debug(f"download_saved record_id={record.id} path={str(target)!r}")
        return target

    def copy_url(self, record: QRRecord) -> None:
        try:
            self.copy_text(record.url)
        except Exception as exc:
            raise ClipboardFailure(f"Failed to copy URL: {exc}") from exc

    def preview(self, record: QRRecord) -> bool:
        """Open the deep link itself; no image is rendered."""
        opened = bool(self.open_url(record.url))
        log_debug(f"preview_opened record_id={record.id} opened={opened}")
        return opened
