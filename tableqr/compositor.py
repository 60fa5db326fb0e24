"""Render a QR record into a printable, branded PNG."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import httpx

from tableqr.config import (
    BACKGROUND_COLOR,
    HTTP_TIMEOUT_SECONDS,
    LOGO_BACKDROP_PAD_PX,
    LOGO_SIZE_PX,
    PADDING_PX,
    QR_SERVICE_MARGIN,
    QR_SERVICE_URL,
    QR_SIZE_PX,
    TITLE_COLOR,
    TITLE_FONT_PATH,
    TITLE_FONT_SIZE,
    TITLE_HEIGHT_PX,
)
from tableqr.debuglog import log_debug
from tableqr.errors import CompositeCancelled, CompositingUnsupported, FetchFailure
from tableqr.links import qr_service_url
from tableqr.models import QRRecord

_FONT_OVERRIDE_ENV = "TABLEQR_FONT_PATH"
_LINUX_BOLD_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/noto/NotoSans-Bold.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
)


@dataclass(frozen=True)
class CanvasLayout:
    """Fixed geometry of the exported image."""

    qr_size: int = QR_SIZE_PX
    padding: int = PADDING_PX
    title_height: int = TITLE_HEIGHT_PX
    logo_size: int = LOGO_SIZE_PX

    @property
    def width(self) -> int:
        return self.qr_size + self.padding * 2

    @property
    def height(self) -> int:
        return self.qr_size + self.title_height + self.padding * 3

    @property
    def qr_origin(self) -> tuple[int, int]:
        return (self.padding, self.padding + self.title_height)

    @property
    def logo_origin(self) -> tuple[int, int]:
        x = (self.width - self.logo_size) // 2
        y = self.padding + self.title_height + (self.qr_size - self.logo_size) // 2
        return (x, y)

    @property
    def title_box(self) -> tuple[int, int, int, int]:
        return (self.padding, self.padding, self.width - self.padding, self.padding + self.title_height)


DEFAULT_LAYOUT = CanvasLayout()


class CancellationToken:
    """Lets a caller abandon a composite; checked between pipeline steps."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CompositeCancelled("Composite was cancelled")


class Canvas:
    """A white RGB raster buffer with the few drawing primitives the export needs."""

    def __init__(self, width: int, height: int) -> None:
        try:
            from PIL import Image, ImageDraw
        except Exception as exc:
            raise CompositingUnsupported(f"Drawing dependencies unavailable: {exc}") from exc

        self.width = width
        self.height = height
        self.image = Image.new("RGB", (width, height), color=BACKGROUND_COLOR)
        self._draw = ImageDraw.Draw(self.image)

    def fill_rect(self, x: int, y: int, width: int, height: int, fill: str) -> None:
        self._draw.rectangle((x, y, x + width - 1, y + height - 1), fill=fill)

    def draw_image(self, source: object, x: int, y: int, width: int, height: int) -> None:
        """Scale ``source`` to ``width`` x ``height`` and paste it at ``(x, y)``."""
        scaled = source.resize((width, height))
        if scaled.mode in {"RGBA", "LA"}:
            self.image.paste(scaled, (x, y), scaled)
        else:
            self.image.paste(scaled.convert("RGB"), (x, y))

    def draw_centered_text(self, text: str, box: tuple[int, int, int, int], font: object, fill: str) -> None:
        """Draw one line of text centered inside ``box`` (left, top, right, bottom)."""
        left, top, right, bottom = box
        safe_text = fit_text_to_px(text, font, right - left)
        bbox = self._draw.textbbox((0, 0), safe_text, font=font)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        x = left + ((right - left) - text_width) // 2 - bbox[0]
        # Offset by bbox top so ascenders and descenders stay inside the band.
        y = top + ((bottom - top) - text_height) // 2 - bbox[1]
        self._draw.text((x, y), safe_text, font=font, fill=fill)

    def to_png(self) -> bytes:
        buf = BytesIO()
        try:
            self.image.save(buf, format="PNG")
        except (OSError, KeyError, ValueError) as exc:
            raise CompositingUnsupported(f"PNG encoding unavailable: {exc}") from exc
        return buf.getvalue()


def fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    """Trim ``text`` with an ellipsis until it fits ``max_width_px``."""
    from PIL import Image, ImageDraw

    scratch = Image.new("1", (1, 1), color=1)
    draw = ImageDraw.Draw(scratch)
    if draw.textbbox((0, 0), text, font=font)[2] <= max_width_px:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}{ellipsis}"
        if draw.textbbox((0, 0), candidate, font=font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return ellipsis


def resolve_title_font_path() -> str | None:
    """
    Resolve a bold title font path.

    Resolution order:
    1. TABLEQR_FONT_PATH (if set)
    2. TITLE_FONT_PATH
    3. Known Linux bold fallbacks

    Returns None when none of them exist; the caller then uses Pillow's
    bundled font.
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(TITLE_FONT_PATH)
    candidates.extend(_LINUX_BOLD_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate
    return None


def load_title_font(size: int = TITLE_FONT_SIZE) -> object:
    from PIL import ImageFont

    font_path = resolve_title_font_path()
    if font_path is not None:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError as exc:
            log_debug(f"title_font_unreadable path={font_path!r} error={exc!r}")
    return ImageFont.load_default(size=size)


def check_compositor_dependencies() -> tuple[bool, str]:
    """Check whether the export image can be drawn and encoded."""
    try:
        from PIL import features

        if not features.check("zlib"):
            return (False, "PNG export unavailable: Pillow built without zlib")
        load_title_font()
    except Exception as exc:
        return (False, f"PNG export unavailable: {exc}")
    return (True, "PNG export ready")


def _decode_raster(payload: bytes) -> object:
    """Decode raster bytes; every decoder failure surfaces as ValueError."""
    from PIL import Image

    try:
        img = Image.open(BytesIO(payload))
        img.load()
    except (OSError, ValueError, SyntaxError, EOFError, struct.error, Image.DecompressionBombError) as exc:
        raise ValueError(f"cannot decode image: {exc}") from exc
    return img


async def fetch_qr_raster(
    client: httpx.AsyncClient,
    data: str,
    size_px: int = QR_SIZE_PX,
    service_url: str = QR_SERVICE_URL,
) -> object:
    """Fetch and decode the QR image for ``data``; any failure is a FetchFailure."""
    url = qr_service_url(data, size_px, margin=QR_SERVICE_MARGIN, service_url=service_url)
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return _decode_raster(resp.content)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchFailure(f"QR service request failed: {exc}") from exc
    except ValueError as exc:
        raise FetchFailure(f"QR service returned an unreadable image: {exc}") from exc


async def fetch_logo_raster(client: httpx.AsyncClient, logo_ref: str) -> object | None:
    """Fetch the branding logo from a URL or a local path; None on any failure."""
    try:
        if logo_ref.startswith(("http://", "https://")):
            resp = await client.get(logo_ref)
            resp.raise_for_status()
            payload = resp.content
        else:
            payload = Path(logo_ref).expanduser().read_bytes()
        return _decode_raster(payload).convert("RGBA")
    except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as exc:
        log_debug(f"logo_fetch_failed ref={logo_ref!r} error={exc!r}")
        return None


async def composite(
    record: QRRecord,
    logo_ref: str | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    cancel_token: CancellationToken | None = None,
    layout: CanvasLayout = DEFAULT_LAYOUT,
    service_url: str = QR_SERVICE_URL,
) -> bytes:
    """
    Composite ``record`` into PNG bytes.

    The steps run strictly in order because each one paints over the last:
    white background, QR raster, optional logo on a white backdrop, then the
    title. A failed QR fetch raises FetchFailure before anything is encoded;
    a failed logo fetch only drops the logo.
    """
    token = cancel_token or CancellationToken()
    canvas = Canvas(layout.width, layout.height)
    canvas.fill_rect(0, 0, layout.width, layout.height, BACKGROUND_COLOR)

    if client is None:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, follow_redirects=True) as own_client:
            return await _paint(canvas, record, logo_ref, own_client, token, layout, service_url)
    return await _paint(canvas, record, logo_ref, client, token, layout, service_url)


async def _paint(
    canvas: Canvas,
    record: QRRecord,
    logo_ref: str | None,
    client: httpx.AsyncClient,
    token: CancellationToken,
    layout: CanvasLayout,
    service_url: str,
) -> bytes:
    token.raise_if_cancelled()
    qr_image = await fetch_qr_raster(client, record.url, layout.qr_size, service_url)
    token.raise_if_cancelled()
    qr_x, qr_y = layout.qr_origin
    canvas.draw_image(qr_image, qr_x, qr_y, layout.qr_size, layout.qr_size)

    if logo_ref:
        logo_image = await fetch_logo_raster(client, logo_ref)
        token.raise_if_cancelled()
        if logo_image is not None:
            logo_x, logo_y = layout.logo_origin
            canvas.fill_rect(
                logo_x - LOGO_BACKDROP_PAD_PX,
                logo_y - LOGO_BACKDROP_PAD_PX,
                layout.logo_size + LOGO_BACKDROP_PAD_PX * 2,
                layout.logo_size + LOGO_BACKDROP_PAD_PX * 2,
                BACKGROUND_COLOR,
            )
            canvas.draw_image(logo_image, logo_x, logo_y, layout.logo_size, layout.logo_size)

    canvas.draw_centered_text(record.title, layout.title_box, load_title_font(), TITLE_COLOR)
    png = canvas.to_png()
    token.raise_if_cancelled()
    log_debug(f"composite_done record_id={record.id} bytes={len(png)}")
    return png
