import asyncio
import sys
from io import BytesIO

import httpx
import pytest
from PIL import Image

from tableqr.compositor import DEFAULT_LAYOUT, CancellationToken, Canvas, composite
from tableqr.errors import CompositeCancelled, CompositingUnsupported, FetchFailure
from tableqr.links import encode
from tableqr.models import ScopeKind, TargetRef

QR_HOST = "qr.test"
LOGO_URL = "https://cdn.test/logo.png"
SERVICE_URL = f"https://{QR_HOST}/v1/create-qr-code/"


def _png(color: str, size: tuple[int, int] = (400, 400), mode: str = "RGB") -> bytes:
    buf = BytesIO()
    Image.new(mode, size, color=color).save(buf, format="PNG")
    return buf.getvalue()


def _record():
    return encode("R1", ScopeKind.CATEGORY, "5", TargetRef(id="C9", display_name="Drinks"), record_id="r1")


def _run(handler, logo_ref=None, cancel_token=None):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await composite(
                _record(),
                logo_ref,
                client=client,
                cancel_token=cancel_token,
                service_url=SERVICE_URL,
            )

    return asyncio.run(go())


def _open(png: bytes):
    img = Image.open(BytesIO(png))
    img.load()
    return img.convert("RGB")


def test_layout_geometry():
    assert DEFAULT_LAYOUT.width == 440
    assert DEFAULT_LAYOUT.height == 520
    assert DEFAULT_LAYOUT.qr_origin == (20, 80)
    assert DEFAULT_LAYOUT.logo_origin == (180, 240)


def test_composite_with_logo_draws_in_order():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        if request.url.host == QR_HOST:
            return httpx.Response(200, content=_png("black"))
        return httpx.Response(200, content=_png("red", size=(64, 64)))

    img = _open(_run(handler, logo_ref=LOGO_URL))

    assert seen == [QR_HOST, "cdn.test"]
    assert img.size == (440, 520)
    assert img.getpixel((5, 5)) == (255, 255, 255)
    assert img.getpixel((30, 90)) == (0, 0, 0)
    # Logo sits on a white backdrop in the middle of the QR code.
    assert img.getpixel((220, 280)) == (255, 0, 0)
    assert img.getpixel((177, 237)) == (255, 255, 255)
    assert img.getpixel((172, 232)) == (0, 0, 0)


def test_qr_request_parameters():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=_png("black"))

    _run(handler)

    params = requests[0].url.params
    assert params["size"] == "400x400"
    assert params["margin"] == "10"
    assert params["data"] == "/restaurant/R1/menu?table=5&category=C9"


def test_title_is_drawn_in_title_band():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    img = _open(_run(handler))
    band = img.crop((0, 20, 440, 80))
    assert band.getextrema() != ((255, 255), (255, 255), (255, 255))
    # Nothing but the title is drawn above the QR code.
    assert img.crop((0, 0, 440, 15)).getextrema() == ((255, 255), (255, 255), (255, 255))


def test_logo_failure_is_soft():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == QR_HOST:
            return httpx.Response(200, content=_png("black"))
        return httpx.Response(404)

    png = _run(handler, logo_ref=LOGO_URL)

    assert png.startswith(b"\x89PNG")
    img = _open(png)
    assert img.getpixel((220, 280)) == (0, 0, 0)
    assert img.getpixel((177, 237)) == (0, 0, 0)


def test_unreadable_logo_is_soft(tmp_path):
    bogus = tmp_path / "logo.png"
    bogus.write_bytes(b"not an image")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    img = _open(_run(handler, logo_ref=str(bogus)))
    assert img.getpixel((220, 280)) == (0, 0, 0)


def test_logo_from_local_file(tmp_path):
    logo = tmp_path / "logo.png"
    logo.write_bytes(_png("blue", size=(32, 32)))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    img = _open(_run(handler, logo_ref=str(logo)))
    assert img.getpixel((220, 280)) == (0, 0, 255)


def test_qr_http_error_is_fatal():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        return httpx.Response(500)

    with pytest.raises(FetchFailure):
        _run(handler, logo_ref=LOGO_URL)
    assert seen == [QR_HOST]


def test_qr_transport_error_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(FetchFailure):
        _run(handler)


def test_qr_garbage_body_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>rate limited</html>")

    with pytest.raises(FetchFailure):
        _run(handler)


def test_cancelled_before_start_makes_no_requests():
    seen: list[str] = []
    token = CancellationToken()
    token.cancel()

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        return httpx.Response(200, content=_png("black"))

    with pytest.raises(CompositeCancelled):
        _run(handler, logo_ref=LOGO_URL, cancel_token=token)
    assert seen == []


def test_cancelled_mid_flight_skips_logo():
    seen: list[str] = []
    token = CancellationToken()

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        token.cancel()
        return httpx.Response(200, content=_png("black"))

    with pytest.raises(CompositeCancelled):
        _run(handler, logo_ref=LOGO_URL, cancel_token=token)
    assert seen == [QR_HOST]


def test_concurrent_composites_are_independent():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            first = encode("R1", ScopeKind.TABLE, "1", record_id="a")
            second = encode("R1", ScopeKind.TABLE, "2", record_id="b")
            return await asyncio.gather(
                composite(first, client=client, service_url=SERVICE_URL),
                composite(second, client=client, service_url=SERVICE_URL),
            )

    one, two = asyncio.run(go())
    assert one != two
    assert _open(one).size == _open(two).size == (440, 520)


def test_canvas_primitives():
    canvas = Canvas(100, 50)
    canvas.fill_rect(10, 10, 5, 5, "#ff0000")
    canvas.draw_image(Image.new("RGBA", (4, 4), color=(0, 255, 0, 255)), 50, 20, 8, 8)
    img = _open(canvas.to_png())
    assert img.getpixel((12, 12)) == (255, 0, 0)
    assert img.getpixel((15, 15)) == (255, 255, 255)
    assert img.getpixel((53, 23)) == (0, 255, 0)


def test_malformed_logo_url_is_soft():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    png = _run(handler, logo_ref="http://[::1/logo.png")

    img = _open(png)
    assert img.size == (440, 520)
    assert img.getpixel((220, 280)) == (0, 0, 0)


def test_oversized_logo_is_soft(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 200_000)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == QR_HOST:
            return httpx.Response(200, content=_png("black"))
        return httpx.Response(200, content=_png("red", size=(1000, 1000)))

    img = _open(_run(handler, logo_ref=LOGO_URL))
    assert img.getpixel((220, 280)) == (0, 0, 0)


def test_oversized_qr_is_fatal(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    with pytest.raises(FetchFailure):
        _run(handler)


def test_malformed_service_url_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_png("black"))

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await composite(_record(), client=client, service_url="http://[::1/qr")

    with pytest.raises(FetchFailure):
        asyncio.run(go())


def test_png_encoder_failure_is_unsupported(monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise KeyError("PNG")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    canvas = Canvas(10, 10)

    with pytest.raises(CompositingUnsupported):
        canvas.to_png()


def test_missing_drawing_library_is_unsupported(monkeypatch):
    monkeypatch.setitem(sys.modules, "PIL", None)

    with pytest.raises(CompositingUnsupported):
        Canvas(10, 10)
