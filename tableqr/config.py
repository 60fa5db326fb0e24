"""Runtime configuration defaults for link building, compositing and export."""

from __future__ import annotations

import os

# Deep links are built relative to this origin; empty keeps them path-only.
BASE_URL = os.environ.get("TABLEQR_BASE_URL", "").rstrip("/")
RESTAURANT_ID = os.environ.get("TABLEQR_RESTAURANT_ID", "")
RESTAURANT_NAME = os.environ.get("TABLEQR_RESTAURANT_NAME", "")
LOGO_REF = os.environ.get("TABLEQR_LOGO", "")
MENU_PATH = os.environ.get("TABLEQR_MENU_PATH", "")
EXPORT_DIR = os.environ.get("TABLEQR_EXPORT_DIR", "exports")
DEBUG_LOG_PATH = os.environ.get("TABLEQR_DEBUG_LOG", "/tmp/tableqr-debug.log")

QR_SERVICE_URL = os.environ.get("TABLEQR_QR_SERVICE_URL", "https://api.qrserver.com/v1/create-qr-code/")
QR_SERVICE_MARGIN = 10
QR_PREVIEW_SIZE_PX = 300
HTTP_TIMEOUT_SECONDS = 10.0

# Export canvas geometry.
QR_SIZE_PX = 400
LOGO_SIZE_PX = 80
LOGO_BACKDROP_PAD_PX = 5
PADDING_PX = 20
TITLE_HEIGHT_PX = 60
TITLE_BASELINE_OFFSET_PX = 35
TITLE_FONT_SIZE = 24
TITLE_COLOR = "#1f2937"
BACKGROUND_COLOR = "#ffffff"

TITLE_FONT_PATH = "/System/Library/Fonts/Supplemental/Arial Bold.ttf"
