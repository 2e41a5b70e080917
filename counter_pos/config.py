"""Runtime configuration defaults for the backend, session checks and printing."""

from __future__ import annotations

import os


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").strip().lower()
    if not value:
        return default
    return value not in {"0", "false", "no", "off"}


API_BASE_URL = _env_str("COUNTER_API_URL", "http://localhost:3001/api")
API_TIMEOUT_SECONDS = _env_int("COUNTER_API_TIMEOUT", 30)
API_TOKEN = _env_str("COUNTER_API_TOKEN")
API_EMAIL = _env_str("COUNTER_API_EMAIL")
API_PASSWORD = _env_str("COUNTER_API_PASSWORD")

# Orders in this status are the ones the counter can take payment for.
PAYABLE_ORDER_STATUS = "confirmed"
POOL_REFRESH_SECONDS = _env_int("COUNTER_POOL_REFRESH", 30)
SESSION_CHECK_SECONDS = 60

DEBUG_LOG_PATH = _env_str("COUNTER_DEBUG_LOG", "/tmp/counter-pos-debug.log")
CURRENCY_SYMBOL = _env_str("COUNTER_CURRENCY_SYMBOL", "$")

PRINT_RECEIPTS = _env_flag("COUNTER_PRINT_RECEIPTS", True)
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 26
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 70
RECEIPT_TEXT_WIDTH = 32
