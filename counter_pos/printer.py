"""Thermal receipt printing over USB ESC/POS."""

from __future__ import annotations

import os
from pathlib import Path
from time import sleep

from counter_pos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from counter_pos.constant import ORDER_TYPE_LABELS, PAYMENT_METHOD_LABELS
from counter_pos.models import Receipt
from counter_pos.money import format_money

# Separator tuning values.
_SECTION_SEPARATOR_HEIGHT_PX = 14
_SECTION_SEPARATOR_THICKNESS_PX = 3
_SECTION_SEPARATOR_STRIPE_HEIGHT_PX = 2
_SECTION_SEPARATOR_PAUSE_SECONDS = 0.1
_RIGHT_GUTTER_PX = 8
_COLUMN_GAP_PX = 12
_LINE_EXTRA_PX = 10
_FONT_OVERRIDE_ENV = "RECEIPT_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. RECEIPT_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable and a font is available."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont
        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def _text_size(text: str, font: object) -> tuple[int, int, int, int]:
    from PIL import Image, ImageDraw

    scratch = Image.new("1", (1, 1), color=1)
    return ImageDraw.Draw(scratch).textbbox((0, 0), text, font=font)


def _fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    if _text_size(text, font)[2] <= max_width_px:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}{ellipsis}"
        if _text_size(candidate, font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return ellipsis


def _render_line(text: str, font: object, centered: bool = False) -> object:
    from PIL import Image, ImageDraw

    bbox = _text_size(text, font)
    text_width = bbox[2] - bbox[0]
    text_height = bbox[3] - bbox[1]
    canvas_height = max(12, text_height + _LINE_EXTRA_PX)

    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)
    x = (PRINTER_WIDTH_PX - text_width) // 2 if centered else PRINTER_LEFT_INDENT_PX
    # Offset by bbox top so descenders (g, y, p, etc.) are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((x, y), text, font=font, fill=0)
    return img


def _render_two_column(left: str, right: str, font: object) -> object:
    """Left-aligned label with a right-aligned amount on the same row."""
    from PIL import Image, ImageDraw

    right_bbox = _text_size(right, font)
    right_width = right_bbox[2] - right_bbox[0]
    max_left_px = PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX - _RIGHT_GUTTER_PX - right_width - _COLUMN_GAP_PX
    left = _fit_text_to_px(left, font, max(24, max_left_px))
    left_bbox = _text_size(left, font)

    text_height = max(left_bbox[3] - left_bbox[1], right_bbox[3] - right_bbox[1])
    top = min(left_bbox[1], right_bbox[1])
    canvas_height = max(12, text_height + _LINE_EXTRA_PX)

    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)
    y = (canvas_height - text_height) // 2 - top
    draw.text((PRINTER_LEFT_INDENT_PX, y), left, font=font, fill=0)
    draw.text((PRINTER_WIDTH_PX - _RIGHT_GUTTER_PX - right_width - right_bbox[0], y), right, font=font, fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def _render_section_separator() -> object:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _SECTION_SEPARATOR_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    top = max(0, (_SECTION_SEPARATOR_HEIGHT_PX - _SECTION_SEPARATOR_THICKNESS_PX) // 2)
    bottom = min(_SECTION_SEPARATOR_HEIGHT_PX - 1, top + _SECTION_SEPARATOR_THICKNESS_PX - 1)
    draw.rectangle((0, top, PRINTER_WIDTH_PX - 1, bottom), fill=0)
    return img


def _print_section_separator(printer: object) -> None:
    """
    Print the separator in short stripes with tiny pauses.

    This intentionally reduces instantaneous heat so the line stays crisp
    instead of bleeding into adjacent dots.
    """
    separator = _render_section_separator()
    for top in range(0, separator.height, _SECTION_SEPARATOR_STRIPE_HEIGHT_PX):
        bottom = min(separator.height, top + _SECTION_SEPARATOR_STRIPE_HEIGHT_PX)
        stripe = separator.crop((0, top, PRINTER_WIDTH_PX, bottom))
        printer.image(stripe)
        if bottom < separator.height:
            sleep(_SECTION_SEPARATOR_PAUSE_SECONDS)


def receipt_rows(receipt: Receipt) -> list[tuple[str, str]]:
    """Item and total rows as (label, amount) pairs, in print order."""
    rows = [(f"{line.quantity} x {line.name}", format_money(line.line_total)) for line in receipt.lines]
    rows.append(("TOTAL", format_money(receipt.grand_total)))
    if receipt.payment is not None:
        method = PAYMENT_METHOD_LABELS.get(receipt.payment.method, receipt.payment.method)
        rows.append((f"Paid ({method})", format_money(receipt.payment.settled_amount)))
    return rows


def print_receipt(receipt: Receipt) -> None:
    """Print one receipt and cut the paper."""
    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font_path = resolve_printer_font_path()
    font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    title_font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE + 12)
    small_font = ImageFont.truetype(font_path, max(10, PRINTER_FONT_SIZE - 8))

    printer.image(_render_line("Receipt", title_font, centered=True))
    printer.image(_render_line(f"Order #: {receipt.order_label}", font))
    printer.image(_render_line(f"Type: {ORDER_TYPE_LABELS.get(receipt.order_type, receipt.order_type)}", font))
    printer.image(_render_line(f"Table: {receipt.table_label or '-'}", font))
    _print_section_separator(printer)

    rows = receipt_rows(receipt)
    item_rows, summary_rows = rows[: len(receipt.lines)], rows[len(receipt.lines) :]
    for label, amount in item_rows:
        printer.image(_render_two_column(label, amount, font))
    _print_section_separator(printer)
    for label, amount in summary_rows:
        printer.image(_render_two_column(label, amount, font))

    if receipt.payment is not None and receipt.payment.reference_number:
        printer.image(_render_line(f"Ref: {receipt.payment.reference_number}", small_font))
    if receipt.notes:
        printer.image(_render_line(f"Notes: {receipt.notes}", small_font))
    printer.image(_render_line("Thank you for your order", small_font, centered=True))
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
