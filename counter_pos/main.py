"""Entry point for the counter Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from counter_pos.api import ApiClient
from counter_pos.config import API_EMAIL, API_PASSWORD, API_TOKEN, DEBUG_LOG_PATH, PRINT_RECEIPTS
from counter_pos.counter_app import CounterApp
from counter_pos.printer import print_receipt


def configure_logging(path: str | None = DEBUG_LOG_PATH) -> None:
    """Send debug logs to a file; the terminal belongs to the TUI."""
    if not path:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    logging.getLogger("httpcore").setLevel(logging.INFO)


def build_app() -> CounterApp:
    printer = print_receipt if PRINT_RECEIPTS else None
    api = ApiClient()
    app = CounterApp(api, printer=printer, token=API_TOKEN, email=API_EMAIL, password=API_PASSWORD)
    api.on_unauthorized = app.handle_unauthorized
    return app


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    logging.getLogger(__name__).info("app_start")
    build_app().run()


if __name__ == "__main__":
    main()
