import asyncio
import logging
import os
import sys

from track_browser.browser import TrackBrowser
from track_browser.config import load_browser_config
from track_browser.logging_config import configure_logging

configure_logging()

logger = logging.getLogger("track_browser.app")


def main(argv: list[str]) -> int:
    # 1. Config path from argv or env
    config_path = argv[1] if len(argv) > 1 else os.getenv("TRACK_BROWSER_CONFIG")
    if not config_path:
        print("Usage: python app.py <config.json>  (or set TRACK_BROWSER_CONFIG)")
        return 2

    # 2. Build views + data flow, then load every source
    browser = TrackBrowser.from_config(load_browser_config(config_path))
    asyncio.run(browser.launch())

    for view_path, counts in browser.collector_summary().items():
        logger.info("Collected data", extra={"view": view_path, **counts})

    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
