import logging
import sys
import time
from typing import List, Optional

from .config import LOG_LEVEL


_INITIALIZED = False


def init_logging(level: Optional[str] = None) -> None:
    """Attach a single stdout handler to the root logger.

    Safe to call from every entry point; only the first call has an effect.
    """
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root_logger.addHandler(handler)

    _INITIALIZED = True


def add_debug(debug_list: List[str], tag: str) -> None:
    """Append a debug tag to the in-flight list.

    Short tags like `EMAIL_MAILTO` or `BRAND_TIMEOUT` trace which strategies
    ran without leaking profile data into responses.
    """
    debug_list.append(tag)


async def save_debug_files(page, prefix: str = "debug") -> Optional[dict]:
    """Save a full-page screenshot and HTML content to /tmp for diagnostics.

    Returns a map with file paths or None if saving fails.
    """
    try:
        ts = int(time.time())
        screenshot_path = f"/tmp/{prefix}_{ts}.png"
        html_path = f"/tmp/{prefix}_{ts}.html"
        await page.screenshot(path=screenshot_path, full_page=True)
        content = await page.content()
        with open(html_path, "w", encoding="utf-8") as f:
            f.write(content)
        return {"screenshot": screenshot_path, "html": html_path}
    except Exception:
        logging.getLogger(__name__).debug("Could not save debug files", exc_info=True)
        return None
