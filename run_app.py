from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile

import httpx
import uvicorn


CHROME_INSTALL_PATHS = {
    "darwin": ["/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"],
    "win32": [
        "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    ],
}
CHROME_COMMANDS = ["google-chrome", "chrome", "chromium", "chromium-browser"]


def _detect_chrome_path() -> str | None:
    candidates = [os.environ.get("CHROME_PATH", "")] + CHROME_INSTALL_PATHS.get(sys.platform, [])
    for path in candidates:
        if path and os.path.exists(path):
            return path
    for command in CHROME_COMMANDS:
        found = shutil.which(command)
        if found:
            return found
    return None


def _cdp_is_running(port: int) -> bool:
    try:
        return httpx.get(f"http://127.0.0.1:{port}/json/version", timeout=2).status_code == 200
    except httpx.HTTPError:
        return False


def start_cdp(port: int = 9222) -> bool:
    """Start a Chrome with remote debugging so extraction can reuse its login.

    The profile directory persists across runs: log in to LinkedIn once in
    that window and later runs stay signed in.
    """
    if _cdp_is_running(port):
        print(f"✅ Chrome CDP already running on port {port}")
        return True
    chrome_path = _detect_chrome_path()
    if not chrome_path:
        print("⚠️ Chrome executable not found. Please install Chrome or set CHROME_PATH.")
        return False

    user_data_dir = os.path.join(tempfile.gettempdir(), "linkedin_prospect_profile")
    cmd = [
        chrome_path,
        f"--remote-debugging-port={port}",
        f"--user-data-dir={user_data_dir}",
        "--no-first-run",
        "--no-default-browser-check",
        "https://www.linkedin.com/feed/",
    ]
    kwargs = {"stdout": subprocess.DEVNULL, "stderr": subprocess.DEVNULL}
    if sys.platform.startswith("win"):
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    subprocess.Popen(cmd, **kwargs)
    print(f"✅ Chrome CDP started on port {port} (profile: {user_data_dir})")
    return True


def main() -> None:
    host = os.environ.get("APP_HOST", "127.0.0.1")
    port = int(os.environ.get("APP_PORT", "8787"))
    cdp_port = int(os.environ.get("SCRAPER_CDP_PORT", "9222"))

    # Must be set before the app (and its config module) is imported
    os.environ.setdefault("SCRAPER_USE_CDP", "true")
    os.environ.setdefault("SCRAPER_CDP_URL", f"http://127.0.0.1:{cdp_port}")

    start_cdp(cdp_port)

    print("\nLinkedIn Prospect Saver API is running:")
    print(f"http://{host}:{port}/docs")
    print("Press Ctrl+C to stop.")
    uvicorn.run("app:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
