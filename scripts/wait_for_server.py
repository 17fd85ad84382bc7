"""Block until a leetrack service of this version answers /health.

Usage: wait_for_server.py [TIMEOUT_SECONDS]

Host and port come from the resolved leetrack configuration, so the
LEETRACK_HOST / LEETRACK_PORT variables used to start `leetrack serve`
point this script at the same service.
"""

import sys
import time

import requests

from leetrack.application.config import resolve_config
from leetrack.consts import VERSION

DEFAULT_TIMEOUT = 30.0
DELAY = 1.0


def server_url() -> str:
    config = resolve_config()
    return f"http://{config.host}:{config.port}"


def check_health(url: str) -> str | None:
    """
    Returns None once a matching service is up, otherwise the reason it
    is not ready yet.
    """
    try:
        response = requests.get(f"{url}/health", timeout=1)
    except requests.exceptions.RequestException as e:
        return f"unreachable ({e.__class__.__name__})"
    if response.status_code != 200:
        return f"HTTP {response.status_code}"

    try:
        body = response.json()
    except ValueError:
        return "health response is not JSON"
    if body.get("status") != "ok":
        return f"status={body.get('status')!r}"
    if body.get("version") != VERSION:
        return f"version {body.get('version')!r} running, expected {VERSION!r}"
    return None


def wait(url: str, timeout: float = DEFAULT_TIMEOUT, delay: float = DELAY) -> bool:
    deadline = time.monotonic() + timeout
    while True:
        reason = check_health(url)
        if reason is None:
            print(f"leetrack v{VERSION} is up at {url}")
            return True
        if time.monotonic() + delay > deadline:
            print(f"Gave up on {url}: {reason}")
            return False
        print(f"Not ready: {reason}")
        time.sleep(delay)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    timeout = float(args[0]) if args else DEFAULT_TIMEOUT
    url = server_url()
    print(f"Waiting up to {timeout:g}s for leetrack at {url}...")
    return 0 if wait(url, timeout) else 1


if __name__ == "__main__":
    sys.exit(main())
