"""Client for producers that push arrival times into a running stopboard service.

    stopboard-push updates.json --url http://127.0.0.1:8080
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv
import requests

from .config import env_float, reject_constant
from .errors import MalformedUpdate
from .models import StationDoc, SystemDoc, Update, UpdateDoc

log = logging.getLogger("stopboard.feed")

DEFAULT_URL = "http://127.0.0.1:8080"

session = requests.Session()


class FeedError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status


class UpdateRejected(FeedError):
    pass


def feed_timeout() -> Tuple[float, float]:
    return (
        env_float("FEED_CONNECT_TIMEOUT_SEC", 3.0),
        env_float("FEED_READ_TIMEOUT_SEC", 7.0),
    )


def get_json(url: str, params: Optional[Dict[str, str]] = None) -> Any:
    try:
        resp = session.get(
            url, params=params, timeout=feed_timeout(), headers={"Accept": "application/json"}
        )
    except requests.RequestException as exc:
        raise FeedError(504, f"request to {url} failed") from exc

    if resp.status_code >= 400:
        raise FeedError(resp.status_code, resp.text.strip())
    try:
        return resp.json()
    except ValueError as exc:
        raise FeedError(502, "invalid JSON") from exc


def fetch_system(base_url: str) -> SystemDoc:
    return get_json(f"{base_url.rstrip('/')}/info")


def fetch_stop(base_url: str, stop_id: str) -> StationDoc:
    return get_json(f"{base_url.rstrip('/')}/stop", params={"id": stop_id})


def push_update(base_url: str, update: Union[Update, UpdateDoc]) -> None:
    """POST an update envelope; raises ``UpdateRejected`` if the service refuses it."""
    body = update.to_document() if isinstance(update, Update) else update
    url = f"{base_url.rstrip('/')}/update"
    try:
        resp = session.post(url, json=body, timeout=feed_timeout())
    except requests.RequestException as exc:
        raise FeedError(504, f"request to {url} failed") from exc

    if resp.status_code == 400:
        raise UpdateRejected(resp.status_code, resp.text.strip())
    if resp.status_code >= 400:
        raise FeedError(resp.status_code, resp.text.strip())


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    parser = argparse.ArgumentParser(description="Send an update envelope to stopboard.")
    parser.add_argument("envelope", help="JSON file holding the update envelope")
    parser.add_argument("--url", default=os.getenv("STOPBOARD_URL", DEFAULT_URL))
    args = parser.parse_args(argv)

    try:
        with open(args.envelope, encoding="utf-8") as f:
            doc = json.load(f, parse_constant=reject_constant)
        update = Update.from_document(doc)
    except (OSError, ValueError, RecursionError, MalformedUpdate) as exc:
        log.error("Unable to read update envelope (%s): %s", args.envelope, exc)
        return 1

    try:
        push_update(args.url, update)
    except FeedError as exc:
        log.error("Update failed (%d): %s", exc.status, exc)
        return 1

    log.info("Sent %d stop update(s) to %s", len(update.stops), args.url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
