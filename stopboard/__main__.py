import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .app import create_app
from .config import env_int, load_system
from .errors import ConfigError
from .store import TransitStore

log = logging.getLogger("stopboard")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    log.info("Starting server")

    parser = argparse.ArgumentParser(prog="stopboard", description="Transit stop info server.")
    parser.add_argument("--config", default=os.getenv("STOPBOARD_CONFIG", ""),
                        help="Configuration file")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=env_int("APP_PORT", 8080))
    args = parser.parse_args(argv)

    try:
        store = TransitStore(load_system(args.config))
    except ConfigError as exc:
        log.error("%s", exc)
        return 1

    app = create_app(store)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
