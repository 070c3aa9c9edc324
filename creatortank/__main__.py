import argparse
import logging
import os
import sys

from aiohttp import web

from .api import create_app
from .db import open_store

logger = logging.getLogger("CreatorTank")


def _restart_process():
    logger.info("Restarting %s", sys.executable)
    os.execv(sys.executable, [sys.executable, "-m", "creatortank"] + sys.argv[1:])


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="creatortank", description="CreatorTank local data service")
    parser.add_argument("--data-dir", default=None, help="data directory (default: CREATORTANK_HOME or the user data dir)")
    parser.add_argument("--host", default=os.environ.get("CREATORTANK_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("CREATORTANK_PORT", "8765")))
    parser.add_argument("--log-level", default=os.environ.get("CREATORTANK_LOG_LEVEL", "INFO"))
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        store = open_store(args.data_dir)
    except Exception:
        logger.error("Database initialization failed; not serving requests")
        return 1
    web.run_app(create_app(store, restart=_restart_process), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
