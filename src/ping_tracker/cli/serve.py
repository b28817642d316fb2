import argparse
import logging

import uvicorn

from ..api.main import create_app
from ..config import configure_logging, load_server_config

logger = logging.getLogger(__name__)


def main():
    cfg = load_server_config()
    parser = argparse.ArgumentParser(description="Run the ping tracker HTTP API.")
    parser.add_argument("--host", type=str, default=cfg.host)
    parser.add_argument("--port", type=int, default=cfg.port)
    parser.add_argument(
        "--store",
        choices=("sqlite", "memory"),
        default=cfg.store_backend,
        help="Ping store backend (default from config)",
    )
    parser.add_argument("--store-file", type=str, default=cfg.store_path)
    args = parser.parse_args()

    cfg.host, cfg.port = args.host, args.port
    cfg.store_backend, cfg.store_path = args.store, args.store_file
    configure_logging(cfg.log_level)

    app = create_app(config=cfg)
    logger.info("Listening on %s:%d (store=%s)", cfg.host, cfg.port, cfg.store_backend)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
