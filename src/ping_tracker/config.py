import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Paths:
    project_root: Path = Path(__file__).resolve().parents[2]
    data_root: Path = project_root / "data"

    def ensure(self) -> None:
        self.data_root.mkdir(parents=True, exist_ok=True)


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    store_backend: str = "sqlite"  # sqlite | memory
    store_path: str = ""  # empty -> <data_root>/pings.sqlite3
    log_level: str = "INFO"


def _apply_env(cfg: ServerConfig) -> ServerConfig:
    if os.getenv("PT_HOST"):
        cfg.host = os.environ["PT_HOST"]
    if os.getenv("PT_PORT"):
        cfg.port = int(os.environ["PT_PORT"])
    if os.getenv("PT_STORE_BACKEND"):
        cfg.store_backend = os.environ["PT_STORE_BACKEND"].strip().lower()
    if os.getenv("PT_STORE_PATH"):
        cfg.store_path = os.environ["PT_STORE_PATH"]
    if os.getenv("PT_LOG_LEVEL"):
        cfg.log_level = os.environ["PT_LOG_LEVEL"].upper()
    return cfg


def load_server_config(paths: Paths | None = None) -> ServerConfig:
    """Load server settings from data/server_config.json, then PT_* env vars."""
    if paths is None:
        paths = Paths()
    paths.ensure()
    default_store = str(paths.data_root / "pings.sqlite3")
    cfg_path = paths.data_root / "server_config.json"
    if not cfg_path.exists():
        cfg = _apply_env(ServerConfig())
        cfg.store_path = cfg.store_path or default_store
        return cfg
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError):
        cfg = _apply_env(ServerConfig())
        cfg.store_path = cfg.store_path or default_store
        return cfg

    cfg = ServerConfig(
        host=str(payload.get("host", "0.0.0.0")),
        port=int(payload.get("port", DEFAULT_PORT)),
        store_backend=str(payload.get("store_backend", "sqlite")).lower(),
        store_path=str(payload.get("store_path", "")),
        log_level=str(payload.get("log_level", "INFO")).upper(),
    )
    cfg = _apply_env(cfg)
    cfg.store_path = cfg.store_path or default_store
    return cfg


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
