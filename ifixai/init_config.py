"""
Prepare the runtime layout on first start: the SQLite data directory and
``config/.env`` (copied from ``config/.env.example`` when missing).
Runs from the app startup hook or on its own: python -m ifixai.init_config
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from ifixai.config.settings import settings
from ifixai.util.logger import logger

_APP_ROOT_DIR = Path(__file__).resolve().parent.parent
_ENV_EXAMPLE = ".env.example"


def _config_dir() -> Path:
    if os.environ.get("IFIXAI_CONFIG_DIR"):
        return Path(os.environ["IFIXAI_CONFIG_DIR"]).resolve()
    return Path.cwd() / "config"


def _env_example_path() -> Path | None:
    cwd = Path.cwd()
    for base in (cwd, cwd.parent, _APP_ROOT_DIR):
        candidate = base / "config" / _ENV_EXAMPLE
        if candidate.is_file():
            return candidate
    return None


def data_dir() -> Path:
    return Path(settings.sqlite_db_path).expanduser().resolve().parent


def ensure_runtime_dirs() -> None:
    """Create the data directory and seed ``.env``; existing files are never overwritten."""
    db_dir = data_dir()
    db_dir.mkdir(parents=True, exist_ok=True)
    logger.debug("init_config: data dir ready %s", db_dir)

    config_dir = _config_dir()
    env_dst = config_dir / ".env"
    if env_dst.exists() and env_dst.stat().st_size > 0:
        return
    env_src = _env_example_path()
    if env_src is None:
        logger.debug("init_config: no .env.example found, skip creating .env")
        return
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(env_src, env_dst)
        logger.info("init_config: created %s from %s", env_dst, env_src.name)
    except OSError as e:
        logger.warning("init_config: could not write %s: %s", env_dst, e)


def main() -> None:
    ensure_runtime_dirs()


if __name__ == "__main__":
    main()
