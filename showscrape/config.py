import os
import tomllib
from pathlib import Path
from typing import Any

_DEFAULT_CONFIG_PATH = Path("config.toml")
_DEFAULT_DATABASE_PATH = "data/show-scrape.sqlite"


def load(path: Path = _DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """
    Load config from TOML, then overlay environment variables.

    A missing file is not an error: every setting has a default.
    """
    cfg: dict[str, Any] = {}
    if path.exists():
        with open(path, "rb") as f:
            cfg = tomllib.load(f)
    _apply_env_vars(cfg)
    return cfg


def _apply_env_vars(cfg: dict) -> None:
    """
    Supported variable names:
      SHOWSCRAPE_DB_PATH      -> cfg["database"]["path"]
      MUSICBRAINZ_USER_AGENT  -> cfg["musicbrainz"]["user_agent"]
    """
    if v := os.environ.get("SHOWSCRAPE_DB_PATH"):
        cfg.setdefault("database", {})["path"] = v
    if v := os.environ.get("MUSICBRAINZ_USER_AGENT"):
        cfg.setdefault("musicbrainz", {})["user_agent"] = v


def get_database_path(cfg: dict) -> Path:
    return Path(cfg.get("database", {}).get("path", _DEFAULT_DATABASE_PATH))


def get_http(cfg: dict) -> dict:
    """Defaults shared by every scraper: 'timeout' and 'user_agent'."""
    return cfg.get("http", {})


def get_musicbrainz(cfg: dict) -> dict:
    return cfg.get("musicbrainz", {})


def get_venues(cfg: dict) -> dict[str, dict]:
    """Return the venues section as-is; disabled venues are filtered when scrapers are built."""
    return cfg.get("venues", {})
