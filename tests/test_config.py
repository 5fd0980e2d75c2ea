from pathlib import Path

import pytest

import showscrape.config as cfg_module


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    monkeypatch.delenv("SHOWSCRAPE_DB_PATH", raising=False)
    monkeypatch.delenv("MUSICBRAINZ_USER_AGENT", raising=False)


def test_missing_file_gives_defaults(tmp_path):
    cfg = cfg_module.load(tmp_path / "nope.toml")
    assert cfg == {}
    assert cfg_module.get_database_path(cfg) == Path("data/show-scrape.sqlite")
    assert cfg_module.get_http(cfg) == {}
    assert cfg_module.get_venues(cfg) == {}


def test_load_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[database]\npath = "x/shows.sqlite"\n\n'
        '[http]\ntimeout = 5\n\n'
        '[musicbrainz]\nmin_interval = 2.0\n\n'
        '[venues.treefort]\nenabled = false\n'
    )
    cfg = cfg_module.load(path)

    assert cfg_module.get_database_path(cfg) == Path("x/shows.sqlite")
    assert cfg_module.get_http(cfg) == {"timeout": 5}
    assert cfg_module.get_musicbrainz(cfg) == {"min_interval": 2.0}
    assert cfg_module.get_venues(cfg) == {"treefort": {"enabled": False}}


def test_env_vars_override_file(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text('[database]\npath = "from-file.sqlite"\n')
    monkeypatch.setenv("SHOWSCRAPE_DB_PATH", "/tmp/from-env.sqlite")
    monkeypatch.setenv("MUSICBRAINZ_USER_AGENT", "me/1.0 ( me@example.com )")

    cfg = cfg_module.load(path)

    assert cfg_module.get_database_path(cfg) == Path("/tmp/from-env.sqlite")
    assert cfg_module.get_musicbrainz(cfg)["user_agent"] == "me/1.0 ( me@example.com )"


def test_shipped_config_enables_every_venue():
    cfg = cfg_module.load(Path(__file__).parent.parent / "config.toml")
    venues = cfg_module.get_venues(cfg)
    assert set(venues) == {"treefort", "revolution", "knitboise"}
    assert all(section.get("enabled", True) for section in venues.values())
