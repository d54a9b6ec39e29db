from __future__ import annotations

import logging
from pathlib import Path

from romcat import ScanConfig
from romcat_utils.config import AppConfig, load_config
from romcat_utils.logging import configure_logging, get_logger
from romcat_utils.paths import normalise_path, path_to_uri, uri_to_path


def test_load_config_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.yml")
    assert isinstance(config, AppConfig)
    assert config.search_location is None
    assert config.workers == 1
    assert config.key_material_path == config.data_dir
    assert "~" not in str(config.data_dir)


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "romcat.yml"
    path.write_text(
        f"search_location: {tmp_path}\n"
        f"data_dir: {tmp_path / 'data'}\n"
        f"key_dir: {tmp_path / 'keys'}\n"
        "workers: 3\n"
        "log_level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.workers == 3
    assert config.log_level == "DEBUG"
    assert config.key_material_path == tmp_path / "keys"

    scan_config = ScanConfig.from_app_config(config)
    assert scan_config.root == str(tmp_path)
    assert scan_config.workers == 3
    assert scan_config.catalog_path == tmp_path / "data" / "roms.jsonl"


def test_normalise_path(tmp_path: Path) -> None:
    test_path = tmp_path / "folder" / "file.nro"
    test_path.parent.mkdir(parents=True)
    test_path.write_bytes(b"data")
    resolved = normalise_path(Path(str(test_path)))
    assert resolved.exists()


def test_uri_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "with space" / "game.nro"
    uri = path_to_uri(path)
    assert uri.startswith("file://")
    assert uri_to_path(uri) == normalise_path(path)
    assert uri_to_path(str(path)) == path


def test_logging_bridge(tmp_path: Path) -> None:
    log_file = tmp_path / "romcat.log"
    configure_logging("DEBUG", log_file=log_file)
    logger = get_logger("romcat.test")
    assert isinstance(logger, logging.Logger)
    logger.info("scan finished")
    configure_logging("INFO")
    assert "scan finished" in log_file.read_text(encoding="utf-8")


def test_default_paths_are_expanded(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    app_config = load_config(tmp_path / "missing.yml")
    assert app_config.data_dir == tmp_path / ".romcat"
    assert app_config.key_material_path == tmp_path / ".romcat"

    scan_config = ScanConfig.from_app_config(app_config, root=str(tmp_path))
    assert scan_config.data_dir == tmp_path / ".romcat"
    assert scan_config.key_material_path == tmp_path / ".romcat"


def test_overrides_are_validated(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    config = AppConfig().with_overrides(data_dir=Path("~/elsewhere"), workers=None, log_level="warning")
    assert config.data_dir == tmp_path / "elsewhere"
    assert config.key_material_path == tmp_path / "elsewhere"
    assert config.workers == 1
    assert config.log_level == "WARNING"
