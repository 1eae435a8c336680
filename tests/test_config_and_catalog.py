import json
import logging

import pytest
from pydantic import ValidationError

from packtrack.core.catalog import UNKNOWN_GAME, GameCatalog
from packtrack.core.config import AppSettings
from packtrack.core.logging import JsonLogFormatter
from packtrack.middlewares import request_id_ctx_var


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("TZ", raising=False)
    monkeypatch.delenv("SLOT_COUNT", raising=False)
    monkeypatch.delenv("SCANNER_DELAY_MS", raising=False)
    monkeypatch.delenv("DATA_DIR", raising=False)
    settings = AppSettings(_env_file=None)
    assert settings.SLOT_COUNT == 20
    assert settings.SCANNER_DELAY_MS == 500
    assert settings.preferences_path is None
    assert settings.tzinfo.key == "America/Chicago"


def test_settings_reject_unknown_timezone():
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, TZ="Mars/Olympus_Mons")


def test_settings_preferences_path_under_data_dir(tmp_path):
    settings = AppSettings(_env_file=None, DATA_DIR=tmp_path)
    assert settings.preferences_path == tmp_path / "scanner.json"


def test_catalog_from_json(tmp_path):
    path = tmp_path / "games.json"
    path.write_text(
        json.dumps({"77777": {"name": "Neon Nights", "price": "$1"}, "88888": "bogus"}),
        encoding="utf-8",
    )
    catalog = GameCatalog.from_json(path)
    assert len(catalog) == 1
    game = catalog.for_gamepack("77777000001")
    assert game.name == "Neon Nights"
    assert game.type == "Scratch-off"
    assert catalog.for_gamepack("88888000001") == UNKNOWN_GAME


def test_catalog_from_json_requires_object(tmp_path):
    path = tmp_path / "games.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        GameCatalog.from_json(path)


def test_json_log_formatter_includes_request_id_and_extra():
    record = logging.LogRecord("packtrack.test", logging.INFO, __file__, 1, "slot.updated", None, None)
    record.extra_data = {"slot_id": 3}
    token = request_id_ctx_var.set("req-1")
    try:
        payload = json.loads(JsonLogFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)
    assert payload["message"] == "slot.updated"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["slot_id"] == 3
    assert payload["timestamp"].endswith("Z")


def test_json_log_formatter_keeps_record_fields_on_clash():
    record = logging.LogRecord("packtrack.scan", logging.INFO, __file__, 1, "scan.outcome", None, None)
    record.extra_data = {"message": "Barcode must be at least 14 digits", "slot_id": 2}
    payload = json.loads(JsonLogFormatter(service="Pack Tracker").format(record))
    assert payload["message"] == "scan.outcome"
    assert payload["data_message"] == "Barcode must be at least 14 digits"
    assert payload["slot_id"] == 2
    assert payload["service"] == "Pack Tracker"
