import json

from packtrack.services.preferences import PREFERENCE_KEY, ScannerPreferences


def test_defaults_without_file(tmp_path):
    prefs = ScannerPreferences(tmp_path / "missing.json", default_delay=400)
    assert prefs.get_delay() == 400


def test_set_delay_persists_and_reloads(tmp_path):
    path = tmp_path / "nested" / "scanner.json"
    prefs = ScannerPreferences(path)
    prefs.set_delay(750)

    assert json.loads(path.read_text(encoding="utf-8")) == {PREFERENCE_KEY: 750}
    assert ScannerPreferences(path).get_delay() == 750


def test_corrupt_file_falls_back_to_default(tmp_path):
    path = tmp_path / "scanner.json"
    path.write_text("{not json", encoding="utf-8")
    assert ScannerPreferences(path).get_delay() == 500


def test_non_numeric_value_falls_back_to_default(tmp_path):
    path = tmp_path / "scanner.json"
    path.write_text(json.dumps({PREFERENCE_KEY: "fast"}), encoding="utf-8")
    assert ScannerPreferences(path, default_delay=300).get_delay() == 300


def test_memory_only_preferences():
    prefs = ScannerPreferences()
    prefs.set_delay(100)
    assert prefs.get_delay() == 100
    assert prefs.path is None
