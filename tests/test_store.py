"""Tests for the JSON settings store."""
import json
import logging

from allowances import DEFAULT_FLUTES, SettingsStore


class TestFlutes:
    def test_missing_file_gives_defaults(self, tmp_path):
        store = SettingsStore(tmp_path)
        assert store.load_flutes() == DEFAULT_FLUTES
        assert not (tmp_path / SettingsStore.FLUTES_FILE).exists()

    def test_save_and_reload(self, tmp_path):
        store = SettingsStore(tmp_path / "settings")
        saved = store.save_flutes([{"flute": "bx", "thickness": "6.5"}])
        assert saved == [{"flute": "BX", "thickness": 6.5}]
        assert store.load_flutes() == saved

    def test_corrupt_file_gives_defaults(self, tmp_path, caplog):
        (tmp_path / SettingsStore.FLUTES_FILE).write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.ERROR):
            flutes = SettingsStore(tmp_path).load_flutes()
        assert flutes == DEFAULT_FLUTES
        assert "Could not read" in caplog.text

    def test_empty_list_gives_defaults(self, tmp_path):
        (tmp_path / SettingsStore.FLUTES_FILE).write_text("[]", encoding="utf-8")
        assert SettingsStore(tmp_path).load_flutes() == DEFAULT_FLUTES


class TestAllowances:
    def test_missing_file_writes_defaults(self, tmp_path):
        store = SettingsStore(tmp_path)
        table = store.load_allowances(DEFAULT_FLUTES)
        assert table.lookup("outside", "B")["panels"]["p1"] == 5
        written = json.loads((tmp_path / SettingsStore.ALLOWANCES_FILE).read_text(encoding="utf-8"))
        assert set(written) == {"inside", "outside"}

    def test_corrupt_file_is_reset(self, tmp_path):
        path = tmp_path / SettingsStore.ALLOWANCES_FILE
        path.write_text("]]", encoding="utf-8")
        table = SettingsStore(tmp_path).load_allowances(DEFAULT_FLUTES)
        assert table.lookup("inside", "C")["panels"]["p4"] == 1
        assert json.loads(path.read_text(encoding="utf-8"))["inside"]

    def test_save_then_load(self, tmp_path):
        store = SettingsStore(tmp_path)
        data = store.load_allowances(DEFAULT_FLUTES).to_dict()
        data["outside"][0]["panels"]["p1"] = 9
        flute = data["outside"][0]["flute"]
        store.save_allowances(data, DEFAULT_FLUTES)
        assert store.load_allowances(DEFAULT_FLUTES).lookup("outside", flute)["panels"]["p1"] == 9

    def test_partial_file_is_merged(self, tmp_path):
        path = tmp_path / SettingsStore.ALLOWANCES_FILE
        path.write_text(json.dumps({"outside": [{"flute": "B", "panels": {"p1": 7}}]}), encoding="utf-8")
        table = SettingsStore(tmp_path).load_allowances(DEFAULT_FLUTES)
        assert table.lookup("outside", "B")["panels"]["p1"] == 7
        assert table.lookup("outside", "C")["panels"]["p1"] == 6
        assert table.lookup("inside", "B")["panels"]["p1"] == 3

    def test_reset_restores_defaults(self, tmp_path):
        store = SettingsStore(tmp_path)
        data = store.load_allowances(DEFAULT_FLUTES).to_dict()
        data["inside"][0]["panels"]["p1"] = 42
        store.save_allowances(data, DEFAULT_FLUTES)
        table = store.reset_allowances(DEFAULT_FLUTES)
        assert table.lookup("inside", "E")["panels"]["p1"] == 2
