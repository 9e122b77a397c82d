import json

import pytest
from PySide6.QtWidgets import QApplication

from bookmarkcaller.app import config
from bookmarkcaller.app import main as main_module


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "vault"
    (root / ".obsidian").mkdir(parents=True)
    return root


@pytest.fixture
def quiet_qt(monkeypatch):
    monkeypatch.setattr(main_module, "qInstallMessageHandler", lambda handler: None)


def test_debug_flag(monkeypatch):
    monkeypatch.setenv("BOOKMARKCALLER_DEBUG", "1")
    assert main_module._debug_enabled("BOOKMARKCALLER_DEBUG")
    monkeypatch.setenv("BOOKMARKCALLER_DEBUG", "false")
    assert not main_module._debug_enabled("BOOKMARKCALLER_DEBUG")


def test_set_rejects_invalid_characters(isolated_config, capsys):
    assert main_module.main(["--set", "characters=qwer"]) == 0
    assert main_module.main(["--set", "characters=aabc"]) == 2
    assert config.DUPLICATE_MESSAGE in capsys.readouterr().err
    assert config.load_caller_settings().characters == "qwer"


def test_reset_setting(isolated_config):
    main_module.main(["--set", "search.sort_order=newer", "--set", "all_key=Delete"])
    assert main_module.main(["--reset", "search.sort_order", "--reset", "caller.all_key"]) == 0
    assert config.load_search_settings().sort_order == "original"
    assert config.load_caller_settings().all_key == "/"
    assert main_module.main(["--reset", "bogus"]) == 2


def test_missing_vault(isolated_config, tmp_path, capsys):
    assert main_module.main([]) == 1
    assert main_module.main(["--vault", str(tmp_path / "nope")]) == 1
    assert "Vault not found" in capsys.readouterr().err


def test_missing_registry_shows_notice(qapp, isolated_config, vault, quiet_qt, monkeypatch):
    shown = []
    monkeypatch.setattr(main_module, "_show_registry_missing", lambda parent=None: shown.append(True))
    assert main_module.main(["--vault", str(vault)]) == 1
    assert shown == [True]
    assert config.load_last_vault() == str(vault.resolve())


def test_copy_json_uses_clipboard(qapp, isolated_config, vault, quiet_qt):
    registry = {"items": [{"type": "file", "ctime": 1, "path": "a.md"}]}
    (vault / ".obsidian" / "bookmarks.json").write_text(json.dumps(registry), encoding="utf-8")
    assert main_module.main(["--vault", str(vault), "--copy-json"]) == 0
    assert json.loads(QApplication.clipboard().text()) == registry


def test_last_vault_is_reused(qapp, isolated_config, vault, quiet_qt):
    (vault / ".obsidian" / "bookmarks.json").write_text(json.dumps({"items": []}), encoding="utf-8")
    config.save_last_vault(str(vault))
    assert main_module.main(["--copy-json"]) == 0
    assert json.loads(QApplication.clipboard().text()) == {"items": []}
