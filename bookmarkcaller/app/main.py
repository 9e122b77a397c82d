from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, QtMsgType, qInstallMessageHandler
from PySide6.QtWidgets import QApplication, QMessageBox

from bookmarkcaller.app import config
from bookmarkcaller.app.bookmarks import dump_bookmarks_json
from bookmarkcaller.app.host import DesktopHost, load_root_items
from bookmarkcaller.app.ui.caller_dialog import open_caller
from bookmarkcaller.app.ui.search_dialog import open_search
from bookmarkcaller.server.adapters import files

logger = logging.getLogger(__name__)

BOOKMARKS_HELP_URL = "https://help.obsidian.md/Plugins/Bookmarks"
REGISTRY_MISSING_MESSAGE = (
    "No bookmarks were found for this vault. Enable the core Bookmarks plugin "
    f'and bookmark something first.<br><a href="{BOOKMARKS_HELP_URL}">{BOOKMARKS_HELP_URL}</a>'
)


def _debug_enabled(var_name: str) -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


def _configure_logging() -> None:
    # BOOKMARKCALLER_DEBUG=1 turns on debug logging for every module.
    level = logging.DEBUG if _debug_enabled("BOOKMARKCALLER_DEBUG") else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # httpx logs every favicon request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)


def _qt_message_handler(mode: QtMsgType, context, message: str) -> None:
    """Route Qt warnings through logging, dropping known harmless noise."""
    if "Accessible invalid" in message or "Could not find accessible on path" in message:
        return
    if mode == QtMsgType.QtDebugMsg:
        logger.debug("Qt: %s", message)
    elif mode == QtMsgType.QtWarningMsg:
        logger.warning("Qt: %s", message)
    else:
        logger.error("Qt: %s", message)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Keyboard-driven launcher for vault bookmarks.")
    parser.add_argument("--vault", help="Path to the vault (defaults to the last one used).")
    parser.add_argument("--bookmarks", help="Explicit bookmarks.json to read instead of the vault's own.")
    parser.add_argument("--search", action="store_true", help="Open the fuzzy search picker instead of the paged caller.")
    parser.add_argument("--copy-json", action="store_true", help="Copy the bookmarks JSON to the clipboard and exit.")
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Change a setting, e.g. characters=qwerasdf or search.sort_order=newer. Repeatable.",
    )
    parser.add_argument(
        "--reset",
        action="append",
        default=[],
        metavar="KEY",
        help="Restore a setting to its default, e.g. focus_color or search.structure_type. Repeatable.",
    )
    return parser.parse_args(argv)


def _reset_setting(name: str) -> None:
    if name.startswith("search."):
        cls, reset = config.SearchSettings, config.reset_search_setting
        name = name[len("search."):]
    else:
        cls, reset = config.CallerSettings, config.reset_caller_setting
        if name.startswith("caller."):
            name = name[len("caller."):]
    if not hasattr(cls(), name):
        raise config.SettingsError(f"Unknown setting: {name}")
    reset(name)


def _apply_settings_changes(args: argparse.Namespace) -> int:
    """Apply --set/--reset. Rejected values leave the stored settings unchanged."""
    try:
        for assignment in args.set:
            config.apply_setting(assignment)
        for name in args.reset:
            _reset_setting(name)
    except config.SettingsError as exc:
        print(f"Notice: {exc}", file=sys.stderr)
        return 2
    logger.info("Settings saved to %s", config.GLOBAL_CONFIG)
    return 0


def _resolve_vault(args: argparse.Namespace) -> Optional[Path]:
    vault = args.vault or config.load_last_vault()
    if not vault:
        print("Error: No vault specified. Use --vault <path>", file=sys.stderr)
        return None
    vault_path = Path(vault).expanduser().resolve()
    if not vault_path.is_dir():
        print(f"Error: Vault not found: {vault_path}", file=sys.stderr)
        return None
    if not files.is_vault(vault_path):
        logger.warning("%s has no %s directory", vault_path, files.CONFIG_DIR_NAME)
    return vault_path


def _show_registry_missing(parent=None) -> None:
    box = QMessageBox(parent)
    box.setWindowTitle("Bookmarks")
    box.setIcon(QMessageBox.Information)
    box.setTextFormat(Qt.RichText)
    box.setText(REGISTRY_MISSING_MESSAGE)
    box.exec()


def _copy_json(qt_app: QApplication, items) -> None:
    qt_app.clipboard().setText(dump_bookmarks_json(items))
    print("Copied bookmarks JSON to the clipboard.")


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging()
    config.init_settings()

    if args.set or args.reset:
        return _apply_settings_changes(args)

    vault_path = _resolve_vault(args)
    if vault_path is None:
        return 1
    config.save_last_vault(str(vault_path))

    qInstallMessageHandler(_qt_message_handler)
    qt_app = QApplication.instance() or QApplication(sys.argv)
    bookmarks_path = Path(args.bookmarks).expanduser() if args.bookmarks else None
    host = DesktopHost(vault_path, bookmarks_path=bookmarks_path)
    try:
        items = load_root_items(host)
        if items is None:
            _show_registry_missing()
            return 1
        if args.copy_json:
            _copy_json(qt_app, items)
            return 0
        if args.search:
            dialog = open_search(items, config.load_search_settings(), host.capabilities())
        else:
            dialog = open_caller(items, config.load_caller_settings(), host.capabilities())
        dialog.finished.connect(lambda _result: qt_app.quit())
        return qt_app.exec()
    finally:
        host.close()


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
