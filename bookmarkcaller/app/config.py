from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

GLOBAL_CONFIG = Path(os.environ.get("BOOKMARKCALLER_CONFIG", Path.home() / ".bookmarkcaller_config.json"))

CALLER_SECTION = "open_bookmarks_caller"
SEARCH_SECTION = "search_bookmarks"

CHAR_LENGTH_MIN = 4
CHAR_LENGTH_MAX = 10
# Keys the caller always handles itself: focus, paging and opening the focused row.
RESERVED_KEYS = ("Up", "Down", "Left", "Right", "Space", "Enter")
STRUCTURE_TYPES = ("original", "flat")
SORT_ORDERS = ("original", "newer", "older")

DUPLICATE_MESSAGE = "Can't assign duplicate characters and shortcut keys."
NUMBER_OF_CHARACTERS_MESSAGE = f"{CHAR_LENGTH_MIN} to {CHAR_LENGTH_MAX} characters are required."
RESERVED_KEYS_MESSAGE = "The key can't be assigned because it's used preferentially by this app."

_CHARACTERS_PATTERN = re.compile(r"[!-~]+")
_COLOR_PATTERN = re.compile(r"#[0-9a-fA-F]{6}")

# Settings stored at the top level by early versions, before the per-picker sections.
_LEGACY_CALLER_KEYS = {
    "recursivelyOpen": "recursively_open",
    "showFooterButtons": "show_footer_buttons",
    "showLegends": "show_legends",
    "focusColor": "focus_color",
    "characters": "characters",
    "allBtn": "all_key",
    "backBtn": "back_key",
}


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class CallerSettings:
    recursively_open: bool = True
    show_footer_buttons: bool = True
    show_legends: bool = True
    focus_color: str = "#00b4e0"
    characters: str = "asdfghjkl;"
    all_key: str = "/"
    back_key: str = "Backspace"


@dataclass(frozen=True)
class SearchSettings:
    structure_type: str = "flat"
    sort_order: str = "original"
    recursively_open: bool = True
    show_footer_buttons: bool = True
    show_legends: bool = True
    focus_color: str = "#00b4e0"


def init_settings() -> None:
    GLOBAL_CONFIG.parent.mkdir(parents=True, exist_ok=True)


def _read_global_config() -> dict:
    """Return the parsed global config, or an empty dict on error/missing."""
    if not GLOBAL_CONFIG.exists():
        return {}
    try:
        payload = json.loads(GLOBAL_CONFIG.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _update_global_config(updates: dict, remove: Iterable[str] = ()) -> None:
    """Merge updates into global config file."""
    existing = _read_global_config()
    for key in remove:
        existing.pop(key, None)
    existing.update(updates)
    GLOBAL_CONFIG.parent.mkdir(parents=True, exist_ok=True)
    GLOBAL_CONFIG.write_text(json.dumps(existing, indent=2), encoding="utf-8")


def load_last_vault() -> Optional[str]:
    payload = _read_global_config()
    last = payload.get("last_vault")
    return last if isinstance(last, str) else None


def save_last_vault(path: str) -> None:
    _update_global_config({"last_vault": path})


# ---- Validation ----
def has_duplicates(keys: Iterable[str]) -> bool:
    seen: list[str] = []
    for key in keys:
        if key in seen:
            return True
        seen.append(key)
    return False


def validate_characters(characters: str, all_key: str, back_key: str) -> None:
    """Raise SettingsError unless ``characters`` is a usable shortcut alphabet."""
    if not CHAR_LENGTH_MIN <= len(characters) <= CHAR_LENGTH_MAX:
        raise SettingsError(NUMBER_OF_CHARACTERS_MESSAGE)
    if not _CHARACTERS_PATTERN.fullmatch(characters):
        raise SettingsError(NUMBER_OF_CHARACTERS_MESSAGE)
    if has_duplicates([*characters, all_key, back_key]):
        raise SettingsError(DUPLICATE_MESSAGE)


def validate_shortcut_key(key: str, used_keys: Iterable[str]) -> None:
    if not key:
        raise SettingsError("A shortcut key is required.")
    if key in RESERVED_KEYS or key == " ":
        raise SettingsError(RESERVED_KEYS_MESSAGE)
    if has_duplicates([key, *used_keys]):
        raise SettingsError(DUPLICATE_MESSAGE)


def validate_caller_settings(settings: CallerSettings) -> None:
    validate_characters(settings.characters, settings.all_key, settings.back_key)
    validate_shortcut_key(settings.all_key, [*settings.characters, settings.back_key])
    validate_shortcut_key(settings.back_key, [*settings.characters, settings.all_key])
    if not _COLOR_PATTERN.fullmatch(settings.focus_color):
        raise SettingsError(f"Invalid focus color: {settings.focus_color}")


def validate_search_settings(settings: SearchSettings) -> None:
    if settings.structure_type not in STRUCTURE_TYPES:
        raise SettingsError(f"Structure type must be one of: {', '.join(STRUCTURE_TYPES)}")
    if settings.sort_order not in SORT_ORDERS:
        raise SettingsError(f"Sort order must be one of: {', '.join(SORT_ORDERS)}")
    if not _COLOR_PATTERN.fullmatch(settings.focus_color):
        raise SettingsError(f"Invalid focus color: {settings.focus_color}")


# ---- Loading ----
def _coerce_section(cls, raw: Any):
    """Build a settings dataclass from stored values, keeping defaults for anything mistyped."""
    defaults = cls()
    if not isinstance(raw, dict):
        return defaults
    values = {}
    for field in fields(cls):
        value = raw.get(field.name)
        default = getattr(defaults, field.name)
        if isinstance(value, type(default)):
            values[field.name] = value
    return replace(defaults, **values)


def _migrate_legacy_settings(payload: dict) -> bool:
    """Move pre-section settings into the caller section. Returns True when anything moved."""
    legacy = {key: payload[key] for key in _LEGACY_CALLER_KEYS if key in payload}
    if not legacy:
        return False
    section = payload.get(CALLER_SECTION)
    section = dict(section) if isinstance(section, dict) else {}
    for old_key, value in legacy.items():
        section[_LEGACY_CALLER_KEYS[old_key]] = value
    payload[CALLER_SECTION] = section
    for old_key in legacy:
        payload.pop(old_key)
    return True


def load_caller_settings() -> CallerSettings:
    payload = _read_global_config()
    if _migrate_legacy_settings(payload):
        logger.info("Migrated legacy caller settings in %s", GLOBAL_CONFIG)
        _update_global_config({CALLER_SECTION: payload[CALLER_SECTION]}, remove=_LEGACY_CALLER_KEYS)
    settings = _coerce_section(CallerSettings, payload.get(CALLER_SECTION))
    try:
        validate_caller_settings(settings)
    except SettingsError as exc:
        logger.warning("Ignoring invalid caller settings (%s); using defaults", exc)
        return CallerSettings()
    return settings


def load_search_settings() -> SearchSettings:
    payload = _read_global_config()
    settings = _coerce_section(SearchSettings, payload.get(SEARCH_SECTION))
    try:
        validate_search_settings(settings)
    except SettingsError as exc:
        logger.warning("Ignoring invalid search settings (%s); using defaults", exc)
        return SearchSettings()
    return settings


# ---- Saving ----
def save_caller_settings(settings: CallerSettings) -> None:
    validate_caller_settings(settings)
    _update_global_config({CALLER_SECTION: asdict(settings)})


def save_search_settings(settings: SearchSettings) -> None:
    validate_search_settings(settings)
    _update_global_config({SEARCH_SECTION: asdict(settings)})


def update_caller_settings(**changes: Any) -> CallerSettings:
    """Apply ``changes`` on top of the stored caller settings.

    Raises SettingsError (and leaves the stored settings alone) when the result
    would be invalid, e.g. ``characters="aabc"``.
    """
    updated = replace(load_caller_settings(), **changes)
    save_caller_settings(updated)
    return updated


def update_search_settings(**changes: Any) -> SearchSettings:
    updated = replace(load_search_settings(), **changes)
    save_search_settings(updated)
    return updated


def reset_caller_setting(name: str) -> CallerSettings:
    return update_caller_settings(**{name: getattr(CallerSettings(), name)})


def reset_search_setting(name: str) -> SearchSettings:
    return update_search_settings(**{name: getattr(SearchSettings(), name)})


def _parse_value(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise SettingsError(f"Expected a boolean value, got {raw!r}")
    return raw


def apply_setting(assignment: str) -> None:
    """Apply a ``[search.]name=value`` assignment from the command line."""
    if "=" not in assignment:
        raise SettingsError(f"Expected name=value, got {assignment!r}")
    name, raw = assignment.split("=", 1)
    name = name.strip()
    if name.startswith("search."):
        cls, update = SearchSettings, update_search_settings
        name = name[len("search."):]
    else:
        cls, update = CallerSettings, update_caller_settings
        if name.startswith("caller."):
            name = name[len("caller."):]
    known = {field.name for field in fields(cls)}
    if name not in known:
        raise SettingsError(f"Unknown setting: {name}")
    update(**{name: _parse_value(raw, getattr(cls(), name))})
