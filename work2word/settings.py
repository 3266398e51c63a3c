import json
import os
import sys
import time

from work2word.log import get_logger

APP_NAME = "Work2Word"
ASSET_SCHEME = "work2word-local://"
SETTINGS_FILE = "settings.json"
DEFAULT_FETCH_TIMEOUT = 20.0

LOGGER = get_logger(__name__)


def is_windows():
    return sys.platform.startswith("win")


def get_user_data_dir() -> str:
    base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
    path = os.path.join(base, APP_NAME)
    os.makedirs(path, exist_ok=True)
    return path


def get_documents_dir() -> str:
    xdg = os.environ.get("XDG_DOCUMENTS_DIR")
    if xdg and os.path.isdir(xdg):
        return xdg
    if is_windows():
        profile = os.environ.get("USERPROFILE") or os.path.expanduser("~")
        return os.path.join(profile, "Documents")
    return os.path.join(os.path.expanduser("~"), "Documents")


def default_asset_root() -> str:
    # Written by the editor's "save image" action, read during conversion.
    return os.path.join(get_documents_dir(), f"{APP_NAME}_Assets", "images")


def default_log_path() -> str:
    return os.path.join(get_user_data_dir(), "logs", "work2word.log")


def default_settings_path() -> str:
    return os.path.join(get_user_data_dir(), SETTINGS_FILE)


def load_settings(path: str | None = None) -> dict:
    path = path or default_settings_path()
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring settings file %s: expected an object", path)
        return {}
    return data


def save_settings(data: dict, path: str | None = None) -> str:
    path = path or default_settings_path()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    os.replace(tmp_path, path)
    return path


def unique_output_path(directory: str, base: str, ext: str) -> str:
    candidate = os.path.join(directory, f"{base}.{ext}")
    if not os.path.exists(candidate):
        return candidate
    idx = 2
    while True:
        candidate = os.path.join(directory, f"{base}_{idx}.{ext}")
        if not os.path.exists(candidate):
            return candidate
        idx += 1


def default_output_path(ext: str, directory: str | None = None) -> str:
    directory = directory or os.getcwd()
    return unique_output_path(directory, f"output_{int(time.time() * 1000)}", ext)
