"""
settings_manager.py
Loads and saves application settings (AI endpoint, log level, window geometry,
saved contacts) in a per-user JSON file.

Location:
  Windows: %LOCALAPPDATA%/Notention/settings.json
  macOS:   ~/Library/Application Support/Notention/settings.json
  Linux:   ~/.config/Notention/settings.json
The NOTENTION_SETTINGS_DIR environment variable overrides the directory.
"""

import json
import logging
import os
import sys

_SETTINGS_BASENAME = "settings.json"
_ENV_OVERRIDE = "NOTENTION_SETTINGS_DIR"
_APP_DIR_NAME = "Notention"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _default_settings_dir() -> str:
    """Return the platform-specific settings directory (env override wins)."""
    override = os.environ.get(_ENV_OVERRIDE)
    if override:
        return os.path.abspath(override)
    try:
        if os.name == "nt":
            base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
            return os.path.join(base, _APP_DIR_NAME)
        elif sys.platform == "darwin":
            return os.path.join(os.path.expanduser("~"), "Library", "Application Support", _APP_DIR_NAME)
        else:
            return os.path.join(os.path.expanduser("~"), ".config", _APP_DIR_NAME)
    except Exception:
        return os.path.abspath(".")


def get_settings_dir() -> str:
    """Return the settings directory, creating it if needed."""
    d = _default_settings_dir()
    try:
        os.makedirs(d, exist_ok=True)
    except Exception:
        pass
    return d


def get_settings_file_path() -> str:
    return os.path.join(get_settings_dir(), _SETTINGS_BASENAME)


def load_settings() -> dict:
    path = get_settings_file_path()
    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                if isinstance(data, dict):
                    return data
    except Exception:
        pass
    return {}


def save_settings(settings: dict):
    path = get_settings_file_path()
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
    except Exception:
        pass


# --- AI ---
def get_ai_enabled() -> bool:
    return bool(load_settings().get("ai_enabled", False))


def set_ai_enabled(enabled: bool):
    s = load_settings()
    s["ai_enabled"] = bool(enabled)
    save_settings(s)


def get_ollama_settings() -> dict:
    """Return {"endpoint", "model"}; endpoint is "" when AI is not configured."""
    s = load_settings()
    endpoint = s.get("ollama_api_endpoint") or ""
    model = s.get("ollama_chat_model") or "llama3"
    return {"endpoint": str(endpoint), "model": str(model)}


def set_ollama_settings(endpoint: str = None, model: str = None):
    s = load_settings()
    if endpoint is not None:
        s["ollama_api_endpoint"] = str(endpoint).strip()
    if model is not None:
        s["ollama_chat_model"] = str(model).strip()
    save_settings(s)


def get_ai_timeout_seconds() -> float:
    """Seconds to wait for an AI reply. Default 30; clamped [1, 600]."""
    s = load_settings()
    try:
        val = float(s.get("ai_timeout_seconds", 30))
    except Exception:
        val = 30.0
    return min(max(val, 1.0), 600.0)


# --- Logging ---
def get_log_level() -> int:
    s = load_settings()
    name = str(s.get("log_level", "INFO")).upper()
    if name not in _LOG_LEVELS:
        name = "INFO"
    return getattr(logging, name)


# --- Window geometry ---
def get_window_geometry():
    s = load_settings()
    return s.get("window_geometry")  # dict with x, y, w, h


def set_window_geometry(x, y, w, h):
    s = load_settings()
    s["window_geometry"] = {"x": int(x), "y": int(y), "w": int(w), "h": int(h)}
    save_settings(s)


# --- Contacts ---
def get_saved_contacts() -> list:
    """Return saved contacts as a list of {"pubkey", "alias"} dicts; malformed entries skipped."""
    s = load_settings()
    out = []
    for entry in s.get("contacts") or []:
        if not isinstance(entry, dict):
            continue
        pubkey = str(entry.get("pubkey") or "").strip()
        if pubkey:
            out.append({"pubkey": pubkey, "alias": str(entry.get("alias") or "")})
    return out


def set_saved_contacts(contacts):
    s = load_settings()
    s["contacts"] = [{"pubkey": c.pubkey, "alias": c.alias} for c in contacts]
    save_settings(s)
