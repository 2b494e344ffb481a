import math
import os
from pathlib import Path

from dotenv import dotenv_values

from dupctl.errors import ConfigurationError

DUPCTL_DIR = Path.home() / ".dupctl"
SETTINGS_FILE = DUPCTL_DIR / "settings"
PREFERENCES_DIR = ".duplicacy"

DEFAULT_SETTINGS = {
    "BANDWIDTH_LIMIT": "",
    "DISABLE_MAINTENANCE": "",
    "DUPLICACY": "duplicacy",
    "REPOSITORY": "",
    "GUESS_ROOT": "/",
    # Same retention ladder as the engine docs: yearly after 4y, monthly after 2y, ...
    "KEEP": "0:3650 365:1460 30:720 7:62 1:7",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


def settings_path():
    """$DUPCTL_SETTINGS if set, else ~/.dupctl/settings."""
    return Path(os.environ.get("DUPCTL_SETTINGS") or SETTINGS_FILE)


def load_settings(path=None):
    """Load the key=value settings file on top of the defaults.

    Format: KEY=VALUE, one per line. Lines starting with # are comments.
    A missing file is not an error: every key has a default.
    """
    path = Path(path) if path else settings_path()
    settings = dict(DEFAULT_SETTINGS)
    if path.exists():
        for key, value in dotenv_values(path).items():
            settings[key] = (value or "").strip()
    return settings


def save_setting(key, value, path=None):
    """Save or update a single key in the settings file."""
    if key not in DEFAULT_SETTINGS:
        raise ConfigurationError(
            f"Unknown setting {key!r}. Known: {', '.join(sorted(DEFAULT_SETTINGS))}"
        )
    path = Path(path) if path else settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = []
    found = False
    if path.exists():
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                k = stripped.split("=", 1)[0].strip()
                if k == key:
                    lines.append(f"{key}={value}")
                    found = True
                    continue
            lines.append(line)

    if not found:
        lines.append(f"{key}={value}")

    path.write_text("\n".join(lines) + "\n")
    return path


def bandwidth_limit_kbps(settings):
    """BANDWIDTH_LIMIT is in megabits/s; the engine's -limit-rate wants KB/s.

    Returns None when unlimited.
    """
    raw = settings.get("BANDWIDTH_LIMIT", "")
    if not raw:
        return None
    try:
        mbps = float(raw)
    except ValueError:
        raise ConfigurationError(f"BANDWIDTH_LIMIT must be a number of Mbit/s, got {raw!r}")
    if not math.isfinite(mbps) or mbps < 0:
        raise ConfigurationError(f"BANDWIDTH_LIMIT must be a finite, non-negative number, got {raw!r}")
    kbps = int(mbps * 1000 / 8)
    return kbps or None


def maintenance_disabled(settings):
    raw = settings.get("DISABLE_MAINTENANCE", "").lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigurationError(f"DISABLE_MAINTENANCE must be a boolean, got {raw!r}")


def keep_policies(settings):
    return settings.get("KEEP", "").split()


def find_repository(settings=None):
    """Locate the repository root (the directory holding .duplicacy).

    REPOSITORY from the settings wins; otherwise walk up from cwd,
    like git finds .git.
    """
    configured = (settings or {}).get("REPOSITORY", "")
    if configured:
        root = Path(configured).expanduser()
        if not (root / PREFERENCES_DIR).is_dir():
            raise ConfigurationError(f"REPOSITORY {root} has no {PREFERENCES_DIR} directory")
        return root.resolve()

    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / PREFERENCES_DIR).is_dir():
            return parent
    raise ConfigurationError(
        f"No {PREFERENCES_DIR} directory found from {current} upwards. "
        "Set REPOSITORY in the settings file: dupctl settings REPOSITORY /path"
    )
