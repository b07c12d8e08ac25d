import json
import re
from pt.common.logger import log
from pt.common.setup import PATHS
from pt.core.timer import Mode


#region === Helpers and Paths ===

SETTINGS_PATH = PATHS.data / "settings.json"

# 24-hour "HH:MM", single-digit hours allowed
TIME_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")

# Default values for the settings file. Times are "HH:MM" strings or None.
_SETTINGS_DEFAULTS = {
    "mode": "CountUp",
    "duration_minutes": 0,
    "start_time": None,
    "end_time": None,
}
# Accepted types per key, used to validate whatever we read back from disk.
_SETTINGS_TYPES = {
    "mode": (str,),
    "duration_minutes": (int,),
    "start_time": (str, type(None)),
    "end_time": (str, type(None)),
}

def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

def is_time_string(value):
    return isinstance(value, str) and TIME_RE.match(value.strip()) is not None

# Maps a mode name like "countdown" or "CountDown" to a Mode, falling back to CountUp on anything unknown.
def resolve_mode(name):
    for mode in Mode:
        if name.lower() in (mode.name.lower(), mode.value):
            return mode
    log.warning(f"Unknown display mode '{name}', falling back to CountUp")
    return Mode.CountUp

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings.json, filling in defaults for anything missing or of the wrong type.
def load_settings():
    try:
        if not SETTINGS_PATH.exists():
            log.info("No existing settings.json found, loading default settings.")
            return build_default_settings()

        with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise TypeError(f"Expected a JSON object in settings.json, got {type(settings).__name__}")

        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            # bool is an int subclass, but true/false is never a valid duration
            value = settings.get(key)
            if key not in settings or not isinstance(value, _SETTINGS_TYPES[key]) or isinstance(value, bool):
                defaulted_values.add(key)
                settings[key] = default
        if settings["duration_minutes"] < 0:
            defaulted_values.add("duration_minutes")
            settings["duration_minutes"] = 0
        # A time the timer cannot parse would only blow up at construction
        for key in ("start_time", "end_time"):
            if settings[key] is not None and not is_time_string(settings[key]):
                defaulted_values.add(key)
                settings[key] = None

        if defaulted_values:
            log.warning(f"Loaded settings from '{SETTINGS_PATH}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{SETTINGS_PATH}'.")
        return settings
    # Fall back to defaults in case of error, but warn in log
    except (json.JSONDecodeError, UnicodeDecodeError, OSError, TypeError):
        log.warning("Ran into an error while trying to load settings.json, falling back to default settings.",exc_info=True)
        return build_default_settings()

# Write the given settings to disk under PATHS.data / settings.json
def save_settings(settings):
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{SETTINGS_PATH}'")

#endregion === Saving and Loading Settings ===
