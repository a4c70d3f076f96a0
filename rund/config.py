from __future__ import annotations

import dataclasses as dc
import enum
import logging
import os
import pathlib
import sys
import typing as t
from dataclasses import field

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

PathLikeStr = str | os.PathLike[str]
ConfigDict = dict[str, t.Any]

CONFIG_ENV = "RUND_CONFIG"
GLOBAL_SECTION = "terminal"
_GEOMETRY_KEYS = ("width", "height", "x", "y", "auto_position")
_TRUE_STRINGS = ("true", "1", "yes")

DEFAULT_EDITOR_APPS = ("vim", "nvim", "nano", "emacs", "micro", "helix", "hx", "code", "subl")
DEFAULT_VIEWER_APPS = ("bat", "less", "more", "cat")
DEFAULT_ALWAYS_PAUSE_APPS = ("python", "python3", "node", "ruby", "perl", "php")


def current_platform() -> str:
    """Return 'windows', 'macos' or 'linux'."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


class PauseBehavior(enum.Enum):
    NEVER = "never"
    ALWAYS = "always"
    AUTO = "auto"

    @classmethod
    def parse(cls, raw: str) -> "PauseBehavior":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            LOGGER.warning("Unknown pause_behavior %r, using 'never'", raw)
            return cls.NEVER


class TerminalKind(enum.Enum):
    AUTO = "auto"
    CMD = "cmd"
    WINDOWS_TERMINAL = "wt"
    TERMINAL_APP = "terminal"
    ALACRITTY = "alacritty"
    KITTY = "kitty"
    GNOME_TERMINAL = "gnome-terminal"
    KONSOLE = "konsole"
    XTERM = "xterm"

    @classmethod
    def parse(cls, raw: str) -> "TerminalKind":
        value = raw.strip().lower()
        value = _TERMINAL_ALIASES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            LOGGER.warning("Unknown terminal %r, detecting automatically", raw)
            return cls.AUTO


_TERMINAL_ALIASES = {
    "wt.exe": "wt",
    "windows_terminal": "wt",
    "windowsterminal": "wt",
    "cmd.exe": "cmd",
    "terminal.app": "terminal",
    "macos": "terminal",
}


@dc.dataclass(frozen=True)
class Geometry:
    width: int = 800
    height: int = 600
    x: int = 100
    y: int = 100
    auto_position: bool = False


@dc.dataclass(frozen=True)
class Config:
    geometry: Geometry = field(default_factory=Geometry)
    terminal: TerminalKind = TerminalKind.AUTO
    pause_behavior: PauseBehavior = PauseBehavior.AUTO
    backup_dir: pathlib.Path = pathlib.Path("backups")
    editor_apps: tuple[str, ...] = DEFAULT_EDITOR_APPS
    viewer_apps: tuple[str, ...] = DEFAULT_VIEWER_APPS
    always_pause_apps: tuple[str, ...] = DEFAULT_ALWAYS_PAUSE_APPS
    default_app: str | None = None
    pager: str | None = None
    app_geometries: t.Mapping[str, Geometry] = field(default_factory=dict)
    path: pathlib.Path | None = None

    def geometry_for(self, app: str) -> Geometry:
        """Per-app geometry keyed by the command's first word, else the [terminal] geometry."""
        words = app.lower().split()
        first = words[0] if words else ""
        return self.app_geometries.get(first, self.geometry)


def default_viewer_apps(platform: str | None = None) -> tuple[str, ...]:
    if (platform or current_platform()) == "windows":
        return DEFAULT_VIEWER_APPS + ("type",)
    return DEFAULT_VIEWER_APPS


def platform_config_dir(platform: str | None = None) -> pathlib.Path:
    """
    Determine the per-user config directory by OS:
      - Windows: %APPDATA%/rund
      - macOS:   ~/Library/Application Support/rund
      - Linux:   $XDG_CONFIG_HOME/rund or ~/.config/rund
    """
    platform = platform or current_platform()
    if platform == "windows":
        appdata = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return pathlib.Path(appdata) / "rund"
    if platform == "macos":
        return pathlib.Path.home() / "Library" / "Application Support" / "rund"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return pathlib.Path(xdg) / "rund"
    return pathlib.Path.home() / ".config" / "rund"


def resolve_config_path(path: PathLikeStr | None = None) -> pathlib.Path:
    """
    Resolve the config file path (explicit path -> RUND_CONFIG env -> platform default).
    """
    if path:
        return pathlib.Path(path)
    env = os.environ.get(CONFIG_ENV)
    if env:
        return pathlib.Path(env)
    return platform_config_dir() / "config.toml"


_COMMON_TEMPLATE = """\
# rund configuration file

[terminal]
width = 800
height = 600

# Position settings
# If auto_position = true, let the OS/terminal decide the position
# If auto_position = false, use x and y below
auto_position = false
x = 100
y = 100

{terminal_block}
# Pause behavior after command execution:
# "never"  - No pause, window closes immediately
# "always" - Always pause with a prompt
# "auto"   - Smart detection based on app lists below
pause_behavior = "auto"

# App classifications for smart pause behavior
# Editors: NEVER pause (they're interactive)
editor_apps = "vim, nvim, nano, emacs, micro, helix, hx, code, subl"

# Viewers: Pause ONLY for small files (<30 lines), page larger ones
viewer_apps = "{viewers}"

# Always pause: For scripts/interpreters that produce output
always_pause_apps = "python, python3, node, ruby, perl, php"

# Pager used for large files opened with a viewer (default: {pager})
# pager = "{pager}"

# Directory for backup files, relative to this file's directory
{backup_hint}backup_dir = "backups"

# Uncomment to set default app
# default_app = "nvim"

# Per-app geometry configuration (optional)
# These settings override the default [terminal] geometry

#[bat]
#width = 1200
#height = 800
#x = 200
#y = 150
#auto_position = false

#[nvim]
#width = 1000
#height = 700
#auto_position = true
"""

_WINDOWS_TERMINAL_BLOCK = """\
# Terminal to use: "cmd" or "wt" (Windows Terminal)
terminal = "cmd"
"""

_WINDOWS_BACKUP_HINT = r"""# Windows paths need single quotes, which TOML reads without escapes:
# backup_dir = 'D:\backups'
"""

_POSIX_TERMINAL_BLOCK = """\
# Terminal to use: "auto", "terminal" (macOS), "alacritty", "kitty",
# "gnome-terminal", "konsole" or "xterm"
terminal = "auto"
"""


def default_config_text(platform: str | None = None) -> str:
    platform = platform or current_platform()
    if platform == "windows":
        block, pager, hint = _WINDOWS_TERMINAL_BLOCK, "more", _WINDOWS_BACKUP_HINT
    else:
        block, pager, hint = _POSIX_TERMINAL_BLOCK, "less", ""
    viewers = ", ".join(default_viewer_apps(platform))
    return _COMMON_TEMPLATE.format(terminal_block=block, viewers=viewers, pager=pager, backup_hint=hint)


def ensure_config_file(path: PathLikeStr) -> pathlib.Path:
    """Write the commented default config if `path` does not exist yet."""
    target = pathlib.Path(path)
    if target.exists():
        return target
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(default_config_text(), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write default config {target}: {e}") from e
    LOGGER.info("Wrote default config to %s", target)
    return target


def load_config(path: PathLikeStr | None = None) -> Config:
    """
    Load configuration in TOML. Search order if path is None:
      1) ENV RUND_CONFIG
      2) platform default (see platform_config_dir)
    A commented default file is created on first use.
    """
    candidate = ensure_config_file(resolve_config_path(path))
    try:
        with candidate.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to load config {candidate}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config {candidate}: {e}") from e
    cfg = parse_config(data, base_dir=candidate.parent)
    return dc.replace(cfg, path=candidate)


# ---------- value coercion ----------


def _as_int(key: str, value: t.Any, default: int) -> int:
    if isinstance(value, bool):
        LOGGER.warning("Ignoring non-integer %s = %r", key, value)
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s = %r", key, value)
        return default


def _as_bool(value: t.Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


def _as_list(value: t.Any) -> tuple[str, ...]:
    items = value if isinstance(value, list) else str(value).split(",")
    return tuple(s for s in (str(i).strip() for i in items) if s)


def _as_str(value: t.Any) -> str | None:
    text = str(value).strip()
    return text or None


def _has_control_chars(text: str) -> bool:
    return any(ord(c) < 32 or ord(c) == 127 for c in text)


def _parse_geometry(section: t.Mapping[str, t.Any], base: Geometry) -> Geometry:
    values: dict[str, t.Any] = {}
    for key in _GEOMETRY_KEYS:
        if key not in section:
            continue
        if key == "auto_position":
            values[key] = _as_bool(section[key])
        else:
            values[key] = _as_int(key, section[key], getattr(base, key))
    return dc.replace(base, **values)


def parse_config(data: ConfigDict, base_dir: PathLikeStr | None = None) -> Config:
    """
    Build a Config from a parsed TOML mapping.

    Keys at the top level and in [terminal] are global. Any other table is a
    per-app geometry override that inherits unset keys from the global geometry.
    """
    base_dir = pathlib.Path(base_dir) if base_dir is not None else pathlib.Path.cwd()

    settings: ConfigDict = {}
    app_sections: dict[str, t.Mapping[str, t.Any]] = {}
    for key, value in data.items():
        if key == GLOBAL_SECTION and isinstance(value, dict):
            settings.update(value)
        elif isinstance(value, dict):
            app_sections[key.strip().lower()] = value
        else:
            settings[key] = value

    geometry = _parse_geometry(settings, Geometry())

    backup_dir = base_dir / "backups"
    if "backup_dir" in settings:
        raw = _as_str(settings["backup_dir"])
        if raw and _has_control_chars(raw):
            LOGGER.warning(
                "Ignoring backup_dir %r: it contains control characters. "
                "Use single quotes for Windows paths, e.g. backup_dir = 'D:\\backups'",
                raw,
            )
        elif raw:
            backup_dir = base_dir / os.path.expanduser(raw)

    kwargs: dict[str, t.Any] = {
        "geometry": geometry,
        "backup_dir": backup_dir,
        "viewer_apps": default_viewer_apps(),
        "app_geometries": {
            name: _parse_geometry(section, geometry) for name, section in app_sections.items()
        },
    }
    if "terminal" in settings:
        kwargs["terminal"] = TerminalKind.parse(str(settings["terminal"]))
    if "pause_behavior" in settings:
        kwargs["pause_behavior"] = PauseBehavior.parse(str(settings["pause_behavior"]))
    for key in ("editor_apps", "viewer_apps", "always_pause_apps"):
        if key in settings:
            kwargs[key] = _as_list(settings[key])
    for key in ("default_app", "pager"):
        if key in settings:
            kwargs[key] = _as_str(settings[key])

    return Config(**kwargs)
