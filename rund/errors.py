from __future__ import annotations


class RundError(RuntimeError):
    """Base class for failures surfaced to the user with a nonzero exit."""

    exit_code = 1


class ConfigError(RundError):
    exit_code = 2


class ClipboardError(RundError):
    exit_code = 3


class LaunchError(RundError):
    exit_code = 4
