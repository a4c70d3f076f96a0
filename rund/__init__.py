"""
rund
Run CLI apps in a detached, positioned terminal popup.
"""

from .errors import RundError, ConfigError, ClipboardError, LaunchError

__all__ = ["RundError", "ConfigError", "ClipboardError", "LaunchError"]
__version__ = "0.3.0"
