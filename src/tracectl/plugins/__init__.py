"""Extension layer — plugin system via pluggy.

Discovery: entry points (pip-installed) and ``.tracectl/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from tracectl.plugins.hookspecs import hookimpl
from tracectl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
