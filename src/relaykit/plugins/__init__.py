"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors (configuration
errors such as duplicate handler registrations excepted).
"""

from relaykit.plugins.manager import PluginManager

__all__ = ["PluginManager"]
