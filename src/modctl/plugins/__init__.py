"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) plus ``.modctl/plugins/*.py``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from modctl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
