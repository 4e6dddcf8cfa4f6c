"""
Aura Helper CLI Manager.

Runs Aura Helper CLI operations from Python and returns typed results.
"""

__version__ = "1.0.0"

from .core.manager import CLIManager  # noqa: E402
from .models.config import ManagerConfig  # noqa: E402

__all__ = ["CLIManager", "ManagerConfig", "__version__"]
