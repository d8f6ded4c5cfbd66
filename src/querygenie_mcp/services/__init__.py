"""Services package for querygenie-mcp.

Main Components:
- ConfigService: Environment-driven configuration
- CoreServices: Process-wide vault and core components
"""

from .config_service import ConfigService
from .core import CoreServices

__all__ = [
    "ConfigService",
    "CoreServices",
]
