"""Terminal client for the Smart Apply Bot"""

from smart_apply.cli.client import SmartApplyCLI
from smart_apply.cli.ui import TerminalUI

__all__ = ["SmartApplyCLI", "TerminalUI"]
