"""
CLI command modules for gaiadeploy.
"""

from . import node_commands, system_commands, utility_commands

__all__ = ["node_commands", "system_commands", "utility_commands"]
