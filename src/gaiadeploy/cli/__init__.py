"""
Command Line Interface for gaiadeploy using Typer.

This module provides a modular CLI structure with commands organized by functionality.
"""

import importlib.metadata

import typer

from ..core.config import ROOT
from .commands import node_commands, system_commands, utility_commands

# Create Typer app
app = typer.Typer(
    name="gaiadeploy",
    help="gaiadeploy - GaiaNet multi-instance provisioning",
    add_completion=True,
)

# Get version from package metadata
try:
    __version__ = importlib.metadata.version("gaiadeploy")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.1"


def raise_exit():
    """Raise typer exit."""
    raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=lambda value: (
            print(f"gaiadeploy version: {__version__}") or raise_exit()
        )
        if value
        else None,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """gaiadeploy - GaiaNet multi-instance provisioning"""
    pass


# Register command groups
app.add_typer(node_commands.app, name="node", help="GaiaNet node commands")
app.add_typer(system_commands.app, name="system", help="Host environment commands")
app.add_typer(utility_commands.app, name="utils", help="Utility commands")

__all__ = ["ROOT", "app"]

if __name__ == "__main__":
    app()
