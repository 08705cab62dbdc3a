"""
Utility commands.
"""

import typer
from rich.console import Console
from rich.markup import escape

from ...core.config_loader import create_pydantic_default_config

app = typer.Typer(name="utils", help="Utility commands")
console = Console()


@app.command("create-config")
def create_config(
    output: str = typer.Argument(..., help="Where to write the YAML configuration"),
):
    """Write the default provisioning configuration to a YAML file."""
    try:
        path = create_pydantic_default_config(output)
    except OSError as e:
        console.print(f"[red]Could not write {output}: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Default configuration written to {path}[/green]")
