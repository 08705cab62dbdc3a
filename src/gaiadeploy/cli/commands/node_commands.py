"""
Node installation commands.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...core.config_loader import load_config_with_pydantic
from ...core.exceptions import ProvisionError
from ...core.provisioner import Provisioner, parse_instance_count
from ..utils import display_instances, setup_logging

app = typer.Typer(name="node", help="GaiaNet node commands")
console = Console()

INSTANCE_PROMPT = "How many GaiaNet instances do you want to install? (1-4)"
RULE = "=" * 59


def _announce(index: int):
    console.print(RULE)
    console.print(f"[green]Setting up GaiaNet instance {index}...[/green]")


@app.command()
def install(
    instances: Optional[str] = typer.Option(
        None, "--instances", "-n", help="Number of instances (1-4), prompted if omitted"
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to YAML configuration file"
    ),
    home: Optional[str] = typer.Option(
        None, "--home", help="Directory the gaianet<i> instance folders are created in"
    ),
    skip_deps: bool = typer.Option(
        False, "--skip-deps", help="Do not install system packages"
    ),
    no_cuda: bool = typer.Option(
        False, "--no-cuda", help="Never install the CUDA toolkit"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help="Also write logs to this file"
    ),
):
    """Install, configure and start 1-4 GaiaNet node instances."""
    setup_logging(verbose, log_file)
    logger = logging.getLogger(__name__)

    try:
        overrides = {
            "home_dir": home,
            "system": {"install_dependencies": False if skip_deps else None},
            "cuda": {"enabled": False if no_cuda else None},
        }
        loaded_config = load_config_with_pydantic(config, overrides)
        if loaded_config.logging.verbose or loaded_config.logging.log_file:
            setup_logging(
                verbose or loaded_config.logging.verbose,
                log_file or loaded_config.logging.log_file,
            )

        if instances is None and loaded_config.instances is not None:
            instances = str(loaded_config.instances)
        if instances is None:
            instances = typer.prompt(INSTANCE_PROMPT, default="", show_default=False)
        count = parse_instance_count(instances)

        provisioner = Provisioner(loaded_config)
        results = provisioner.run(count, on_instance_start=_announce)

    except ProvisionError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        logger.debug(f"Provisioning failed: {e.details}")
        raise typer.Exit(1)

    console.print(RULE)
    display_instances(results)
    console.print(
        "[green]🎉 Congratulations! All GaiaNet node installations have been "
        "set up successfully![/green]"
    )
    console.print(RULE)
