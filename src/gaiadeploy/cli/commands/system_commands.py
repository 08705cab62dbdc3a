"""
Host level commands: environment detection, system packages, CUDA.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...core.config_loader import load_config_with_pydantic
from ...core.exceptions import ProvisionError
from ...core.provisioner import Provisioner
from ..utils import display_environment, setup_logging

app = typer.Typer(name="system", help="Host environment commands")
console = Console()


def _load(config: Optional[str], no_cuda: bool = False) -> Provisioner:
    overrides = {"cuda": {"enabled": False if no_cuda else None}}
    return Provisioner(load_config_with_pydantic(config, overrides))


@app.command()
def detect(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to YAML configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Show WSL, GPU, CUDA and host class detection results."""
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        report = _load(config).detect()
    except ProvisionError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        logger.debug(f"Detection failed: {e.details}")
        raise typer.Exit(1)

    display_environment(report)


@app.command()
def deps(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to YAML configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Install the system packages the node needs."""
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        _load(config).install_dependencies()
    except ProvisionError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        logger.debug(f"Dependency installation failed: {e.details}")
        raise typer.Exit(1)

    console.print("[green]✅ System dependencies installed.[/green]")


@app.command()
def cuda(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to YAML configuration file"
    ),
    no_install: bool = typer.Option(
        False, "--no-install", help="Only activate an already installed toolkit"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Install (if needed) and activate the CUDA toolkit when a GPU is present."""
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        provisioner = _load(config, no_cuda=no_install)
        report = provisioner.detect()
        status = provisioner.cuda_installer(report).ensure(report.has_gpu)
    except ProvisionError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        logger.debug(f"CUDA setup failed: {e.details}")
        raise typer.Exit(1)

    display_environment(report, cuda_status=status)
