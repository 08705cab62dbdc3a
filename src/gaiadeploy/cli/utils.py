"""
CLI utilities and helper functions.
"""

import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..core.config import CudaStatus
from ..core.environment import EnvironmentReport
from ..core.provisioner import InstanceResult

console = Console()


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers: List[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=False),
    ]
    if isinstance(log_file, str):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


def display_environment(report: EnvironmentReport, cuda_status: Optional[CudaStatus] = None):
    """Display the detected host environment."""
    table = Table(title="Host Environment")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("WSL", "yes" if report.is_wsl else "no")
    table.add_row("NVIDIA GPU", "yes" if report.has_gpu else "no")
    table.add_row("Host class", str(report.host_class).capitalize())
    table.add_row("CUDA (nvcc)", report.cuda_major or "not found")
    if cuda_status is not None:
        table.add_row("CUDA setup", str(cuda_status))

    console.print(table)


def display_instances(results: List[InstanceResult]):
    """Display provisioned instances."""
    if not results:
        console.print("[yellow]No instances provisioned[/yellow]")
        return

    table = Table(title="GaiaNet Instances")
    table.add_column("#", style="cyan")
    table.add_column("Directory", style="green")
    table.add_column("Port", style="yellow")
    table.add_column("Build", style="blue")
    table.add_column("Config", style="magenta")

    for result in results:
        build = f"CUDA {result.cuda_major}" if result.cuda_major else "CPU"
        table.add_row(
            str(result.index),
            str(result.directory),
            result.port,
            build,
            result.config_url.rsplit("/", 1)[-1],
        )

    console.print(table)
