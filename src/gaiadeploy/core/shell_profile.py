"""
Shell startup file handling.
"""

import logging
from pathlib import Path
from typing import MutableMapping

from .exceptions import InstanceError
from .runner import prepend_path

logger = logging.getLogger(__name__)


def path_export_line(bin_dir: Path) -> str:
    return f"export PATH={bin_dir}:$PATH"


def add_to_path(
    bin_dir: Path, rc_file: Path, environ: MutableMapping[str, str]
) -> bool:
    """
    Put bin_dir on PATH for future shells and for this process.

    The export line is appended to rc_file only if it is not there yet.
    rc_file is compared as raw bytes, so it may hold text in any encoding.
    Returns True when rc_file was modified.
    """
    line = path_export_line(bin_dir).encode()
    rc_file = Path(rc_file)

    try:
        content = rc_file.read_bytes() if rc_file.exists() else b""
        changed = line not in (entry.strip() for entry in content.splitlines())
        if changed:
            rc_file.parent.mkdir(parents=True, exist_ok=True)
            with open(rc_file, "ab") as f:
                if content and not content.endswith(b"\n"):
                    f.write(b"\n")
                f.write(line + b"\n")
    except OSError as e:
        raise InstanceError(f"Failed to add {bin_dir} to PATH in {rc_file}: {e}") from e

    if changed:
        logger.info(f"Added {bin_dir} to PATH in {rc_file}")
    else:
        logger.info(f"{bin_dir} already on PATH in {rc_file}")

    prepend_path(environ, "PATH", bin_dir)
    return changed
