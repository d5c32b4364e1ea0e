"""
Rendering of instance metadata for the node bootstrap, and writing it to disk.
"""

import json
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Union

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"
OUTPUT_FORMATS = ("labels", "json", "env")

_ENV_UNSAFE = re.compile(r"[^A-Za-z0-9]")


def format_node_labels(metadata: Dict[str, str]) -> str:
    """
    Render metadata as a kubelet --node-labels value: "k1=v1,k2=v2", sorted by key.
    """
    return ",".join(f"{key}={metadata[key]}" for key in sorted(metadata))


def format_metadata(metadata: Dict[str, str], fmt: str = "labels") -> str:
    """
    Render metadata in one of OUTPUT_FORMATS.

    Raises:
        ValueError: If fmt is not a known format.
    """
    if fmt == "labels":
        return format_node_labels(metadata)
    if fmt == "json":
        return json.dumps(metadata, indent=2, sort_keys=True)
    if fmt == "env":
        return "\n".join(
            f"{_ENV_UNSAFE.sub('_', key).upper()}={metadata[key]}"
            for key in sorted(metadata)
        )
    raise ValueError(f"Unknown output format '{fmt}'")


def _replace_file(path: Path, content: str) -> None:
    """Write content to a temp file beside path and move it into place."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.replace(tmp_name, str(path))
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def write_metadata_file(
    path: Union[str, Path], content: str, overwrite: bool = True
) -> bool:
    """
    Write rendered metadata to a file, keeping a backup of a differing previous file.

    The previous file is only replaced once the new content has been fully
    written, so a failed write leaves it untouched.

    Args:
        path: Destination file.
        content (str): Rendered metadata, written with a trailing newline.
        overwrite (bool): If False, an existing file with different content is left alone.

    Returns:
        bool: False if the backup or the write failed, True otherwise.
    """
    path = Path(path)
    if path.exists():
        if path.read_text().strip() == content.strip():
            logger.debug("%s already up to date", path)
            return True
        if not overwrite:
            logger.info("Leaving existing %s in place", path)
            return True
        backup = path.with_name(path.name + BACKUP_SUFFIX)
        try:
            shutil.copy2(str(path), str(backup))
            logger.debug("Backed up %s to %s", path, backup)
        except OSError as e:
            logger.error("Cannot backup metadata file '%s': %s", path, e)
            return False

    try:
        _replace_file(path, content + "\n")
    except OSError as e:
        logger.error("Cannot write metadata file '%s': %s", path, e)
        return False

    logger.info("Wrote instance metadata to %s", path)
    return True
