# node-metadata/nodeboot/node_metadata/main.py
"""
node-metadata - print or write the identity labels of the running instance.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from .imds import DEFAULT_LIFECYCLE, try_fetch_instance_metadata
from .keys import KEY_SCHEMES, MetadataKeys, get_key_scheme
from .labels import OUTPUT_FORMATS, format_metadata, write_metadata_file
from .log_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch instance ID and lifecycle from the EC2 instance metadata service"
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="labels",
        help="Output format (default: labels)",
    )
    parser.add_argument(
        "--key-scheme",
        choices=sorted(KEY_SCHEMES),
        default="production",
        help="Naming scheme for the output keys (default: production)",
    )
    parser.add_argument(
        "--output", help="Write to this file instead of stdout", default=None
    )
    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Do not replace an existing output file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(args)


def _metadata_from_env(keys: MetadataKeys) -> Optional[Dict[str, str]]:
    """Debug override: build metadata from DEBUG_NM_* variables instead of IMDS."""
    instance_id = os.environ.get("DEBUG_NM_INSTANCE_ID")
    if not instance_id:
        return None
    lifecycle = os.environ.get("DEBUG_NM_LIFECYCLE") or DEFAULT_LIFECYCLE
    logger.warning(
        "Using metadata overrides from environment: %s/%s", instance_id, lifecycle
    )
    return {keys.instance_id: instance_id, keys.lifecycle: lifecycle}


def _get_metadata(keys: MetadataKeys) -> Optional[Dict[str, str]]:
    metadata = _metadata_from_env(keys)
    if metadata is not None:
        return metadata

    result = try_fetch_instance_metadata(keys)
    if not result.ok:
        logger.error("Unable to read instance metadata: %s", result.error)
        return None
    return result.metadata


def main(args: Optional[List[str]] = None) -> int:
    parsed = parse_args(args)
    setup_logging(parsed.debug)

    try:
        keys = get_key_scheme(parsed.key_scheme)
        metadata = _get_metadata(keys)
        if metadata is None:
            return 1
        logger.debug("Instance metadata: %s", metadata)

        content = format_metadata(metadata, parsed.format)
        if parsed.output:
            if not write_metadata_file(
                parsed.output, content, overwrite=not parsed.no_overwrite
            ):
                return 1
        else:
            print(content)
    except Exception as e:
        logger.error("node-metadata failed: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
