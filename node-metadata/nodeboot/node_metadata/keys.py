"""
Output key naming schemes for fetched metadata.
"""

from typing import Dict, NamedTuple


class MetadataKeys(NamedTuple):
    instance_id: str
    lifecycle: str


# Node labels applied during bootstrap
PRODUCTION_KEYS = MetadataKeys(
    instance_id="alpha.eksctl.io/instance-id",
    lifecycle="node-lifecycle",
)

PLAIN_KEYS = MetadataKeys(
    instance_id="instance-id",
    lifecycle="instance-lifecycle",
)

KEY_SCHEMES: Dict[str, MetadataKeys] = {
    "production": PRODUCTION_KEYS,
    "plain": PLAIN_KEYS,
}


def get_key_scheme(name: str) -> MetadataKeys:
    """
    Look up a key naming scheme by name.

    Raises:
        ValueError: If the scheme is not known.
    """
    try:
        return KEY_SCHEMES[name]
    except KeyError:
        raise ValueError(
            f"Unknown key scheme '{name}', expected one of: {', '.join(KEY_SCHEMES)}"
        )
