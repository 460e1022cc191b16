"""
Manifest-wide command aggregation.
"""

from typing import Dict, Set

from .types import DeploymentConfig


def aggregate(config: DeploymentConfig) -> Dict[str, Set[str]]:
    """
    Union of commands loaded per module across every deployment entry.

    A bare module name contributes the entry's ``of``; a ``{name, of}``
    reference contributes its own ``of``. Commands are compared as written,
    without case normalization.

    Args:
        config: Resolved deployment manifest

    Returns:
        Mapping of module name to the set of commands some entry loads
    """
    loaded: Dict[str, Set[str]] = {}

    for entry in config.deployment:
        for module in entry.modules:
            commands = loaded.setdefault(entry.module_name(module), set())
            commands.update(entry.commands_for(module))

    return loaded
