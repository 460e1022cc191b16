"""
Document and artifact loading.

Declaration files and deployment manifests are plain YAML/JSON documents.
Module command artifacts are Python packages (or single files) imported
from disk under an isolated module name.
"""

from typing import Any, Callable
from pathlib import Path
import importlib.util
import json
import logging
import re
import sys

import yaml

from .errors import ArtifactLoadError, ErrorSpan, ManifestValidationError

logger = logging.getLogger("manifold.loader")

ArtifactLoader = Callable[[Path, str], Any]

_UNSAFE_CHARS = re.compile(r"[^0-9a-zA-Z_]")


def read_document(path: Path) -> Any:
    """
    Parse a YAML or JSON document.

    Args:
        path: Path to ``.yml``, ``.yaml`` or ``.json`` file

    Returns:
        Parsed tree (usually a dict)
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestValidationError(
            manifest_name=path.name,
            validation_errors=[f"File not found: {path}"],
            span=ErrorSpan(file=str(path)),
        )

    text = path.read_text(encoding="utf-8")

    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ManifestValidationError(
            manifest_name=path.name,
            validation_errors=[f"Cannot parse document: {e}"],
            span=ErrorSpan(file=str(path)),
        ) from e


def _artifact_module_name(module_root: Path, command: str) -> str:
    return "_manifold_artifact_" + _UNSAFE_CHARS.sub(
        "_", f"{module_root.name}_{command}"
    )


def import_artifact(module_root: Path, command: str) -> Any:
    """
    Import the entry artifact of one module command.

    Looks for ``<module_root>/<command>/__init__.py`` first, then
    ``<module_root>/<command>.py``.

    Args:
        module_root: Module directory
        command: Lowercased command name

    Returns:
        Imported Python module
    """
    module_root = Path(module_root)
    package_dir = module_root / command
    init_file = package_dir / "__init__.py"
    single_file = module_root / f"{command}.py"

    if init_file.is_file():
        location = init_file
        search = [str(package_dir)]
    elif single_file.is_file():
        location = single_file
        search = None
    else:
        raise ArtifactLoadError(str(package_dir), "no __init__.py or .py entry found")

    module_name = _artifact_module_name(module_root, command)
    spec = importlib.util.spec_from_file_location(
        module_name, location, submodule_search_locations=search
    )
    if spec is None or spec.loader is None:
        raise ArtifactLoadError(str(location), "no import spec")

    module = importlib.util.module_from_spec(spec)

    # Registered before exec so relative imports inside the package resolve
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise ArtifactLoadError(str(location), f"{type(e).__name__}: {e}") from e

    logger.debug("Imported artifact %s from %s", module_name, location)
    return module
