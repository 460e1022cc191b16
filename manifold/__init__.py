"""
Manifold - manifest-driven module deployments.

Resolves a deployment manifest into verified module-loading instructions:
- Discovers module declarations and indexes them by logical name
- Expands deployment templates (entry fields override template fields)
- Aggregates the commands every deployment loads across the whole manifest
- Verifies declared dependencies before any runner is touched
- Feeds module artifacts to pluggable runners in manifest order
"""

__version__ = "0.1.0"

from .core import Manifold

from .types import (
    DependencySpec,
    DeploymentConfig,
    DeploymentEntry,
    ModuleDeclaration,
    ModuleReference,
    Runner,
    to_list,
)

from .errors import (
    ManifoldError,
    ConflictError,
    MissingTemplateError,
    DependencyError,
    NotFoundError,
    UnregisteredRunnerError,
    ManifestValidationError,
    ArtifactLoadError,
    ConsumedError,
    ValidationReport,
    ErrorSpan,
)

from .registry import ModuleRegistry
from .resolver import DeploymentResolver
from .aggregator import aggregate
from .verifier import DependencyVerifier
from .executor import DeploymentExecutor
from .loader import import_artifact, read_document
from .config import ManifoldSettings, ConfigError

__all__ = [
    # Core
    "Manifold",

    # Data model
    "DependencySpec",
    "DeploymentConfig",
    "DeploymentEntry",
    "ModuleDeclaration",
    "ModuleReference",
    "Runner",
    "to_list",

    # Errors
    "ManifoldError",
    "ConflictError",
    "MissingTemplateError",
    "DependencyError",
    "NotFoundError",
    "UnregisteredRunnerError",
    "ManifestValidationError",
    "ArtifactLoadError",
    "ConsumedError",
    "ValidationReport",
    "ErrorSpan",

    # Pipeline
    "ModuleRegistry",
    "DeploymentResolver",
    "aggregate",
    "DependencyVerifier",
    "DeploymentExecutor",
    "import_artifact",
    "read_document",

    # Settings
    "ManifoldSettings",
    "ConfigError",
]
