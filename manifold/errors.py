"""
Manifold error types with rich diagnostics.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class ErrorSpan:
    """File location for error context."""

    file: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:
        parts = [self.file]
        if self.line is not None:
            parts.append(f":{self.line}")
            if self.column is not None:
                parts.append(f":{self.column}")
        return "".join(parts)


class ManifoldError(Exception):
    """Base error for all Manifold errors."""

    def __init__(
        self,
        message: str,
        *,
        span: Optional[ErrorSpan] = None,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.span = span
        self.suggestion = suggestion
        self.details = details or {}

    def format_error(self) -> str:
        """Format error with rich diagnostics."""
        lines = [f"{self.__class__.__name__}: {self.message}"]

        if self.span:
            lines.append(f"   at {self.span}")

        if self.details:
            lines.append("\n   Details:")
            for key, value in self.details.items():
                lines.append(f"   - {key}: {value}")

        if self.suggestion:
            lines.append(f"\n   Suggestion: {self.suggestion}")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format_error()


class ConflictError(ManifoldError):
    """
    Two module directories declare the same logical name.

    Example:
        modules/account/config.yml   name: Account
        modules/legacy/config.yml    name: Account  <- CONFLICT
    """

    def __init__(self, name: str, paths: List[str]):
        self.name = name
        self.paths = paths

        message = (
            f"Module {name} conflict, already found at {paths[0]} "
            f"(redeclared at {paths[-1]})"
        )

        super().__init__(
            message,
            span=ErrorSpan(file=paths[-1]),
            suggestion=(
                "Each module must declare a unique name. Rename one of the "
                "modules or remove the duplicate directory."
            ),
            details={"name": name, "paths": paths},
        )


class MissingTemplateError(ManifoldError):
    """A deployment entry references a template that is not defined."""

    def __init__(
        self,
        template: str,
        deployment: Optional[str] = None,
        *,
        has_templates: bool = True,
        span: Optional[ErrorSpan] = None,
    ):
        self.template = template
        self.deployment = deployment

        if has_templates:
            message = f"Expected template {template} to be defined on the templates."
        else:
            message = (
                f"No template defined, but found a referencing template {template}"
            )

        super().__init__(
            message,
            span=span,
            suggestion=f"Add '{template}' under the manifest's 'templates' table.",
            details={"template": template, "deployment": deployment},
        )


class DependencyError(ManifoldError):
    """
    A module depends on a command that no deployment loads.

    Example:
        Member depends on {name: Account, of: Query}
        but no deployment loads Account with Query  <- UNSATISFIED
    """

    def __init__(self, module: str, dependency: str, command: str):
        self.module = module
        self.dependency = dependency
        self.command = command

        message = (
            f"Module {module} expected module {dependency} "
            f"command {command} to be loaded."
        )

        super().__init__(
            message,
            suggestion=(
                f"Load '{dependency}' with '{command}' in at least one "
                f"deployment entry of the manifest."
            ),
            details={
                "module": module,
                "dependency": dependency,
                "command": command,
            },
        )


class NotFoundError(ManifoldError):
    """A named deployment entry or module could not be found."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"No {kind} named '{name}' found.",
            details={"kind": kind, "name": name},
        )


class UnregisteredRunnerError(ManifoldError):
    """No runner was registered for a deployment entry's type."""

    def __init__(self, runner_type: str, deployment: str):
        self.runner_type = runner_type
        self.deployment = deployment
        super().__init__(
            f"No runner registered for type '{runner_type}' "
            f"(deployment '{deployment}').",
            suggestion="Register one with add_runner() before calling run().",
            details={"type": runner_type, "deployment": deployment},
        )


class ManifestValidationError(ManifoldError):
    """
    A declaration or deployment manifest is structurally invalid.

    Missing required fields, wrong types, etc.
    """

    def __init__(
        self,
        manifest_name: str,
        validation_errors: List[str],
        *,
        span: Optional[ErrorSpan] = None,
    ):
        self.manifest_name = manifest_name
        self.validation_errors = validation_errors

        error_list = "\n".join(f"   - {e}" for e in validation_errors)

        super().__init__(
            f"Manifest '{manifest_name}' validation failed:\n{error_list}",
            span=span,
            details={
                "manifest": manifest_name,
                "error_count": len(validation_errors),
            },
        )


class ArtifactLoadError(ManifoldError):
    """A module command artifact could not be imported."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot load artifact at {path}: {reason}",
            span=ErrorSpan(file=path),
            details={"path": path, "reason": reason},
        )


class ConsumedError(ManifoldError):
    """A Manifold instance was asked to run a second time."""

    def __init__(self):
        super().__init__(
            "This Manifold instance has already run.",
            suggestion="Construct a new Manifold for every deployment run.",
        )


@dataclass
class ValidationReport:
    """Every failure of a full dependency check, in discovery order."""

    errors: List[ManifoldError] = field(default_factory=list)

    def add_error(self, error: ManifoldError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def format_report(self) -> str:
        if not self.errors:
            return "No errors"

        lines = [f"{len(self.errors)} error(s):"]
        for i, error in enumerate(self.errors, 1):
            lines.append(f"\n{i}. {error.format_error()}")
        return "\n".join(lines)
