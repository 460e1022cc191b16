"""
Deployment manifest resolver with template expansion.
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import logging

from .errors import ErrorSpan, ManifestValidationError, MissingTemplateError
from .loader import read_document
from .types import DeploymentConfig, DeploymentEntry, is_command_field

logger = logging.getLogger("manifold.resolver")


class DeploymentResolver:
    """
    Loads a deployment manifest and expands ``template`` references.

    Expansion is a shallow merge where the entry's own fields override the
    template's. The ``template`` key is consumed by the merge, so resolving
    an already-resolved manifest is a no-op.
    """

    def load(self, manifest_path) -> DeploymentConfig:
        """
        Parse and resolve a manifest file.

        Args:
            manifest_path: Path to YAML/JSON manifest

        Returns:
            Resolved DeploymentConfig

        Raises:
            MissingTemplateError: If an entry names an undefined template
            ManifestValidationError: If the manifest is malformed
        """
        path = Path(manifest_path)
        return self.resolve(read_document(path), origin=str(path))

    def resolve(self, data: Any, origin: str = "<manifest>") -> DeploymentConfig:
        """Resolve an already-parsed manifest tree."""
        span = ErrorSpan(file=origin)
        manifest_name = data.get("name") if isinstance(data, dict) else None
        manifest_name = manifest_name or Path(origin).name

        if not isinstance(data, dict):
            raise ManifestValidationError(
                manifest_name, ["Manifest must be a mapping"], span=span
            )

        deployment = data.get("deployment")
        if not isinstance(deployment, list):
            raise ManifestValidationError(
                manifest_name, ["Field 'deployment' must be a list"], span=span
            )

        templates = data.get("templates")
        if templates is not None and not isinstance(templates, dict):
            raise ManifestValidationError(
                manifest_name, ["Field 'templates' must be a mapping"], span=span
            )

        template_errors = [
            f"templates.{key} must be a mapping"
            for key, value in (templates or {}).items()
            if value is not None and not isinstance(value, dict)
        ]
        if template_errors:
            raise ManifestValidationError(manifest_name, template_errors, span=span)

        entries: List[DeploymentEntry] = []
        errors: List[str] = []

        for i, raw in enumerate(deployment):
            if not isinstance(raw, dict):
                errors.append(f"deployment[{i}] must be a mapping")
                continue

            template_name = raw.get("template")
            if template_name is not None and not isinstance(template_name, str):
                errors.append(
                    f"{raw.get('name') or f'deployment[{i}]'}: "
                    "field 'template' must be a template name"
                )
                continue

            merged = self._expand(raw, templates, span)

            entry_errors = self._validate_entry(merged, i)
            if entry_errors:
                errors.extend(entry_errors)
                continue

            entry = DeploymentEntry.from_dict(merged)
            entry.template = template_name
            entries.append(entry)

        if errors:
            raise ManifestValidationError(manifest_name, errors, span=span)

        logger.info(
            "Resolved %d deployment entr%s from %s",
            len(entries),
            "y" if len(entries) == 1 else "ies",
            origin,
        )

        return DeploymentConfig(
            deployment=entries,
            version=data.get("version", 1),
            name=data.get("name"),
            templates=dict(templates or {}),
            origin=origin,
        )

    def _expand(
        self,
        raw: Dict[str, Any],
        templates: Optional[Dict[str, Any]],
        span: ErrorSpan,
    ) -> Dict[str, Any]:
        template = raw.get("template")
        if not template:
            return dict(raw)

        if not templates:
            raise MissingTemplateError(
                template, raw.get("name"), has_templates=False, span=span
            )
        if template not in templates:
            raise MissingTemplateError(template, raw.get("name"), span=span)

        merged = {**(templates[template] or {}), **raw}
        merged.pop("template", None)
        logger.debug("Expanded template %s into %s", template, merged.get("name"))
        return merged

    def _validate_entry(self, entry: Dict[str, Any], index: int) -> List[str]:
        errors: List[str] = []
        label = entry.get("name") or f"deployment[{index}]"

        for key in ("type", "name"):
            if not isinstance(entry.get(key), str) or not entry.get(key):
                errors.append(f"{label}: missing required field '{key}'")

        modules = entry.get("modules") or []
        if not isinstance(modules, list):
            return errors + [f"{label}: field 'modules' must be a list"]

        has_bare = any(isinstance(module, str) for module in modules)
        if has_bare and entry.get("of") is not None and not is_command_field(entry["of"]):
            errors.append(f"{label}: field 'of' must be a command or list of commands")

        for j, module in enumerate(modules):
            if isinstance(module, str):
                if entry.get("of") is None:
                    errors.append(
                        f"{label}: modules[{j}] '{module}' needs a default 'of' "
                        "on the deployment entry"
                    )
            elif isinstance(module, dict):
                if not isinstance(module.get("name"), str) or module.get("of") is None:
                    errors.append(f"{label}: modules[{j}] must have 'name' and 'of'")
                elif not is_command_field(module.get("of")):
                    errors.append(
                        f"{label}: modules[{j}].of must be a command or list of commands"
                    )
            else:
                errors.append(f"{label}: modules[{j}] must be a name or {{name, of}}")

        return errors
