"""
Module registry: discovers module declarations under a module root.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple
from pathlib import Path
import logging

from .errors import ConflictError, ErrorSpan, ManifestValidationError, NotFoundError
from .loader import read_document
from .types import ModuleDeclaration, is_command_field

logger = logging.getLogger("manifold.registry")

DEFAULT_DECLARATION_FILE = "config.yml"


class ModuleRegistry:
    """
    Index of module declarations and module directories by logical name.

    The logical name comes from the declaration file, never from the
    directory name.
    """

    def __init__(self, declaration_file: str = DEFAULT_DECLARATION_FILE):
        self.declaration_file = declaration_file
        self.declarations: Dict[str, ModuleDeclaration] = {}
        self.paths: Dict[str, Path] = {}

    def scan(self, root) -> Dict[str, Tuple[ModuleDeclaration, Path]]:
        """
        Scan immediate subdirectories of ``root`` for module declarations.

        Args:
            root: Module root directory

        Returns:
            Mapping of module name to (declaration, module directory)

        Raises:
            ConflictError: If two directories declare the same name
            ManifestValidationError: If a declaration is malformed
        """
        root = Path(root)
        if not root.is_dir():
            raise ManifestValidationError(
                manifest_name=root.name or str(root),
                validation_errors=[f"Module root is not a directory: {root}"],
                span=ErrorSpan(file=str(root)),
            )

        for module_dir in sorted(root.iterdir()):
            if not module_dir.is_dir() or module_dir.name.startswith((".", "_")):
                continue

            declaration_path = module_dir / self.declaration_file
            if not declaration_path.is_file():
                logger.debug("Skipping %s: no %s", module_dir, self.declaration_file)
                continue

            declaration = self._load_declaration(declaration_path)

            existing = self.paths.get(declaration.name)
            if existing is not None:
                raise ConflictError(
                    declaration.name, [str(existing), str(module_dir)]
                )

            self.declarations[declaration.name] = declaration
            self.paths[declaration.name] = module_dir
            logger.debug("Registered module %s at %s", declaration.name, module_dir)

        logger.info("Scanned %d module(s) under %s", len(self.declarations), root)
        return {name: (decl, self.paths[name]) for name, decl in self.declarations.items()}

    def _load_declaration(self, path: Path) -> ModuleDeclaration:
        data = read_document(path)
        errors = self._validate_declaration(data)
        if errors:
            name = data.get("name") if isinstance(data, dict) else None
            raise ManifestValidationError(
                manifest_name=name or path.parent.name,
                validation_errors=errors,
                span=ErrorSpan(file=str(path)),
            )
        return ModuleDeclaration.from_dict(data)

    def _validate_declaration(self, data: Any) -> List[str]:
        if not isinstance(data, dict):
            return ["Declaration must be a mapping"]

        errors: List[str] = []

        name = data.get("name")
        if not name or not isinstance(name, str):
            errors.append("Missing required field: name")

        version = data.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            errors.append(f"Field 'version' must be an integer, got {version!r}")

        dependencies = data.get("dependencies") or []
        if not isinstance(dependencies, list):
            errors.append("Field 'dependencies' must be a list")
            return errors

        for i, dep in enumerate(dependencies):
            if not isinstance(dep, dict):
                errors.append(f"dependencies[{i}] must be a mapping with name and of")
                continue
            if not isinstance(dep.get("name"), str) or not dep.get("name"):
                errors.append(f"dependencies[{i}] is missing 'name'")
            if not is_command_field(dep.get("of")):
                errors.append(
                    f"dependencies[{i}].of must be a command or list of commands"
                )

        return errors

    def get(self, name: str) -> Optional[ModuleDeclaration]:
        return self.declarations.get(name)

    def path_of(self, name: str) -> Path:
        """Directory of a registered module."""
        try:
            return self.paths[name]
        except KeyError:
            raise NotFoundError("module", name) from None

    def clear(self) -> None:
        self.declarations.clear()
        self.paths.clear()

    def __contains__(self, name: str) -> bool:
        return name in self.declarations

    def __len__(self) -> int:
        return len(self.declarations)

    def __iter__(self) -> Iterator[str]:
        return iter(self.declarations)

    def __repr__(self) -> str:
        return f"ModuleRegistry({len(self.declarations)} modules)"

