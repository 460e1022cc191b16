"""
Core Manifold data model: module declarations, deployment entries and
the runner contract.
"""

from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable
from dataclasses import dataclass, field


def to_list(value: Any) -> List[Any]:
    """Normalize a scalar-or-sequence field into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def is_command_field(value: Any) -> bool:
    """True for a non-empty command string or non-empty list of them."""
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, list):
        return bool(value) and all(isinstance(v, str) and v for v in value)
    return False


@dataclass(frozen=True)
class DependencySpec:
    """A module this module depends on, and the command(s) it must expose."""

    name: str
    of: Union[str, List[str]]

    @property
    def commands(self) -> List[str]:
        return to_list(self.of)


@dataclass(frozen=True)
class ModuleDeclaration:
    """
    Parsed module declaration file.

    Identity is the logical ``name``; the directory holding the file is
    irrelevant to lookups.
    """

    name: str
    version: int = 1
    dependencies: tuple = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleDeclaration":
        deps = tuple(
            DependencySpec(name=dep["name"], of=dep["of"])
            for dep in (data.get("dependencies") or [])
        )
        return cls(
            name=data["name"],
            version=data.get("version", 1),
            dependencies=deps,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "dependencies": [
                {"name": dep.name, "of": dep.of} for dep in self.dependencies
            ],
        }


@dataclass
class ModuleReference:
    """Module listed with its own commands, overriding the entry default."""

    name: str
    of: Union[str, List[str]]


ModuleRef = Union[str, ModuleReference]


# Keys consumed by DeploymentEntry itself; anything else lands in ``extra``.
ENTRY_FIELDS = ("type", "name", "of", "modules", "template", "description", "load")


@dataclass
class DeploymentEntry:
    """One resolved item of the manifest's ``deployment`` list."""

    type: str
    name: str
    of: Union[str, List[str], None] = None
    modules: List[ModuleRef] = field(default_factory=list)
    template: Optional[str] = None
    description: Optional[str] = None
    load: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentEntry":
        modules: List[ModuleRef] = []
        for module in data.get("modules") or []:
            if isinstance(module, str):
                modules.append(module)
            else:
                modules.append(ModuleReference(name=module["name"], of=module["of"]))

        return cls(
            type=data["type"],
            name=data["name"],
            of=data.get("of"),
            modules=modules,
            template=data.get("template"),
            description=data.get("description"),
            load=to_list(data.get("load")),
            extra={k: v for k, v in data.items() if k not in ENTRY_FIELDS},
        )

    @staticmethod
    def module_name(module: ModuleRef) -> str:
        return module if isinstance(module, str) else module.name

    def commands_for(self, module: ModuleRef) -> List[str]:
        """Commands contributed by one module reference of this entry."""
        if isinstance(module, str):
            return to_list(self.of)
        return to_list(module.of)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "of": self.of,
            "modules": [
                m if isinstance(m, str) else {"name": m.name, "of": m.of}
                for m in self.modules
            ],
        }
        if self.description is not None:
            data["description"] = self.description
        if self.load:
            data["load"] = list(self.load)
        data.update(self.extra)
        return data


@dataclass
class DeploymentConfig:
    """Resolved deployment manifest (templates already expanded)."""

    deployment: List[DeploymentEntry]
    version: int = 1
    name: Optional[str] = None
    templates: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    origin: Optional[str] = None

    def find(self, name: str) -> Optional[DeploymentEntry]:
        """First deployment entry whose name matches, if any."""
        for entry in self.deployment:
            if entry.name == name:
                return entry
        return None


@runtime_checkable
class Runner(Protocol):
    """
    Deployment runner contract.

    ``on_load`` is called once per (module, command) pair and may return an
    awaitable; ``run`` is awaited exactly once after every load hook.
    """

    type: str

    def on_load(self, module: Any, deployment: Optional[DeploymentEntry] = None) -> Any:
        ...

    async def run(self) -> None:
        ...
