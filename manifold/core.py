"""
Manifold orchestrator: the top-level entry point.
"""

from typing import Any, Dict, Optional
from pathlib import Path
import logging

from .aggregator import aggregate
from .errors import ConsumedError
from .executor import DeploymentExecutor
from .loader import ArtifactLoader
from .registry import DEFAULT_DECLARATION_FILE, ModuleRegistry
from .resolver import DeploymentResolver
from .types import DeploymentConfig, DeploymentEntry, Runner
from .verifier import DependencyVerifier

logger = logging.getLogger("manifold.core")


class Manifold:
    """
    Owns the module registry, the resolved manifest and the runner table
    for exactly one deployment run.

    Construction scans ``modules_path`` and resolves ``config_path``. The
    first call to :meth:`run` consumes the instance whether it succeeds or
    fails; build a new one for every run.

    Example:
        manifold = Manifold("modules", "deployment.yml")
        manifold.add_runner(GraphQLRunner())
        await manifold.run("api")
    """

    def __init__(
        self,
        modules_path,
        config_path,
        *,
        loader: Optional[ArtifactLoader] = None,
        declaration_file: str = DEFAULT_DECLARATION_FILE,
        strict: bool = False,
    ):
        self.modules_path = Path(modules_path)
        self.config_path = Path(config_path)
        self.strict = strict

        self._executor = DeploymentExecutor(loader)
        self._runners: Dict[str, Runner] = {}
        self._consumed = False

        self.config: Optional[DeploymentConfig] = DeploymentResolver().load(
            self.config_path
        )
        self.registry: Optional[ModuleRegistry] = ModuleRegistry(declaration_file)
        self.registry.scan(self.modules_path)

    @classmethod
    def from_settings(cls, settings, *, loader: Optional[ArtifactLoader] = None) -> "Manifold":
        """Build from a :class:`~manifold.config.ManifoldSettings`."""
        return cls(
            settings.modules_path,
            settings.manifest_path,
            loader=loader,
            declaration_file=settings.declaration_file,
            strict=settings.strict,
        )

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def runners(self) -> Dict[str, Runner]:
        return dict(self._runners)

    def add_runner(self, runner: Runner) -> "Manifold":
        """Register ``runner`` under its type, replacing any previous one."""
        if self._consumed:
            raise ConsumedError()
        if not isinstance(runner, Runner):
            raise TypeError(
                f"{runner!r} is not a runner: expected 'type', 'on_load' and 'run'"
            )
        if runner.type in self._runners:
            logger.debug("Replacing runner for type '%s'", runner.type)
        self._runners[runner.type] = runner
        return self

    def verify(self) -> None:
        """Check every dependency of every referenced module."""
        if self._consumed:
            raise ConsumedError()
        DependencyVerifier(self.registry).verify(self.config)

    async def run(self, name: str, verify: bool = True) -> Optional[DeploymentEntry]:
        """
        Verify the manifest (optionally) and execute deployment ``name``.

        Args:
            name: Deployment entry name
            verify: Run the full dependency check before loading anything

        Returns:
            The executed deployment entry, or None if no entry matched

        Raises:
            ConsumedError: If this instance already ran
        """
        if self._consumed:
            raise ConsumedError()

        try:
            if verify:
                DependencyVerifier(self.registry).verify(self.config)
            return await self._executor.execute(
                self.config,
                name,
                self.registry,
                self._runners,
                strict=self.strict,
            )
        finally:
            self._release()

    def _release(self) -> None:
        self._consumed = True
        self._runners.clear()
        if self.registry is not None:
            self.registry.clear()
        self.registry = None
        self.config = None

    def inspect(self) -> Dict[str, Any]:
        """
        Diagnostics for the resolved manifest and module registry.

        Returns:
            Dictionary with modules, deployments and aggregated commands
        """
        if self._consumed:
            raise ConsumedError()

        loaded = aggregate(self.config)
        return {
            "manifest": str(self.config_path),
            "modules_path": str(self.modules_path),
            "modules": [
                {
                    **self.registry.declarations[name].to_dict(),
                    "path": str(self.registry.paths[name]),
                }
                for name in self.registry
            ],
            "deployments": [entry.to_dict() for entry in self.config.deployment],
            "loaded_commands": {
                name: sorted(commands) for name, commands in sorted(loaded.items())
            },
            "runners": sorted(self._runners),
        }

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else f"{len(self.registry)} modules"
        return f"Manifold({self.config_path}, {state})"
