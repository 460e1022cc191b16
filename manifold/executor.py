"""
Deployment executor: feeds module artifacts to a runner, then runs it.
"""

from typing import Dict, Optional
import inspect
import logging

from .errors import NotFoundError, UnregisteredRunnerError
from .loader import ArtifactLoader, import_artifact
from .registry import ModuleRegistry
from .types import DeploymentConfig, DeploymentEntry, Runner

logger = logging.getLogger("manifold.executor")


class DeploymentExecutor:
    """
    Executes one named deployment entry.

    Load hooks are awaited one at a time in manifest module order, then
    command order within a module; runners may rely on that ordering to
    accumulate state. The run hook is awaited once afterwards.
    """

    def __init__(self, loader: Optional[ArtifactLoader] = None):
        self.loader = loader or import_artifact

    async def execute(
        self,
        config: DeploymentConfig,
        name: str,
        registry: ModuleRegistry,
        runners: Dict[str, Runner],
        *,
        strict: bool = False,
    ) -> Optional[DeploymentEntry]:
        """
        Load every module of deployment ``name`` into its runner and run it.

        Args:
            config: Resolved deployment manifest
            name: Deployment entry name
            registry: Module registry providing module directories
            runners: Runner table keyed by type
            strict: Raise instead of returning when ``name`` is unknown

        Returns:
            The executed entry, or None if no entry matched

        Raises:
            NotFoundError: Unknown deployment (strict) or unregistered module
            UnregisteredRunnerError: No runner for the entry's type
        """
        entry = config.find(name)
        if entry is None:
            if strict:
                raise NotFoundError("deployment", name)
            logger.warning("No deployment named '%s'; nothing to run", name)
            return None

        runner = runners.get(entry.type)
        if runner is None:
            raise UnregisteredRunnerError(entry.type, entry.name)

        for module in entry.modules:
            module_name = entry.module_name(module)
            for command in entry.commands_for(module):
                command = command.lower()
                module_path = registry.path_of(module_name)

                logger.debug("Loading %s/%s into %s runner", module_name, command, entry.type)
                artifact = self.loader(module_path, command)

                result = runner.on_load(artifact, entry)
                if inspect.isawaitable(result):
                    await result

        logger.info("Running deployment '%s' (%s)", entry.name, entry.type)
        await runner.run()
        return entry
