"""
Dependency verifier: every declared dependency must be loaded somewhere
in the manifest.
"""

from typing import Dict, Optional, Set
import logging

from .aggregator import aggregate
from .errors import DependencyError, NotFoundError, ValidationReport
from .registry import ModuleRegistry
from .types import DeploymentConfig

logger = logging.getLogger("manifold.verifier")


class DependencyVerifier:
    """
    Two-pass dependency satisfiability check.

    Pass one aggregates the commands every deployment entry loads; pass two
    walks the declarations of every referenced module and checks that each
    dependency command is in that aggregate. Both passes cover the whole
    manifest, not just the deployment about to run.
    """

    def __init__(self, registry: ModuleRegistry):
        self.registry = registry

    def verify(
        self,
        config: DeploymentConfig,
        aggregated: Optional[Dict[str, Set[str]]] = None,
    ) -> None:
        """
        Raise on the first unsatisfied dependency.

        Raises:
            DependencyError: If a required command is never loaded
            NotFoundError: If a deployment references an unknown module
        """
        report = self.check(config, aggregated, fail_fast=True)
        if report.has_errors():
            raise report.errors[0]
        logger.info("Verified dependencies of %d module(s)", len(self.registry))

    def check(
        self,
        config: DeploymentConfig,
        aggregated: Optional[Dict[str, Set[str]]] = None,
        *,
        fail_fast: bool = False,
    ) -> ValidationReport:
        """
        Walk every referenced module and collect unsatisfied dependencies.

        Args:
            config: Resolved deployment manifest
            aggregated: Precomputed aggregate; computed from ``config`` if omitted
            fail_fast: Stop at the first error

        Returns:
            ValidationReport with one error per missing command
        """
        if aggregated is None:
            aggregated = aggregate(config)

        report = ValidationReport()
        checked: Set[str] = set()

        for entry in config.deployment:
            for module in entry.modules:
                name = entry.module_name(module)
                if name in checked:
                    continue
                checked.add(name)

                declaration = self.registry.get(name)
                if declaration is None:
                    report.add_error(NotFoundError("module", name))
                    if fail_fast:
                        return report
                    continue

                if not declaration.dependencies:
                    continue

                for dependency in declaration.dependencies:
                    available = aggregated.get(dependency.name, set())
                    for command in dependency.commands:
                        if command in available:
                            continue
                        logger.debug(
                            "%s requires %s.%s which is not loaded",
                            name, dependency.name, command,
                        )
                        report.add_error(
                            DependencyError(name, dependency.name, command)
                        )
                        if fail_fast:
                            return report

        return report
