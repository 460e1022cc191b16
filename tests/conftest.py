"""
Shared test fixtures and helpers for the Manifold test suite.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import yaml


# ============================================================================
# Filesystem Helpers
# ============================================================================


def write_module(
    root: Path,
    dirname: str,
    name: str,
    *,
    dependencies: Optional[List[Dict[str, Any]]] = None,
    commands: tuple = (),
    version: int = 1,
) -> Path:
    """Create a module directory with a declaration and command packages."""
    module_dir = root / dirname
    module_dir.mkdir(parents=True)

    declaration: Dict[str, Any] = {"version": version, "name": name}
    if dependencies is not None:
        declaration["dependencies"] = dependencies
    (module_dir / "config.yml").write_text(yaml.safe_dump(declaration))

    for command in commands:
        package = module_dir / command
        package.mkdir()
        (package / "__init__.py").write_text(
            f"MODULE = {name!r}\nCOMMAND = {command!r}\n"
        )

    return module_dir


def write_manifest(path: Path, data: Dict[str, Any]) -> Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


# ============================================================================
# Runners
# ============================================================================


class RecordingRunner:
    """Runner that records every hook call."""

    def __init__(self, type: str = "graphql", *, async_load: bool = False):
        self.type = type
        self.async_load = async_load
        self.loaded: List[Any] = []
        self.deployments: List[Any] = []
        self.run_count = 0

    def on_load(self, module, deployment=None):
        if self.async_load:
            return self._record_async(module, deployment)
        self.loaded.append(module)
        self.deployments.append(deployment)

    async def _record_async(self, module, deployment):
        self.loaded.append(module)
        self.deployments.append(deployment)

    async def run(self):
        self.run_count += 1


def fake_loader(calls: List[tuple]):
    """Artifact loader that never touches disk: returns (module dir name, command)."""

    def load(module_path: Path, command: str):
        calls.append((module_path.name, command))
        return (module_path.name, command)

    return load


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def modules_root(tmp_path):
    """Module root with Account (no deps) and Member (needs Account.Query)."""
    root = tmp_path / "modules"
    write_module(root, "account", "Account", commands=("query", "mutation"))
    write_module(
        root,
        "member",
        "Member",
        dependencies=[{"name": "Account", "of": "Query"}],
        commands=("query", "mutation"),
    )
    return root


@pytest.fixture
def manifest_path(tmp_path):
    """Manifest whose single entry loads Account.Query and Member.Mutation."""
    return write_manifest(
        tmp_path / "deployment.yml",
        {
            "version": 1,
            "deployment": [
                {
                    "type": "graphql",
                    "name": "api",
                    "of": "Query",
                    "modules": ["Account", {"name": "Member", "of": "Mutation"}],
                }
            ],
        },
    )


@pytest.fixture
def runner():
    return RecordingRunner()
