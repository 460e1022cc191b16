"""
Tests for DeploymentExecutor: ordering, runner dispatch and failure modes.
"""

import pytest

from manifold.errors import NotFoundError, UnregisteredRunnerError
from manifold.executor import DeploymentExecutor
from manifold.registry import ModuleRegistry
from manifold.resolver import DeploymentResolver

from conftest import RecordingRunner, fake_loader, write_module


def _resolve(*entries):
    return DeploymentResolver().resolve({"version": 1, "deployment": list(entries)})


@pytest.fixture
def registry(modules_root):
    registry = ModuleRegistry()
    registry.scan(modules_root)
    return registry


class TestExecute:

    @pytest.mark.asyncio
    async def test_loads_then_runs(self, registry, runner):
        calls = []
        config = _resolve({
            "type": "graphql",
            "name": "api",
            "of": "Query",
            "modules": ["Account", {"name": "Member", "of": "Mutation"}],
        })

        entry = await DeploymentExecutor(fake_loader(calls)).execute(
            config, "api", registry, {"graphql": runner}
        )

        assert entry is config.deployment[0]
        assert calls == [("account", "query"), ("member", "mutation")]
        assert runner.loaded == [("account", "query"), ("member", "mutation")]
        assert runner.deployments == [entry, entry]
        assert runner.run_count == 1

    @pytest.mark.asyncio
    async def test_manifest_then_command_order(self, registry):
        calls = []
        runner = RecordingRunner(async_load=True)
        config = _resolve({
            "type": "graphql",
            "name": "api",
            "of": ["Mutation", "Query"],
            "modules": ["Member", {"name": "Account", "of": ["Query", "Mutation"]}],
        })

        await DeploymentExecutor(fake_loader(calls)).execute(
            config, "api", registry, {"graphql": runner}
        )

        assert runner.loaded == [
            ("member", "mutation"),
            ("member", "query"),
            ("account", "query"),
            ("account", "mutation"),
        ]

    @pytest.mark.asyncio
    async def test_scalar_and_list_of_equivalent(self, registry):
        scalar_calls, list_calls = [], []
        scalar = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]})
        listed = _resolve({"type": "graphql", "name": "api", "of": ["Query"], "modules": ["Account"]})

        await DeploymentExecutor(fake_loader(scalar_calls)).execute(
            scalar, "api", registry, {"graphql": RecordingRunner()}
        )
        await DeploymentExecutor(fake_loader(list_calls)).execute(
            listed, "api", registry, {"graphql": RecordingRunner()}
        )

        assert scalar_calls == list_calls == [("account", "query")]

    @pytest.mark.asyncio
    async def test_only_matching_entry_executes(self, registry):
        calls = []
        graphql, rest = RecordingRunner("graphql"), RecordingRunner("rest")
        config = _resolve(
            {"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]},
            {"type": "rest", "name": "web", "of": "Mutation", "modules": ["Member"]},
        )

        await DeploymentExecutor(fake_loader(calls)).execute(
            config, "web", registry, {"graphql": graphql, "rest": rest}
        )

        assert graphql.loaded == [] and graphql.run_count == 0
        assert rest.loaded == [("member", "mutation")]
        assert rest.run_count == 1

    @pytest.mark.asyncio
    async def test_unknown_name_is_noop(self, registry, runner):
        calls = []
        config = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]})

        result = await DeploymentExecutor(fake_loader(calls)).execute(
            config, "missing", registry, {"graphql": runner}
        )

        assert result is None
        assert calls == []
        assert runner.run_count == 0

    @pytest.mark.asyncio
    async def test_unknown_name_strict(self, registry, runner):
        config = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]})

        with pytest.raises(NotFoundError, match="missing"):
            await DeploymentExecutor(fake_loader([])).execute(
                config, "missing", registry, {"graphql": runner}, strict=True
            )

    @pytest.mark.asyncio
    async def test_unregistered_runner(self, registry, runner):
        config = _resolve({"type": "rest", "name": "web", "of": "Query", "modules": ["Account"]})

        with pytest.raises(UnregisteredRunnerError) as exc_info:
            await DeploymentExecutor(fake_loader([])).execute(
                config, "web", registry, {"graphql": runner}
            )
        assert exc_info.value.runner_type == "rest"

    @pytest.mark.asyncio
    async def test_unregistered_module(self, registry, runner):
        config = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Ghost"]})

        with pytest.raises(NotFoundError, match="Ghost"):
            await DeploymentExecutor(fake_loader([])).execute(
                config, "api", registry, {"graphql": runner}
            )
        assert runner.run_count == 0

    @pytest.mark.asyncio
    async def test_load_hook_failure_propagates(self, registry):
        class FailingRunner(RecordingRunner):
            def on_load(self, module, deployment=None):
                raise RuntimeError("schema merge failed")

        runner = FailingRunner()
        config = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]})

        with pytest.raises(RuntimeError, match="schema merge failed"):
            await DeploymentExecutor(fake_loader([])).execute(
                config, "api", registry, {"graphql": runner}
            )
        assert runner.run_count == 0

    @pytest.mark.asyncio
    async def test_default_loader_imports_packages(self, registry, runner):
        config = _resolve({"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]})

        await DeploymentExecutor().execute(config, "api", registry, {"graphql": runner})

        (artifact,) = runner.loaded
        assert artifact.MODULE == "Account"
        assert artifact.COMMAND == "query"

    @pytest.mark.asyncio
    async def test_loader_receives_lowercased_command(self, tmp_path):
        root = tmp_path / "modules"
        write_module(root, "account", "Account", commands=("query",))
        registry = ModuleRegistry()
        registry.scan(root)
        calls = []
        config = _resolve({"type": "graphql", "name": "api", "of": "QUERY", "modules": ["Account"]})

        await DeploymentExecutor(fake_loader(calls)).execute(
            config, "api", registry, {"graphql": RecordingRunner()}
        )

        assert calls == [("account", "query")]
