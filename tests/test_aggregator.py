"""
Tests for manifest-wide command aggregation and the data model helpers
it relies on.
"""

import itertools

from manifold.aggregator import aggregate
from manifold.types import DeploymentConfig, DeploymentEntry, ModuleReference, to_list


def _config(*entries):
    return DeploymentConfig(deployment=[DeploymentEntry.from_dict(e) for e in entries])


# ============================================================================
# Helpers
# ============================================================================

class TestToList:

    def test_scalar(self):
        assert to_list("Query") == ["Query"]

    def test_sequence(self):
        assert to_list(["Query", "Mutation"]) == ["Query", "Mutation"]
        assert to_list(("Query",)) == ["Query"]

    def test_none(self):
        assert to_list(None) == []


class TestCommandsFor:

    def test_bare_name_uses_entry_of(self):
        entry = DeploymentEntry(type="graphql", name="api", of="Query", modules=["Account"])
        assert entry.commands_for("Account") == ["Query"]

    def test_override_uses_own_of(self):
        ref = ModuleReference(name="Member", of=["Mutation", "Query"])
        entry = DeploymentEntry(type="graphql", name="api", of="Query", modules=[ref])
        assert entry.commands_for(ref) == ["Mutation", "Query"]
        assert entry.module_name(ref) == "Member"

    def test_scalar_and_sequence_equivalent(self):
        scalar = DeploymentEntry(type="graphql", name="a", of="Query")
        sequence = DeploymentEntry(type="graphql", name="b", of=["Query"])
        assert scalar.commands_for("Account") == sequence.commands_for("Account")


# ============================================================================
# aggregate()
# ============================================================================

class TestAggregate:

    def test_single_entry(self):
        loaded = aggregate(_config(
            {
                "type": "graphql",
                "name": "api",
                "of": "Query",
                "modules": ["Account", {"name": "Member", "of": "Mutation"}],
            }
        ))
        assert loaded == {"Account": {"Query"}, "Member": {"Mutation"}}

    def test_union_across_entries(self):
        loaded = aggregate(_config(
            {"type": "graphql", "name": "api", "of": "Query", "modules": ["Account"]},
            {"type": "rest", "name": "web", "of": ["Rest", "Query"], "modules": ["Account", "Member"]},
        ))
        assert loaded == {"Account": {"Query", "Rest"}, "Member": {"Rest", "Query"}}

    def test_case_preserved(self):
        loaded = aggregate(_config(
            {"type": "graphql", "name": "a", "of": "Query", "modules": ["Account"]},
            {"type": "graphql", "name": "b", "of": "query", "modules": ["Account"]},
        ))
        assert loaded["Account"] == {"Query", "query"}

    def test_order_independent(self):
        entries = [
            {"type": "graphql", "name": "a", "of": "Query", "modules": ["Account"]},
            {"type": "rest", "name": "b", "of": "Rest", "modules": ["Account", "Member"]},
            {"type": "cli", "name": "c", "of": "Cli", "modules": [{"name": "Member", "of": ["Query"]}]},
        ]
        expected = aggregate(_config(*entries))

        for permutation in itertools.permutations(entries):
            assert aggregate(_config(*permutation)) == expected

    def test_empty_manifest(self):
        assert aggregate(DeploymentConfig(deployment=[])) == {}
