"""Unit tests for the LadderChain facade."""

from unittest.mock import MagicMock

import requests

from helpers import linear_chain
from ladderchain import LadderChain, LadderChainConfig
from ladderchain.core.config import CacheConfig, ExtractOptions


def make_ladder(cache_enabled=False, graphs=None):
    config = LadderChainConfig(cache=CacheConfig(enabled=cache_enabled, max_size=8))
    client = MagicMock()
    client.load_graph.side_effect = lambda session_id, project_slug=None: (graphs or {}).get(session_id)
    return LadderChain(config=config, client=client), client


class TestLadderChain:
    """Test LadderChain."""

    def test_extract_uses_configured_options(self):
        config = LadderChainConfig(extract=ExtractOptions(require_completed_flag=False))
        ladder = LadderChain(config=config, client=MagicMock())

        groups = ladder.extract(linear_chain(consequence_completed=False))
        assert len(groups) == 1

    def test_extract_overrides(self):
        ladder, _ = make_ladder()
        groups = ladder.extract(linear_chain(consequence_completed=False), require_completed_flag=False)
        assert len(groups) == 1

    def test_cache_disabled_by_default(self):
        ladder, _ = make_ladder()
        assert ladder.cache is None

    def test_cached_extraction(self):
        ladder, _ = make_ladder(cache_enabled=True)
        graph = linear_chain()

        first = ladder.extract(graph)
        second = ladder.extract(graph)

        assert [g.model_dump() for g in first] == [g.model_dump() for g in second]
        assert ladder.cache.stats()["hits"] == 1

    def test_extract_session(self):
        ladder, client = make_ladder(graphs={"s-1": linear_chain()})

        assert len(ladder.extract_session("s-1", "milk")) == 1
        assert ladder.extract_session("unknown") == []
        client.load_graph.assert_any_call("s-1", "milk")

    def test_export_session(self):
        ladder, _ = make_ladder(graphs={"s-1": linear_chain()})

        export = ladder.export_session("s-1", project="Milk", project_slug="milk", merge_consequence_path=True)

        assert export.session_id == "s-1"
        assert export.options["mergeConsequencePath"] is True
        assert export.stimuli[0].chains[0].value == "Enjoyment"

    def test_export_project(self):
        ladder, _ = make_ladder(graphs={"s-1": linear_chain()})

        export = ladder.export_project(["s-1", "s-2"], project_slug="milk", exclude_empty_interviews=True)

        assert [s.session_id for s in export.sessions] == ["s-1"]

    def test_export_project_survives_failed_session(self):
        ladder, client = make_ladder()
        graphs = {"s-1": linear_chain(), "s-3": linear_chain()}

        def load_graph(session_id, project_slug=None):
            if session_id == "s-2":
                raise requests.exceptions.ConnectionError("refused")
            return graphs[session_id]

        client.load_graph.side_effect = load_graph

        export = ladder.export_project(["s-1", "s-2", "s-3"], project_slug="milk")

        assert [s.session_id for s in export.sessions] == ["s-1", "s-2", "s-3"]
        assert export.sessions[1].stimuli == []
        assert export.total_sessions == 3
        assert export.sessions_export_failed == 1

    def test_export_project_drops_failed_session_when_excluding_empty(self):
        ladder, client = make_ladder()
        client.load_graph.side_effect = requests.exceptions.Timeout("slow")

        export = ladder.export_project(["s-1"], exclude_empty_interviews=True)

        assert export.sessions == []
        assert export.sessions_export_failed == 1
        assert export.sessions_excluded_empty == 0
