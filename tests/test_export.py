"""Unit tests for export payloads."""

import json
from datetime import date

from helpers import graph, linear_chain, node
from ladderchain.core.config import ExtractOptions
from ladderchain.core.models import ACVChainText, StimulusGroup
from ladderchain.export import (
    build_project_export,
    build_session_export,
    export_filename,
    session_has_content,
)
from ladderchain.extraction import extract_stimulus_chains


def empty_interview():
    return graph(node(1, "STIMULUS", "Oat milk"))


class TestSessionExport:
    """Test single-session exports."""

    def test_payload_shape(self):
        groups = extract_stimulus_chains(linear_chain())
        export = build_session_export(
            groups,
            session_id="s-1",
            project="Plant-based milk",
            project_slug="milk",
            exported_at="2026-01-01T00:00:00+00:00",
        )
        payload = json.loads(export.model_dump_json())

        assert payload == {
            "project": "Plant-based milk",
            "project_slug": "milk",
            "session_id": "s-1",
            "exported_at": "2026-01-01T00:00:00+00:00",
            "stimuli": [{
                "stimulus": "Oat milk",
                "chains": [{
                    "attribute": "Creamy texture",
                    "consequence": "Tastes good in coffee",
                    "value": "Enjoyment",
                }],
            }],
            "options": ExtractOptions().to_camel_dict(),
        }

    def test_exported_at_defaults_to_now(self):
        export = build_session_export([], session_id="s-1")
        assert export.exported_at.endswith("+00:00")

    def test_filename(self):
        assert export_filename("milk", "s-1") == "acv_milk_s-1.json"
        assert export_filename("milk", exported_on=date(2026, 3, 9)) == "acv_milk_ALL_2026-03-09.json"

    def test_project_filename_defaults_to_today(self):
        assert export_filename("milk").startswith("acv_milk_ALL_20")


class TestProjectExport:
    """Test project exports."""

    def test_session_has_content(self):
        assert not session_has_content([])
        assert not session_has_content([StimulusGroup(stimulus="S")])
        assert session_has_content([StimulusGroup(stimulus="S", chains=[ACVChainText(attribute="A")])])

    def test_includes_every_session_by_default(self):
        export = build_project_export(
            [("s-1", linear_chain()), ("s-2", empty_interview()), ("s-3", None)],
            project_slug="milk",
        )

        assert [s.session_id for s in export.sessions] == ["s-1", "s-2", "s-3"]
        assert len(export.sessions[0].stimuli) == 1
        assert export.sessions[1].stimuli == []
        assert export.sessions[2].stimuli == []

    def test_exclude_empty_interviews(self):
        export = build_project_export(
            [("s-1", linear_chain()), ("s-2", empty_interview()), ("s-3", None)],
            project_slug="milk",
            exclude_empty_interviews=True,
        )

        assert [s.session_id for s in export.sessions] == ["s-1"]

    def test_empty_stimulus_groups_do_not_count_as_content(self):
        export = build_project_export(
            [("s-2", empty_interview())],
            options=ExtractOptions(include_empty_stimuli=True),
            exclude_empty_interviews=True,
        )
        assert export.sessions == []

    def test_options_are_applied_and_recorded(self):
        options = ExtractOptions(require_completed_flag=False)
        export = build_project_export(
            [("s-1", linear_chain(consequence_completed=False))],
            options=options,
        )

        assert export.options["requireCompletedFlag"] is False
        assert len(export.sessions[0].stimuli[0].chains) == 1

    def test_accepts_raw_documents(self):
        export = build_project_export([("s-1", linear_chain().model_dump())])
        assert export.sessions[0].stimuli[0].stimulus == "Oat milk"

    def test_summary_counts(self):
        export = build_project_export(
            [("s-1", linear_chain()), ("s-2", empty_interview()), ("s-3", None)],
            project_slug="milk",
            exclude_empty_interviews=True,
        )

        assert export.total_sessions == 3
        assert export.sessions_exported == 1
        assert export.sessions_excluded_empty == 2
        assert export.sessions_export_failed == 0
        assert export.options["excludeEmptyInterviews"] is True

    def test_failed_sessions_kept_empty(self):
        export = build_project_export(
            [("s-1", linear_chain()), ("s-2", None)],
            failed_session_ids={"s-2"},
        )

        assert [s.session_id for s in export.sessions] == ["s-1", "s-2"]
        assert export.sessions[1].stimuli == []
        assert export.sessions_exported == 2
        assert export.sessions_export_failed == 1
        assert export.options["excludeEmptyInterviews"] is False

    def test_failed_sessions_dropped_when_excluding_empty(self):
        export = build_project_export(
            [("s-1", linear_chain()), ("s-2", None)],
            exclude_empty_interviews=True,
            failed_session_ids={"s-2"},
        )

        assert [s.session_id for s in export.sessions] == ["s-1"]
        assert export.sessions_excluded_empty == 0
        assert export.sessions_export_failed == 1
