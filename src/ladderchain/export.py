"""
Export payloads for extracted chains.

Builds the JSON documents downloaded from the results pages: one document
per interview session, or one per project bundling all of its sessions.
Nothing here touches the filesystem; serialize with model_dump_json().
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

from ladderchain.core.config import ExtractOptions
from ladderchain.core.models import InterviewGraph, StimulusGroup
from ladderchain.extraction import extract_stimulus_chains

logger = logging.getLogger(__name__)

GraphInput = Union[InterviewGraph, Mapping[str, Any], None]


class SessionExport(BaseModel):
    """Chains of a single interview session."""
    project: str = ""
    project_slug: str = ""
    session_id: str
    exported_at: str
    stimuli: List[StimulusGroup] = Field(default_factory=list)
    options: Dict[str, bool] = Field(default_factory=dict)


class SessionChains(BaseModel):
    """Per-session entry of a project export."""
    session_id: str
    stimuli: List[StimulusGroup] = Field(default_factory=list)


class ProjectExport(BaseModel):
    """Chains of every exported session of a project."""
    project: str = ""
    project_slug: str = ""
    exported_at: str
    total_sessions: int = 0
    sessions_exported: int = 0
    sessions_excluded_empty: int = 0
    sessions_export_failed: int = 0
    sessions: List[SessionChains] = Field(default_factory=list)
    options: Dict[str, bool] = Field(default_factory=dict)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def export_filename(
    project_slug: str,
    session_id: Optional[str] = None,
    exported_on: Optional[date] = None,
) -> str:
    """
    File name of an export document.

    Session exports are named acv_<slug>_<session>.json. Without a session_id
    the whole project is meant: acv_<slug>_ALL_<YYYY-MM-DD>.json, dated
    exported_on or today (UTC).
    """
    if session_id is not None:
        return f"acv_{project_slug}_{session_id}.json"
    day = exported_on or datetime.now(timezone.utc).date()
    return f"acv_{project_slug}_ALL_{day.isoformat()}.json"


def session_has_content(groups: Iterable[StimulusGroup]) -> bool:
    """True if at least one stimulus group holds a chain."""
    return any(group.chains for group in groups)


def build_session_export(
    groups: List[StimulusGroup],
    session_id: str,
    project: str = "",
    project_slug: str = "",
    options: Optional[ExtractOptions] = None,
    exported_at: Optional[str] = None,
) -> SessionExport:
    """
    Wrap extracted groups into a session export document.

    Args:
        groups: Result of extract_stimulus_chains for the session
        session_id: Interview session ID
        project: Project topic
        project_slug: Project slug
        options: Options the groups were extracted with
        exported_at: ISO-8601 timestamp (defaults to now, UTC)
    """
    options = options or ExtractOptions()
    return SessionExport(
        project=project,
        project_slug=project_slug,
        session_id=session_id,
        exported_at=exported_at or _now_iso(),
        stimuli=groups,
        options=options.to_camel_dict(),
    )


def build_project_export(
    sessions: Iterable[Tuple[str, GraphInput]],
    project: str = "",
    project_slug: str = "",
    options: Optional[ExtractOptions] = None,
    exclude_empty_interviews: bool = False,
    exported_at: Optional[str] = None,
    failed_session_ids: Collection[str] = (),
) -> ProjectExport:
    """
    Extract and bundle the chains of several sessions.

    Failed sessions are listed with no stimuli, or left out when
    exclude_empty_interviews is set; either way they count towards
    sessions_export_failed. Sessions left out for having no chains count
    towards sessions_excluded_empty.

    Args:
        sessions: (session_id, graph) pairs; graph is None when the session has no tree
        project: Project topic
        project_slug: Project slug
        options: Extraction options applied to every session
        exclude_empty_interviews: Skip sessions without a tree or without any chain
        exported_at: ISO-8601 timestamp (defaults to now, UTC)
        failed_session_ids: Sessions whose graph could not be loaded

    Example:
        export = build_project_export(
            [("s1", graph_1), ("s2", graph_2)],
            project="Plant-based milk",
            project_slug="milk",
            exclude_empty_interviews=True,
        )
        path.write_text(export.model_dump_json(indent=2))
    """
    options = options or ExtractOptions()
    entries = []
    total = failed = excluded = 0

    for session_id, graph in sessions:
        total += 1
        if session_id in failed_session_ids:
            failed += 1
            if not exclude_empty_interviews:
                entries.append(SessionChains(session_id=session_id))
            continue

        if graph is None:
            logger.debug(f"Session {session_id} has no interview tree")
            groups = []
        else:
            groups = extract_stimulus_chains(graph, options)

        if exclude_empty_interviews and not session_has_content(groups):
            logger.debug(f"Skipping session {session_id}: no chains")
            excluded += 1
            continue
        entries.append(SessionChains(session_id=session_id, stimuli=groups))

    logger.info(
        f"Exported {len(entries)}/{total} sessions for project '{project_slug}' "
        f"({excluded} empty, {failed} failed)"
    )
    return ProjectExport(
        project=project,
        project_slug=project_slug,
        exported_at=exported_at or _now_iso(),
        total_sessions=total,
        sessions_exported=len(entries),
        sessions_excluded_empty=excluded,
        sessions_export_failed=failed,
        sessions=entries,
        options={
            **options.to_camel_dict(),
            "excludeEmptyInterviews": exclude_empty_interviews,
        },
    )
