"""
LadderChain - Attribute/Consequence/Value chains from laddering interviews.
Facade over the extractor, the optional result cache and the backend client.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

import requests

from ladderchain.client import InterviewClient
from ladderchain.core.config import ExtractOptions, LadderChainConfig
from ladderchain.core.models import InterviewGraph, StimulusGroup
from ladderchain.export import (
    ProjectExport,
    SessionExport,
    build_project_export,
    build_session_export,
)
from ladderchain.extraction import extract_stimulus_chains
from ladderchain.utils.cache import ExtractionCache

logger = logging.getLogger(__name__)


class LadderChain:
    """
    Entry point for extracting and exporting chains.

    Example:
        ladder = LadderChain()
        groups = ladder.extract(graph)
        export = ladder.export_session("session-42", project_slug="milk")
    """

    def __init__(
        self,
        config: Optional[LadderChainConfig] = None,
        client: Optional[InterviewClient] = None,
    ):
        """
        Initialize LadderChain.

        Args:
            config: Configuration; loaded from the environment if None
            client: Backend client; built from config.client if None
        """
        self.config = config or LadderChainConfig()
        self.client = client or InterviewClient(
            api_url=self.config.client.api_url,
            api_key=self.config.client.api_key,
            timeout_seconds=self.config.client.timeout_seconds,
        )
        self.cache = ExtractionCache(self.config.cache.max_size) if self.config.cache.enabled else None

        logger.info(f"LadderChain initialized (cache: {'on' if self.cache else 'off'})")

    def _resolve_options(self, options: Optional[ExtractOptions], overrides: dict) -> ExtractOptions:
        options = options or self.config.extract
        if overrides:
            options = ExtractOptions.model_validate({**options.model_dump(), **overrides})
        return options

    def extract(
        self,
        graph: Union[InterviewGraph, Mapping[str, Any]],
        options: Optional[ExtractOptions] = None,
        **overrides: bool,
    ) -> List[StimulusGroup]:
        """Extract chains from a graph using the configured options unless given explicitly."""
        options = self._resolve_options(options, overrides)
        if self.cache is None:
            return extract_stimulus_chains(graph, options)
        if not isinstance(graph, InterviewGraph):
            # Mappings have no stable identity worth caching on
            return extract_stimulus_chains(graph, options)
        return self.cache.get_or_compute(graph, options, extract_stimulus_chains)

    def extract_session(
        self,
        session_id: str,
        project_slug: Optional[str] = None,
        options: Optional[ExtractOptions] = None,
        **overrides: bool,
    ) -> List[StimulusGroup]:
        """Load a session from the backend and extract its chains (empty if it has no tree)."""
        graph = self.client.load_graph(session_id, project_slug)
        if graph is None:
            return []
        return self.extract(graph, options, **overrides)

    def export_session(
        self,
        session_id: str,
        project: str = "",
        project_slug: str = "",
        options: Optional[ExtractOptions] = None,
        **overrides: bool,
    ) -> SessionExport:
        """Build the export document of one backend session."""
        options = self._resolve_options(options, overrides)
        groups = self.extract_session(session_id, project_slug or None, options)
        return build_session_export(
            groups,
            session_id=session_id,
            project=project,
            project_slug=project_slug,
            options=options,
        )

    def export_project(
        self,
        session_ids: Iterable[str],
        project: str = "",
        project_slug: str = "",
        options: Optional[ExtractOptions] = None,
        exclude_empty_interviews: bool = False,
        **overrides: bool,
    ) -> ProjectExport:
        """
        Build one export document for several backend sessions of a project.

        A session that cannot be loaded does not abort the export; it is
        reported in sessions_export_failed.
        """
        options = self._resolve_options(options, overrides)
        sessions = []
        failed = set()
        for session_id in session_ids:
            try:
                graph = self.client.load_graph(session_id, project_slug or None)
            except requests.exceptions.RequestException as e:
                logger.warning(f"Failed to load session {session_id}: {e}")
                failed.add(session_id)
                graph = None
            sessions.append((session_id, graph))

        return build_project_export(
            sessions,
            project=project,
            project_slug=project_slug,
            options=options,
            exclude_empty_interviews=exclude_empty_interviews,
            failed_session_ids=failed,
        )
