"""
HTTP client for the interview backend.

The backend owns interview state; this client only loads the history
document of a session, which carries the interview graph.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ladderchain.core.models import InterviewGraph, InterviewHistory

logger = logging.getLogger(__name__)


class InterviewClient:
    """
    Read-only client for the interview backend.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: int = 30,
    ):
        """
        Initialize the client.

        Args:
            api_url: Base URL of the backend. If None, defaults to http://localhost:8000
            api_key: Optional bearer token
            timeout_seconds: Request timeout in seconds
        """
        self.base_url = (api_url or "http://localhost:8000").rstrip('/')
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

        logger.info(f"InterviewClient initialized (server: {self.base_url})")

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, endpoint: str, json: Dict = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        response = requests.post(url, json=json, headers=self._get_headers(), timeout=self.timeout_seconds)
        response.raise_for_status()
        return response.json()

    def load_history(self, session_id: str, project_slug: Optional[str] = None) -> InterviewHistory:
        """
        Load the stored history of an interview session.

        An error status from the backend yields an empty history; transport
        failures propagate as requests exceptions.

        Raises:
            pydantic.ValidationError: If the backend returns a malformed document
        """
        payload = {"session_id": session_id, "projectSlug": project_slug}
        try:
            data = self._post("/interview/load", json=payload)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            logger.warning(f"Loading session {session_id} failed with status {status}")
            return InterviewHistory()

        return InterviewHistory.model_validate(data or {})

    def load_graph(self, session_id: str, project_slug: Optional[str] = None) -> Optional[InterviewGraph]:
        """Load only the interview graph of a session (None if the session has no tree)."""
        history = self.load_history(session_id, project_slug)
        if history.tree is None:
            logger.warning(f"Session {session_id} has no interview tree")
        return history.tree
