"""HTTP client for the mapant job-dispatch endpoint."""

from typing import Any

import httpx

from .config import WorkerConfig
from .errors import DecodeError, TransportError, get_current_cycle_id

NEXT_JOB_PATH = "/map-generation/next-job"


class MapantClient:
    """Authenticated client for the map generation API.

    Every request carries ``Authorization: Bearer {worker_id}.{token}``.
    """

    def __init__(
        self,
        config: WorkerConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize API client."""
        self.config = config
        self.base_url = config.api_base_url.rstrip("/")
        credentials = config.credentials

        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=config.api_timeout_seconds,
            headers={
                "Authorization": f"Bearer {credentials.bearer_token}",
                "User-Agent": f"mapant-worker/{credentials.worker_id}",
            },
            transport=transport,
        )

    def __enter__(self) -> "MapantClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _get_headers(self) -> dict[str, str]:
        """Get headers with cycle ID if available."""
        headers: dict[str, str] = {}
        cycle_id = get_current_cycle_id()
        if cycle_id:
            headers["X-Correlation-ID"] = cycle_id
        return headers

    def next_job(self) -> Any:
        """Ask the dispatch endpoint for the next job.

        Returns:
            The raw JSON body, not yet validated

        Raises:
            TransportError: If the request fails or the status is not a success
            DecodeError: If the body is not JSON
        """
        try:
            response = self.client.post(NEXT_JOB_PATH, headers=self._get_headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                'Failed to call mapant generation "next-job" endpoint',
                status_code=e.response.status_code,
                reason=e.response.reason_phrase,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"next-job request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"next-job response is not JSON: {e}") from e

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()
