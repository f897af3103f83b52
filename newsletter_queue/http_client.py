"""HTTP client for a remote newsletter queue service."""

from typing import Any, Dict, List, Optional

import aiohttp

from newsletter_queue.errors import RemoteHttpError

TOKEN_HEADER = "X-Newsletter-Queue-Token"


class NewsletterQueueHttpClient:
    """HTTP client for calling the newsletter queue API."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 5.0,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL of the service (e.g., "https://newsletter.internal")
            auth_token: Optional auth token for the X-Newsletter-Queue-Token header
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.auth_token:
            headers[TOKEN_HEADER] = self.auth_token
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}/newsletter{path}"

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            try:
                async with session.request(
                    method, url, json=json, params=params, headers=self._headers()
                ) as resp:
                    response_body = await resp.text()

                    if resp.status >= 400:
                        raise RemoteHttpError(
                            status_code=resp.status,
                            message=f"Failed to {action}: {response_body}",
                            response_body=response_body,
                        )

                    return await resp.json()

            except aiohttp.ClientError as e:
                raise RemoteHttpError(
                    status_code=0,
                    message=f"Network error: {str(e)}",
                ) from e

    async def enqueue(
        self, campaign_id: str, subscriber_ids: List[str], priority: int = 0
    ) -> int:
        """
        Queue deliveries via HTTP API.

        Returns:
            Number of jobs queued

        Raises:
            RemoteHttpError: If the HTTP request fails
        """
        data = await self._request(
            "POST",
            "/queue/enqueue",
            "enqueue jobs",
            json={
                "campaign_id": campaign_id,
                "subscriber_ids": list(subscriber_ids),
                "priority": priority,
            },
        )
        return data["queued"]

    async def send_campaign(self, campaign_id: str, priority: int = 0) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/campaigns/{campaign_id}/send",
            "send campaign",
            params={"priority": priority},
        )

    async def get_campaign_stats(self, campaign_id: str) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/campaigns/{campaign_id}/stats", "get campaign stats"
        )

    async def get_queue_status(self) -> Dict[str, int]:
        return await self._request("GET", "/queue/status", "get queue status")

    async def process_queue(self) -> bool:
        data = await self._request("POST", "/queue/process", "start queue processing")
        return data["started"]

    async def fix_stuck_campaigns(self) -> Dict[str, str]:
        data = await self._request("POST", "/queue/fix-stuck", "fix stuck campaigns")
        return data["updated"]

    async def clear_completed_jobs(self, older_than_days: Optional[int] = None) -> int:
        """Purge completed jobs; the server applies its retention when omitted."""
        params = None
        if older_than_days is not None:
            params = {"older_than_days": older_than_days}
        data = await self._request(
            "DELETE", "/queue/completed", "clear completed jobs", params=params
        )
        return data["removed"]
