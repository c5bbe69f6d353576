"""Async HTTP client for the QueryLoop API with optimistic vote updates.

``OptimisticVote`` is a command: it applies the expected result to local
state right away, sends the mutation, then replaces the local state with the
server's authoritative score, or restores the previous state if the request
fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class QueryLoopClientError(RuntimeError):
    """Raised when the API answers with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


@dataclass
class VoteView:
    """Locally displayed vote state for one target."""

    target_type: str
    target_id: str
    score: int = 0
    user_vote: int = 0


def next_vote(current: int, requested: int) -> int:
    """Value on record after pressing ``requested`` while ``current`` is set."""
    return 0 if current == requested else requested


class QueryLoopClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the public API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> QueryLoopClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("error") or body.get("detail") or response.text
            raise QueryLoopClientError(response.status_code, str(message))
        return response.json()

    async def cast_vote(self, target_type: str, target_id: str, value: int) -> dict[str, int]:
        return await self._request(
            "POST",
            "/api/v1/votes/",
            json={"target_type": target_type, "target_id": target_id, "value": value},
        )

    async def vote_state(self, target_type: str, target_id: str) -> dict[str, int]:
        return await self._request("GET", f"/api/v1/votes/{target_type}/{target_id}")

    async def toggle_favorite(self, question_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/api/v1/questions/{question_id}/favorite")

    async def get_question(self, question_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/v1/questions/{question_id}")

    async def moderate(self, action: str, question_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/api/admin/moderation",
            json={"action": action, "questionId": question_id},
        )


class OptimisticVote:
    """Speculatively apply a vote to a ``VoteView`` and reconcile with the server."""

    def __init__(self, client: QueryLoopClient, view: VoteView, value: int) -> None:
        if value not in (1, -1):
            raise ValueError("Vote value must be 1 or -1")
        self.client = client
        self.view = view
        self.value = value
        self._previous: tuple[int, int] | None = None

    def apply(self) -> None:
        """Update the view as if the server had accepted the vote."""
        self._previous = (self.view.score, self.view.user_vote)
        target = next_vote(self.view.user_vote, self.value)
        self.view.score = self.view.score - self.view.user_vote + target
        self.view.user_vote = target

    def rollback(self) -> None:
        if self._previous is not None:
            self.view.score, self.view.user_vote = self._previous
            self._previous = None

    async def execute(self) -> VoteView:
        """Apply, send, then reconcile; on failure restore and re-raise."""
        self.apply()
        try:
            result = await self.client.cast_vote(
                self.view.target_type, self.view.target_id, self.value
            )
        except (QueryLoopClientError, httpx.HTTPError) as err:
            logger.warning(
                "Vote on %s %s failed, rolling back: %s",
                self.view.target_type,
                self.view.target_id,
                err,
            )
            self.rollback()
            raise
        self.view.score = int(result["score"])
        self.view.user_vote = int(result["user_vote"])
        self._previous = None
        return self.view
