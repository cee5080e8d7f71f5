# src/clipgate/services/moderation.py
"""Text moderation for user submissions.

The classifier itself is external (the OpenAI moderation endpoint); this module
only speaks its wire format and applies the policy: anything flagged is
rejected, and anything that prevents a verdict is a dependency failure so the
submission fails closed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from clipgate.core.errors import DependencyError, PolicyError

logger = logging.getLogger(__name__)

HTTP_OK = 200


@dataclass(frozen=True)
class ModerationVerdict:
    """Classifier output reduced to what the gate needs."""

    flagged: bool
    categories: frozenset[str] = field(default_factory=frozenset)


class TextClassifier(Protocol):
    async def classify(self, text: str) -> ModerationVerdict: ...


class OpenAIModerationClient:
    """HTTP client for an OpenAI-compatible moderation endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None,
        url: str = "https://api.openai.com/v1/moderations",
        model: str | None = None,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            logger.warning("OPENAI_API_KEY is not set; every moderated submission will fail")
        self._api_key = api_key
        self._url = url
        self._model = model
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def classify(self, text: str) -> ModerationVerdict:
        """Classify ``text``.

        Raises:
            DependencyError: If the service is unconfigured, unreachable, or
                returns something other than a moderation result.
        """
        if not self._api_key:
            raise DependencyError("Moderation is not configured (OPENAI_API_KEY missing).")

        body: dict[str, Any] = {"input": text}
        if self._model:
            body["model"] = self._model
        try:
            response = await self._client.post(
                self._url,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as exc:
            raise DependencyError(f"Moderation request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise DependencyError(
                f"Moderation service responded with {response.status_code}: {_error_message(response)}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DependencyError("Moderation service returned invalid JSON.") from exc
        return parse_moderation_payload(payload)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return "Moderation service error."
    error = data.get("error") if isinstance(data, Mapping) else None
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return "Moderation service error."


def parse_moderation_payload(payload: Any) -> ModerationVerdict:
    """Extract the verdict from a moderation response body."""
    results = payload.get("results") if isinstance(payload, Mapping) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], Mapping):
        raise DependencyError("Invalid moderation service response.")
    result = results[0]
    flagged = result.get("flagged")
    if not isinstance(flagged, bool):
        raise DependencyError("Invalid moderation service response.")
    raw_categories = result.get("categories") or {}
    if not isinstance(raw_categories, Mapping):
        raise DependencyError("Invalid moderation service response.")
    categories = frozenset(name for name, hit in raw_categories.items() if hit is True)
    return ModerationVerdict(flagged=flagged, categories=categories)


class ModerationGate:
    """Map classifier verdicts onto accept/reject."""

    def __init__(self, classifier: TextClassifier, *, timeout_seconds: float = 10.0) -> None:
        self._classifier = classifier
        self._timeout = timeout_seconds

    async def classify(self, text: str) -> ModerationVerdict:
        """Return the classifier's verdict, bounded by the gate's timeout."""
        try:
            return await asyncio.wait_for(self._classifier.classify(text), self._timeout)
        except TimeoutError as exc:
            raise DependencyError("Moderation service timed out.") from exc

    async def enforce(self, text: str) -> ModerationVerdict:
        """Raise :class:`PolicyError` if ``text`` is flagged, whatever the category."""
        verdict = await self.classify(text)
        if verdict.flagged:
            logger.info("Submission flagged by moderation: %s", ", ".join(sorted(verdict.categories)))
            raise PolicyError()
        return verdict
