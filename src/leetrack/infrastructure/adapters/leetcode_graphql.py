import logging
from typing import Any

import httpx

from leetrack.domain.constants import DEFAULT_BASE_URL, REQUEST_TIMEOUT
from leetrack.domain.errors import MetadataLookupError
from leetrack.domain.models import ProblemIdentity
from leetrack.domain.ports import MetadataClient

QUERY_QUESTION = """
query questionData($titleSlug: String!) {
  question(titleSlug: $titleSlug) {
    questionId
    questionFrontendId
    title
    titleSlug
    difficulty
    __typename
  }
}
"""


class LeetCodeGraphQLClient(MetadataClient):
    """Resolves problem metadata through the judge's public GraphQL endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.endpoint = f"{self.base_url}/graphql"
        self.timeout = timeout
        self._client = client

    async def resolve(self, slug: str) -> ProblemIdentity:
        if not slug or not slug.strip():
            raise MetadataLookupError("empty problem slug")

        question = await self._query_question(slug)
        frontend_id = question.get("questionFrontendId")
        if not frontend_id:
            raise MetadataLookupError(f"no frontend id for '{slug}'")

        title_slug = question.get("titleSlug") or slug
        identity = ProblemIdentity(
            id=str(frontend_id),
            title=question.get("title", ""),
            difficulty=question.get("difficulty", ""),
            url=f"{self.base_url}/problems/{title_slug}/",
        )
        self.logger.debug(f"Resolved '{slug}' -> {identity.id} {identity.title}")
        return identity

    async def _query_question(self, slug: str) -> dict[str, Any]:
        payload = {"query": QUERY_QUESTION, "variables": {"titleSlug": slug}}
        try:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=self.timeout)
            resp = await self._client.post(self.endpoint, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Metadata query for '{slug}' failed: {e}")
            raise MetadataLookupError(f"metadata query for '{slug}' failed: {e}") from e

        if not isinstance(data, dict) or not data.get("data"):
            errors = data.get("errors") if isinstance(data, dict) else None
            raise MetadataLookupError(f"no data for '{slug}': {errors or data}")

        question = data["data"].get("question")
        if not question:
            raise MetadataLookupError(f"unknown problem '{slug}'")
        return question

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
