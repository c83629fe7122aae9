"""Bilingual content source backed by two GC Articles (WordPress) endpoints.

English and French posts are fetched concurrently and formatted into
markdown items. The result is the English items followed by the French
items, each list in the order the endpoint returned them.
"""

import asyncio
from typing import Any

import httpx
import structlog

from content_pr_bot.config.settings import ContentConfig
from content_pr_bot.exceptions import SourceError
from content_pr_bot.models.domain import ContentItem
from content_pr_bot.sources.base import ContentSource
from content_pr_bot.sources.formatting import render_markdown, title_to_filename

log = structlog.get_logger(__name__)

LANGUAGES = ("en", "fr")


class GCArticlesSource(ContentSource):
    """Fetch posts from the English and French GC Articles endpoints."""

    def __init__(
        self,
        config: ContentConfig,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            config: Content section of the settings (endpoints, content path)
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoints(self) -> dict[str, str]:
        return {"en": self.config.endpoint_en, "fr": self.config.endpoint_fr}

    async def fetch_content_items(self) -> list[ContentItem]:
        """Fetch both languages concurrently and return formatted items."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            # Both fetches finish before the client closes; English errors win.
            results = await asyncio.gather(
                *(self._fetch_posts(client, lang) for lang in LANGUAGES), return_exceptions=True
            )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        posts_by_lang: list[list[dict[str, Any]]] = results  # type: ignore[assignment]

        items: list[ContentItem] = []
        for lang, posts in zip(LANGUAGES, posts_by_lang):
            items.extend(self._to_item(post, lang) for post in posts)

        log.info(
            "content_fetched",
            total=len(items),
            **{lang: len(posts) for lang, posts in zip(LANGUAGES, posts_by_lang)},
        )
        return items

    async def _fetch_posts(self, client: httpx.AsyncClient, lang: str) -> list[dict[str, Any]]:
        url = f"{self.endpoints[lang]}posts"
        log.info("fetching_posts", lang=lang, url=url)

        try:
            response = await client.get(url, params={"markdown": "true", "_embed": ""})
        except httpx.HTTPError as e:
            raise SourceError(f"Failed to fetch {lang} posts from {url}: {e}") from e

        if response.is_error:
            raise SourceError(f"HTTP error fetching {lang} posts from {url}: status {response.status_code}")

        try:
            posts = response.json()
        except ValueError as e:
            raise SourceError(f"Invalid JSON in {lang} posts response") from e

        if not isinstance(posts, list) or not all(isinstance(post, dict) for post in posts):
            raise SourceError(f"Expected array of posts from {lang} endpoint")

        return posts

    def _to_item(self, post: dict[str, Any], lang: str) -> ContentItem:
        try:
            filename = title_to_filename(post["title"]["rendered"])
            body = render_markdown(post, lang)
        except (KeyError, TypeError) as e:
            raise SourceError(f"Malformed {lang} post {post.get('id', '?')}: missing {e}") from e

        if not filename:
            raise SourceError(f"{lang} post {post.get('id', '?')} has a title that yields an empty filename")

        return ContentItem(path=f"{self.config.content_path}/{lang}/{filename}.md", body=body)
