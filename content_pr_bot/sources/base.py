"""Abstract content source consumed by the sync engine."""

from abc import ABC, abstractmethod

from content_pr_bot.models.domain import ContentItem


class ContentSource(ABC):
    """Produces the full set of content items for a run."""

    @abstractmethod
    async def fetch_content_items(self) -> list[ContentItem]:
        """Fetch and format every item for this run.

        Returns:
            Items in source order. Paths are repository-relative and unique.

        Raises:
            SourceError: If the source cannot be read or returns bad data.
        """
        pass


class StaticContentSource(ContentSource):
    """Serves a fixed list of items; useful for tests and dry runs."""

    def __init__(self, items: list[ContentItem]) -> None:
        self.items = list(items)

    async def fetch_content_items(self) -> list[ContentItem]:
        return list(self.items)
