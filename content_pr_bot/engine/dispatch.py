"""Follow-on work after the publish step.

A dispatcher receives the branch backing the new PR, or ``None`` when the
run opened no PR, in which case it must do nothing.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

import structlog

from content_pr_bot.models.domain import ContentItem

log = structlog.get_logger(__name__)


class PostPublishDispatcher(ABC):
    """Hook invoked once per run, after the publisher."""

    @abstractmethod
    async def on_run_complete(self, branch_name: str | None, items: Sequence[ContentItem]) -> None:
        """Handle the end of a run.

        Args:
            branch_name: Branch of the opened PR, or None if no PR was made
            items: The items reconciled in this run
        """
        pass


class NullDispatcher(PostPublishDispatcher):
    """Does nothing."""

    async def on_run_complete(self, branch_name: str | None, items: Sequence[ContentItem]) -> None:
        return None


class LocalMaterializer(PostPublishDispatcher):
    """Write the run's items into a local checkout.

    Files land at ``<output_dir>/<item.path>``; run it from a checkout of
    ``branch_name`` so anything committed from there goes onto the PR.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def write_items(self, items: Sequence[ContentItem]) -> list[Path]:
        """Write every item, creating directories as needed."""
        root = self.output_dir.resolve()
        written: list[Path] = []
        for item in items:
            target = (root / item.path).resolve()
            if not target.is_relative_to(root):
                raise ValueError(f"Item path escapes output directory: {item.path}")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(item.body, encoding="utf-8")
            log.debug("file_materialized", path=str(target))
            written.append(target)
        return written

    async def on_run_complete(self, branch_name: str | None, items: Sequence[ContentItem]) -> None:
        if branch_name is None:
            log.info("materialize_skipped", reason="no pull request opened")
            return

        written = self.write_items(items)
        log.info("materialize_complete", branch=branch_name, files=len(written), output_dir=str(self.output_dir))
