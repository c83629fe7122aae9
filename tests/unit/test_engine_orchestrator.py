"""Tests for content_pr_bot/engine/orchestrator.py - end-to-end runs against an in-memory repository."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from content_pr_bot.engine.dispatch import PostPublishDispatcher
from content_pr_bot.engine.orchestrator import SyncOrchestrator, ensure_unique_paths
from content_pr_bot.enums import ReconcileAction, RunPhase
from content_pr_bot.exceptions import ProviderError, SourceError, SyncPhaseError
from content_pr_bot.models.domain import ContentItem
from content_pr_bot.sources.base import ContentSource, StaticContentSource

MARKER = "[AUTO-PR]"
BRANCH = "update-content-2024-06-01T12-30-45-123Z"


def ticking_clock(start: datetime):
    """Clock that advances one minute per call."""
    state = {"now": start}

    def _clock() -> datetime:
        current = state["now"]
        state["now"] = current + timedelta(minutes=1)
        return current

    return _clock


def make_orchestrator(git, items, clock, dispatcher=None) -> SyncOrchestrator:
    return SyncOrchestrator(
        git=git,
        source=StaticContentSource(items),
        base_branch="main",
        marker=MARKER,
        dispatcher=dispatcher,
        clock=clock,
    )


class RecordingDispatcher(PostPublishDispatcher):
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def on_run_complete(self, branch_name, items) -> None:
        self.calls.append((branch_name, list(items)))


class FailingSource(ContentSource):
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def fetch_content_items(self):
        raise self.error


class TestSyncRun:
    """Full runs covering the main content scenarios."""

    @pytest.mark.asyncio
    async def test_fresh_repository_opens_pr(self, fake_git, sample_items, fixed_clock):
        """New content on an empty repository: every file created, one PR opened."""
        dispatcher = RecordingDispatcher()

        outcome = await make_orchestrator(fake_git, sample_items, fixed_clock, dispatcher).run()

        assert outcome.branch_name == BRANCH
        assert outcome.pull_request is not None
        assert outcome.pull_request.title == f"{MARKER} Content update 2024-06-01T12-30-45-123Z"
        assert outcome.pull_request.head == BRANCH
        assert outcome.pull_request.base == "main"
        assert outcome.counts == {"created": 2, "updated": 0, "unchanged": 0}
        assert outcome.changed is True
        for item in sample_items:
            assert fake_git.file_content(BRANCH, item.path) == item.body
            assert fake_git.file_content("main", item.path) is None
        assert dispatcher.calls == [(BRANCH, sample_items)]

    @pytest.mark.asyncio
    async def test_nothing_changed_opens_no_pr(self, git_factory, sample_items, fixed_clock):
        """Repository already matches: no write, no PR, branch deleted, dispatcher gets None."""
        git = git_factory(files={item.path: item.body for item in sample_items})
        dispatcher = RecordingDispatcher()

        outcome = await make_orchestrator(git, sample_items, fixed_clock, dispatcher).run()

        assert outcome.branch_name is None
        assert outcome.pull_request is None
        assert outcome.counts == {"created": 0, "updated": 0, "unchanged": 2}
        assert git.writes == []
        assert git.pulls == []
        assert set(git.branches) == {"main"}
        assert dispatcher.calls == [(None, sample_items)]

    @pytest.mark.asyncio
    async def test_single_article_edited(self, git_factory, sample_items, fixed_clock):
        """One changed file: only that file is updated, using its current SHA."""
        english, french = sample_items
        git = git_factory(files={english.path: "stale body\n", french.path: french.body})
        _, english_sha = git.commits[git.branches["main"]][english.path]

        outcome = await make_orchestrator(git, sample_items, fixed_clock).run()

        assert outcome.counts == {"created": 0, "updated": 1, "unchanged": 1}
        assert git.writes == [
            {"path": english.path, "branch": BRANCH, "message": "Update hello-world.md", "sha": english_sha}
        ]
        assert git.file_content(BRANCH, english.path) == english.body
        assert len(git.open_automated()) == 1

    @pytest.mark.asyncio
    async def test_stale_automated_pr_is_replaced(self, fake_git, sample_items, fixed_clock):
        """A leftover automated PR is closed and replaced; human PRs stay open."""
        stale = fake_git.add_pull(f"{MARKER} Content update 2024-05-01T00-00-00-000Z", "update-content-old")
        human = fake_git.add_pull("Add contact page", "contact-page")

        outcome = await make_orchestrator(fake_git, sample_items, fixed_clock).run()

        assert outcome.reaped == [stale.number]
        assert stale.state == "closed"
        assert "update-content-old" not in fake_git.branches
        assert human.state == "open"
        assert "contact-page" in fake_git.branches
        assert fake_git.open_automated() == [outcome.pull_request]

    @pytest.mark.asyncio
    async def test_repeated_runs_keep_one_automated_pr(self, fake_git, sample_items):
        """Running again with unmerged changes supersedes the previous PR."""
        clock = ticking_clock(datetime(2024, 6, 1, tzinfo=UTC))

        first = await make_orchestrator(fake_git, sample_items, clock).run()
        second = await make_orchestrator(fake_git, sample_items, clock).run()

        assert first.pull_request is not None
        assert second.pull_request is not None
        assert first.pull_request.state == "closed"
        assert first.branch_name not in fake_git.branches
        assert fake_git.open_automated() == [second.pull_request]

    @pytest.mark.asyncio
    async def test_second_run_after_merge_is_a_no_op(self, fake_git, sample_items):
        """Once the PR's content is on main, the next run changes nothing."""
        clock = ticking_clock(datetime(2024, 6, 1, tzinfo=UTC))
        first = await make_orchestrator(fake_git, sample_items, clock).run()

        # Merge: main now points at the run branch head.
        fake_git.branches["main"] = fake_git.branches[first.branch_name]
        first.pull_request.state = "merged"
        del fake_git.branches[first.branch_name]
        writes_before = len(fake_git.writes)

        second = await make_orchestrator(fake_git, sample_items, clock).run()

        assert second.branch_name is None
        assert len(fake_git.writes) == writes_before
        assert set(fake_git.branches) == {"main"}

    @pytest.mark.asyncio
    async def test_empty_source_provisions_nothing(self, fake_git, fixed_clock):
        """No items: nothing to reconcile, so no branch is created."""
        dispatcher = RecordingDispatcher()

        outcome = await make_orchestrator(fake_git, [], fixed_clock, dispatcher).run()

        assert outcome.branch_name is None
        assert outcome.item_results == []
        assert not any(call[0] == "create_branch" for call in fake_git.calls)
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_item_results_in_input_order(self, git_factory, fixed_clock):
        items = [ContentItem(path="b.md", body="b"), ContentItem(path="a.md", body="a")]
        git = git_factory(files={"a.md": "a"})

        outcome = await make_orchestrator(git, items, fixed_clock).run()

        assert [(r.path, r.action) for r in outcome.item_results] == [
            ("b.md", ReconcileAction.CREATED),
            ("a.md", ReconcileAction.UNCHANGED),
        ]

    @pytest.mark.asyncio
    async def test_reap_and_fetch_overlap(self, fake_git, sample_items, fixed_clock):
        """Reaping and fetching run concurrently rather than one after the other."""
        fetch_started = asyncio.Event()
        reap_started = asyncio.Event()
        original_list = fake_git.list_open_pull_requests

        async def list_prs():
            reap_started.set()
            await asyncio.wait_for(fetch_started.wait(), timeout=1)
            return await original_list()

        class WaitingSource(ContentSource):
            async def fetch_content_items(self):
                fetch_started.set()
                await asyncio.wait_for(reap_started.wait(), timeout=1)
                return sample_items

        fake_git.list_open_pull_requests = list_prs
        orchestrator = SyncOrchestrator(
            git=fake_git, source=WaitingSource(), base_branch="main", marker=MARKER, clock=fixed_clock
        )

        outcome = await orchestrator.run()

        assert outcome.branch_name == BRANCH


class TestSingleItemScenarios:
    """One item at en/a.md against each remote state."""

    ITEM = ContentItem(path="en/a.md", body="X")

    @pytest.mark.asyncio
    async def test_absent_path_is_created(self, fake_git, fixed_clock):
        outcome = await make_orchestrator(fake_git, [self.ITEM], fixed_clock).run()

        assert fake_git.writes == [{"path": "en/a.md", "branch": BRANCH, "message": "Add a.md", "sha": None}]
        assert outcome.pull_request is not None
        assert "en/a.md" in outcome.pull_request.body

    @pytest.mark.asyncio
    async def test_identical_path_is_skipped(self, git_factory, fixed_clock):
        git = git_factory(files={"en/a.md": "X"})

        outcome = await make_orchestrator(git, [self.ITEM], fixed_clock).run()

        assert git.writes == []
        assert outcome.branch_name is None
        assert BRANCH not in git.branches

    @pytest.mark.asyncio
    async def test_different_path_is_updated(self, git_factory, fixed_clock):
        git = git_factory(files={"en/a.md": "Y"})
        _, captured_sha = git.commits[git.branches["main"]]["en/a.md"]

        outcome = await make_orchestrator(git, [self.ITEM], fixed_clock).run()

        assert git.writes == [{"path": "en/a.md", "branch": BRANCH, "message": "Update a.md", "sha": captured_sha}]
        assert outcome.branch_name == BRANCH


class TestSyncRunFailures:
    """Tests for phase-labelled failures."""

    @pytest.mark.asyncio
    async def test_fetch_failure(self, fake_git, fixed_clock):
        orchestrator = SyncOrchestrator(
            git=fake_git,
            source=FailingSource(SourceError("GC Articles returned HTTP 500")),
            base_branch="main",
            marker=MARKER,
            clock=fixed_clock,
        )

        with pytest.raises(SyncPhaseError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.phase == RunPhase.FETCH
        assert exc_info.value.message == "Error during fetch: GC Articles returned HTTP 500"
        assert not any(call[0] == "create_branch" for call in fake_git.calls)

    @pytest.mark.asyncio
    async def test_duplicate_paths_fail_fetch(self, fake_git, fixed_clock):
        items = [ContentItem(path="a.md", body="1"), ContentItem(path="a.md", body="2")]

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(fake_git, items, fixed_clock).run()

        assert exc_info.value.phase == RunPhase.FETCH
        assert "a.md" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_reap_failure(self, fake_git, sample_items, fixed_clock):
        fake_git.fail_on["list_open_pull_requests"] = ProviderError("Bad credentials", 401)

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(fake_git, sample_items, fixed_clock).run()

        assert exc_info.value.phase == RunPhase.REAP
        assert "Bad credentials (HTTP 401)" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_reap_failure_reported_before_fetch_failure(self, fake_git, fixed_clock):
        fake_git.fail_on["list_open_pull_requests"] = ProviderError("down", 503)
        orchestrator = SyncOrchestrator(
            git=fake_git,
            source=FailingSource(SourceError("also down")),
            base_branch="main",
            marker=MARKER,
            clock=fixed_clock,
        )

        with pytest.raises(SyncPhaseError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.phase == RunPhase.REAP

    @pytest.mark.asyncio
    async def test_missing_base_branch(self, sample_items, fixed_clock, git_factory):
        git = git_factory(base_branch="trunk")

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(git, sample_items, fixed_clock).run()

        assert exc_info.value.phase == RunPhase.PROVISION

    @pytest.mark.asyncio
    async def test_reconcile_failure_leaves_branch(self, fake_git, sample_items, fixed_clock):
        """A failed write aborts the run; nothing is rolled back and no PR opened."""
        fake_git.fail_on["write_file"] = ProviderError("conflict", 409)

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(fake_git, sample_items, fixed_clock).run()

        assert exc_info.value.phase == RunPhase.RECONCILE
        assert BRANCH in fake_git.branches
        assert fake_git.pulls == []

    @pytest.mark.asyncio
    async def test_publish_failure(self, fake_git, sample_items, fixed_clock):
        fake_git.fail_on["open_pull_request"] = ProviderError("validation failed", 422)

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(fake_git, sample_items, fixed_clock).run()

        assert exc_info.value.phase == RunPhase.PUBLISH

    @pytest.mark.asyncio
    async def test_dispatch_failure(self, fake_git, sample_items, fixed_clock):
        dispatcher = Mock(spec=PostPublishDispatcher)
        dispatcher.on_run_complete = AsyncMock(side_effect=RuntimeError("disk full"))

        with pytest.raises(SyncPhaseError) as exc_info:
            await make_orchestrator(fake_git, sample_items, fixed_clock, dispatcher).run()

        assert exc_info.value.phase == RunPhase.DISPATCH
        assert exc_info.value.detail == "RuntimeError: disk full"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestFromSettings:
    def test_uses_settings_values(self, settings, fake_git):
        orchestrator = SyncOrchestrator.from_settings(settings, fake_git, StaticContentSource([]))

        assert orchestrator.provisioner.base_branch == "main"
        assert orchestrator.provisioner.prefix == "update-content"
        assert orchestrator.reaper.marker == MARKER
        assert orchestrator.publisher.marker == MARKER


class TestEnsureUniquePaths:
    def test_unique_paths_pass(self, sample_items):
        ensure_unique_paths(sample_items)

    def test_lists_every_duplicate(self):
        items = [ContentItem(path=p, body="") for p in ("b.md", "a.md", "b.md", "a.md", "c.md")]

        with pytest.raises(SourceError, match="Duplicate content paths: a.md, b.md"):
            ensure_unique_paths(items)
