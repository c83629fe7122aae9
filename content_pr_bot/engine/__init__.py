"""Content reconciliation and pull-request lifecycle engine.

Key Components:
    - SyncOrchestrator: Runs all phases once
    - StaleRunReaper: Closes earlier automated PRs and their branches
    - BranchProvisioner: Creates the run branch from the base tip
    - ContentReconciler: Create/update/skip per item
    - PullRequestPublisher: Opens the PR or deletes the unused branch
    - PostPublishDispatcher: Follow-on hook (NullDispatcher, LocalMaterializer)
"""

from content_pr_bot.engine.branching import BranchProvisioner
from content_pr_bot.engine.dispatch import LocalMaterializer, NullDispatcher, PostPublishDispatcher
from content_pr_bot.engine.orchestrator import SyncOrchestrator
from content_pr_bot.engine.publisher import PullRequestPublisher
from content_pr_bot.engine.reaper import StaleRunReaper
from content_pr_bot.engine.reconciler import ContentReconciler, ReconcileReport

__all__ = [
    "BranchProvisioner",
    "ContentReconciler",
    "LocalMaterializer",
    "NullDispatcher",
    "PostPublishDispatcher",
    "PullRequestPublisher",
    "ReconcileReport",
    "StaleRunReaper",
    "SyncOrchestrator",
]
