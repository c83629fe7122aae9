"""Content sources that produce the items a run reconciles.

Key Components:
    - ContentSource: Abstract async source of ContentItem lists
    - GCArticlesSource: English/French GC Articles endpoints
    - StaticContentSource: Fixed item list
"""

from content_pr_bot.sources.base import ContentSource, StaticContentSource
from content_pr_bot.sources.gc_articles import GCArticlesSource

__all__ = [
    "ContentSource",
    "GCArticlesSource",
    "StaticContentSource",
]
