"""content-pr-bot: sync bilingual GC Articles content into a repository via one automated pull request per run."""

__version__ = "0.1.0"
