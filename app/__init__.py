"""Post Dispatch - Scheduled Social Publishing

Background dispatcher that publishes due posts to third-party social platforms
with per-platform adapters, retry/backoff and terminal failure handling.
"""

__version__ = "0.1.0"
