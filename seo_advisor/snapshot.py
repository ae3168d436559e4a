"""
Competitive snapshot providers.

The snapshot is background enrichment: it is fetched after the findings are
produced and never blocks them. Only a mocked provider ships here; any other
source can be plugged in by implementing SnapshotProvider.
"""
import asyncio
import logging
from typing import Protocol

from seo_advisor import config
from seo_advisor.models import CompetitiveSnapshot

logger = logging.getLogger(__name__)


class SnapshotProvider(Protocol):
    async def analyze(self, keyword: str) -> CompetitiveSnapshot:
        ...


class MockSnapshotProvider:
    """Returns fabricated, keyword-derived data after a fixed delay."""

    def __init__(self, delay: float = None):
        self.delay = delay if delay is not None else config.SNAPSHOT_DELAY_SECONDS

    async def analyze(self, keyword: str) -> CompetitiveSnapshot:
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValueError("Keyword cannot be empty")

        logger.info(f"Building mock competitive snapshot for '{keyword}'")
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        return CompetitiveSnapshot(
            top_keywords=[
                keyword,
                f"best {keyword}",
                f"{keyword} guide",
                f"{keyword} tips",
                f"how to choose {keyword}",
            ],
            avg_title_length=55,
            avg_description_length=150,
            common_title_elements=["Best", "Guide", "How to", "Top 10"],
        )
