"""
Session-scoped analysis state.

An AnalysisSession owns everything that outlives a single function call: the
current page, its findings, the acknowledgement tracker and the competitive
snapshot. Each analysis bumps a generation counter; results that come back
for an older generation are dropped so a slow earlier request can never
overwrite a newer one.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, List, Optional

from seo_advisor import config
from seo_advisor.errors import AdvisorError, InputError
from seo_advisor.extractor import parse
from seo_advisor.fetcher import ProxyClient, validate_target_url
from seo_advisor.metrics import compute_metrics
from seo_advisor.models import (
    AnalysisResult, CompetitiveSnapshot, Finding, PageDocument, PageMetrics, ProgressResponse
)
from seo_advisor.rules import RuleThresholds, evaluate_metrics, rule_thresholds
from seo_advisor.snapshot import MockSnapshotProvider, SnapshotProvider
from seo_advisor.tracker import FindingTracker, create_tracker

logger = logging.getLogger(__name__)


class AnalysisSession:
    def __init__(
        self,
        session_id: str = "default",
        proxy_client: ProxyClient = None,
        snapshot_provider: SnapshotProvider = None,
        thresholds: RuleThresholds = None,
        tracker: FindingTracker = None,
    ):
        self.session_id = session_id
        self.proxy_client = proxy_client or ProxyClient()
        self.snapshot_provider = snapshot_provider or MockSnapshotProvider()
        self.thresholds = thresholds or rule_thresholds()
        self.tracker = tracker or create_tracker(config.TRACKER_MODE)

        self.generation = 0
        self.url: Optional[str] = None
        self.keyword: Optional[str] = None
        self.document: Optional[PageDocument] = None
        self.metrics: Optional[PageMetrics] = None
        self.findings: List[Finding] = []
        self.snapshot: Optional[CompetitiveSnapshot] = None
        self.snapshot_error: Optional[str] = None
        self._snapshot_task: Optional[asyncio.Task] = None

    def _clear(self) -> None:
        self._cancel_snapshot()
        self.url = None
        self.keyword = None
        self.document = None
        self.metrics = None
        self.findings = []
        self.snapshot = None
        self.snapshot_error = None
        self.tracker.reset(0)

    async def analyze(self, url: str, keyword: str, request_id: str = 'N/A') -> Optional[AnalysisResult]:
        """
        Fetch, parse and evaluate a page, replacing the session's current results.

        Returns:
            The AnalysisResult, or None if a newer analysis started while this
            one was in flight (its results are discarded).

        Raises:
            InputError: If the URL or keyword is missing or invalid
            UpstreamHTTPError, NetworkError, ParseError: If the fetch fails
        """
        url = validate_target_url(url)
        keyword = (keyword or "").strip()
        if not keyword:
            raise InputError("Please enter a target keyword")

        self.generation += 1
        generation = self.generation
        self._clear()
        logger.info(f"[{request_id}] Starting analysis #{generation} for {url}, keyword '{keyword}'")

        try:
            html = await self.proxy_client.fetch_html(url)
        except AdvisorError as e:
            if generation != self.generation:
                logger.info(f"[{request_id}] Ignoring failure of analysis #{generation}, superseded by #{self.generation}: {e.user_message}")
                return None
            raise

        if generation != self.generation:
            logger.info(f"[{request_id}] Discarding results of analysis #{generation}, superseded by #{self.generation}")
            return None

        document = parse(html)
        metrics = compute_metrics(document, keyword)
        findings = evaluate_metrics(metrics, self.thresholds)

        self.url = url
        self.keyword = keyword
        self.document = document
        self.metrics = metrics
        self.findings = findings
        self.tracker.reset(len(findings))
        logger.info(f"[{request_id}] Analysis #{generation} produced {len(findings)} findings")

        self._snapshot_task = asyncio.create_task(self._load_snapshot(generation, keyword, request_id))

        return AnalysisResult(
            generation=generation,
            url=url,
            keyword=keyword,
            document=document,
            metrics=metrics,
            findings=findings,
        )

    async def _load_snapshot(self, generation: int, keyword: str, request_id: str) -> None:
        try:
            snapshot = await self.snapshot_provider.analyze(keyword)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[{request_id}] Competitive snapshot failed: {e}", exc_info=True)
            if generation == self.generation:
                self.snapshot_error = str(e)
            return

        if generation != self.generation:
            logger.info(f"[{request_id}] Dropping stale competitive snapshot for analysis #{generation}")
            return
        self.snapshot = snapshot
        logger.info(f"[{request_id}] Competitive snapshot ready for '{keyword}'")

    def _cancel_snapshot(self) -> None:
        if self._snapshot_task is not None and not self._snapshot_task.done():
            self._snapshot_task.cancel()
        self._snapshot_task = None

    async def wait_for_snapshot(self) -> Optional[CompetitiveSnapshot]:
        """Wait for the background snapshot of the current analysis, if any."""
        task = self._snapshot_task
        if task is not None:
            # wait() never cancels the snapshot task when the caller is cancelled
            await asyncio.wait([task])
        return self.snapshot

    @property
    def snapshot_status(self) -> str:
        if self._snapshot_task is None:
            return "idle"
        if not self._snapshot_task.done():
            return "pending"
        if self.snapshot_error:
            return "error"
        if self.snapshot is not None:
            return "ready"
        return "idle"

    def set_completion(self, index: int, checked: bool) -> ProgressResponse:
        self.tracker.set_completion(index, checked)
        return self.progress()

    def progress(self) -> ProgressResponse:
        return ProgressResponse(
            mode=self.tracker.mode,
            total=self.tracker.total,
            completed=self.tracker.completed_flags(),
            progress_ratio=self.tracker.progress_ratio(),
            watermark=self.tracker.watermark if self.tracker.mode == "watermark" else None,
        )

    def close(self) -> None:
        self._cancel_snapshot()


class SessionStore:
    """
    Keeps one AnalysisSession per session id.

    The store is bounded: it holds at most ``max_sessions`` sessions, evicting
    the least recently used one, and drops sessions that have been idle for
    longer than ``ttl`` seconds. Evicted sessions are closed.
    """

    def __init__(
        self,
        factory: Callable[[str], AnalysisSession] = None,
        max_sessions: int = None,
        ttl: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.factory = factory or (lambda session_id: AnalysisSession(session_id=session_id))
        self.max_sessions = max(1, max_sessions if max_sessions is not None else config.MAX_SESSIONS)
        self.ttl = ttl if ttl is not None else config.SESSION_TTL_SECONDS
        self.clock = clock
        # session id -> (session, last access), least recently used first
        self.sessions: "OrderedDict[str, tuple]" = OrderedDict()

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self.sessions

    def get(self, session_id: str) -> AnalysisSession:
        now = self.clock()
        self._expire(now)

        entry = self.sessions.pop(session_id, None)
        if entry is None:
            session = self.factory(session_id)
            logger.info(f"Created analysis session '{session_id}'")
        else:
            session = entry[0]
        self.sessions[session_id] = (session, now)

        while len(self.sessions) > self.max_sessions:
            evicted_id, (evicted, _) = self.sessions.popitem(last=False)
            evicted.close()
            logger.info(f"Evicted analysis session '{evicted_id}' (store limit {self.max_sessions})")
        return session

    def _expire(self, now: float) -> None:
        while self.sessions:
            session_id, (session, last_access) = next(iter(self.sessions.items()))
            if now - last_access <= self.ttl:
                break
            del self.sessions[session_id]
            session.close()
            logger.info(f"Expired idle analysis session '{session_id}'")

    def close(self) -> None:
        for session, _ in self.sessions.values():
            session.close()
        self.sessions.clear()
