"""
Tests for the session-scoped analysis flow.
"""

import asyncio
import pytest
import os
import sys
from unittest.mock import AsyncMock

# Add the project root to the path when running tests from the repository root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seo_advisor.errors import InputError, UpstreamHTTPError
from seo_advisor.models import CompetitiveSnapshot
from seo_advisor.rules import DEFAULT_THRESHOLDS
from seo_advisor.session import AnalysisSession, SessionStore
from seo_advisor.snapshot import MockSnapshotProvider
from seo_advisor.tracker import ChecklistTracker, FindingTracker

URL_A = "https://a.example.com/"
URL_B = "https://b.example.com/"

PAGE_A = "<html><head><title>A</title></head><body></body></html>"
PAGE_B = """
<html><head><title>Shoes for runners and walkers of every kind</title></head>
<body><h1>Shoes</h1><a href="/1">1</a><a href="/2">2</a><p>shoes shoes</p></body></html>
"""


class StaticProxy:
    """Returns a fixed page per URL."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def fetch_html(self, url):
        self.calls.append(url)
        return self.pages[url]


class GatedProxy:
    """Holds each fetch until its gate is opened by the test. Exception pages are raised."""

    def __init__(self, pages):
        self.pages = pages
        self.gates = {url: asyncio.Event() for url in pages}

    async def fetch_html(self, url):
        await self.gates[url].wait()
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


class GatedSnapshotProvider:
    def __init__(self):
        self.gate = asyncio.Event()
        self.keywords = []

    async def analyze(self, keyword):
        self.keywords.append(keyword)
        await self.gate.wait()
        return CompetitiveSnapshot(top_keywords=[keyword], avg_title_length=50)


def make_session(proxy, provider=None, tracker=None):
    return AnalysisSession(
        proxy_client=proxy,
        snapshot_provider=provider or MockSnapshotProvider(delay=0),
        thresholds=DEFAULT_THRESHOLDS,
        tracker=tracker or FindingTracker(),
    )


# --- Analysis ---

@pytest.mark.asyncio
async def test_analyze_produces_findings_and_resets_tracker():
    session = make_session(StaticProxy({URL_A: PAGE_A}))
    result = await session.analyze(URL_A, "shoes", request_id="test")

    assert result.generation == 1
    assert result.document.title == "A"
    assert [f.rule_id for f in result.findings] == [
        "title-length", "keyword-in-title", "description-length", "keyword-in-description",
        "h1-missing", "link-count", "content-length",
    ]
    assert session.findings == result.findings
    assert session.tracker.total == 7
    assert session.tracker.watermark == 0
    session.close()


@pytest.mark.asyncio
async def test_new_analysis_replaces_previous_state():
    session = make_session(StaticProxy({URL_A: PAGE_A, URL_B: PAGE_B}))
    await session.analyze(URL_A, "shoes")
    session.set_completion(3, True)
    assert session.tracker.watermark == 4

    result = await session.analyze(URL_B, "shoes")

    assert session.url == URL_B
    assert session.document == result.document
    assert session.tracker.watermark == 0
    assert session.tracker.total == len(result.findings)
    session.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("keyword", ["", "   ", None])
async def test_empty_keyword_is_rejected_before_fetch(keyword):
    proxy = StaticProxy({URL_A: PAGE_A})
    session = make_session(proxy)
    with pytest.raises(InputError):
        await session.analyze(URL_A, keyword)
    assert proxy.calls == []


@pytest.mark.asyncio
async def test_invalid_url_is_rejected_before_fetch():
    proxy = StaticProxy({URL_A: PAGE_A})
    session = make_session(proxy)
    with pytest.raises(InputError):
        await session.analyze("mailto:someone@example.com", "shoes")
    assert proxy.calls == []


@pytest.mark.asyncio
async def test_fetch_error_propagates_and_leaves_no_findings():
    proxy = AsyncMock()
    proxy.fetch_html = AsyncMock(side_effect=UpstreamHTTPError(404, "Not Found"))
    session = make_session(proxy)

    with pytest.raises(UpstreamHTTPError):
        await session.analyze(URL_A, "shoes")
    assert session.findings == []
    assert session.document is None
    assert session.snapshot_status == "idle"


@pytest.mark.asyncio
async def test_stale_analysis_is_discarded():
    """A slow earlier request must not overwrite a newer one."""
    proxy = GatedProxy({URL_A: PAGE_A, URL_B: PAGE_B})
    session = make_session(proxy)

    first = asyncio.create_task(session.analyze(URL_A, "shoes"))
    second = asyncio.create_task(session.analyze(URL_B, "shoes"))
    for _ in range(3):
        await asyncio.sleep(0)

    proxy.gates[URL_B].set()
    newer = await second
    proxy.gates[URL_A].set()
    stale = await first

    assert stale is None
    assert newer.generation == 2
    assert session.url == URL_B
    assert session.findings == newer.findings
    session.close()


@pytest.mark.asyncio
async def test_stale_fetch_failure_is_discarded():
    """A superseded request that fails must not surface its error."""
    proxy = GatedProxy({URL_A: UpstreamHTTPError(500, "Internal Server Error"), URL_B: PAGE_B})
    session = make_session(proxy)

    first = asyncio.create_task(session.analyze(URL_A, "shoes"))
    await asyncio.sleep(0)
    proxy.gates[URL_B].set()
    newer = await session.analyze(URL_B, "shoes")
    proxy.gates[URL_A].set()

    assert await first is None
    assert newer.generation == 2
    assert session.url == URL_B
    assert session.findings == newer.findings
    session.close()


# --- Competitive snapshot ---

@pytest.mark.asyncio
async def test_snapshot_does_not_block_findings():
    provider = GatedSnapshotProvider()
    session = make_session(StaticProxy({URL_A: PAGE_A}), provider=provider)

    result = await session.analyze(URL_A, "shoes")
    assert result.findings
    await asyncio.sleep(0)
    assert session.snapshot_status == "pending"
    assert session.snapshot is None

    provider.gate.set()
    snapshot = await session.wait_for_snapshot()
    assert snapshot.top_keywords == ["shoes"]
    assert session.snapshot_status == "ready"


@pytest.mark.asyncio
async def test_stale_snapshot_is_not_kept():
    provider = GatedSnapshotProvider()
    session = make_session(StaticProxy({URL_A: PAGE_A, URL_B: PAGE_B}), provider=provider)

    await session.analyze(URL_A, "shoes")
    await asyncio.sleep(0)
    await session.analyze(URL_B, "boots")
    provider.gate.set()
    snapshot = await session.wait_for_snapshot()

    assert snapshot.top_keywords == ["boots"]


@pytest.mark.asyncio
async def test_snapshot_failure_is_reported_without_affecting_findings():
    provider = AsyncMock()
    provider.analyze = AsyncMock(side_effect=RuntimeError("snapshot backend down"))
    session = make_session(StaticProxy({URL_A: PAGE_A}), provider=provider)

    result = await session.analyze(URL_A, "shoes")
    await session.wait_for_snapshot()

    assert session.snapshot_status == "error"
    assert session.snapshot_error == "snapshot backend down"
    assert session.findings == result.findings


@pytest.mark.asyncio
async def test_mock_snapshot_provider_shape():
    snapshot = await MockSnapshotProvider(delay=0).analyze(" shoes ")
    assert snapshot.top_keywords[0] == "shoes"
    assert snapshot.avg_title_length == 55
    assert snapshot.avg_description_length == 150
    assert snapshot.common_title_elements


@pytest.mark.asyncio
async def test_cancelling_snapshot_waiter_does_not_cancel_snapshot():
    provider = GatedSnapshotProvider()
    session = make_session(StaticProxy({URL_A: PAGE_A}), provider=provider)
    await session.analyze(URL_A, "shoes")

    waiter = asyncio.create_task(session.wait_for_snapshot())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert session.snapshot_status == "pending"

    provider.gate.set()
    snapshot = await session.wait_for_snapshot()
    assert snapshot.top_keywords == ["shoes"]


# --- Progress ---

@pytest.mark.asyncio
async def test_progress_reflects_completion_immediately():
    session = make_session(StaticProxy({URL_A: PAGE_A}))
    await session.analyze(URL_A, "shoes")

    progress = session.set_completion(2, True)
    assert progress.watermark == 3
    assert progress.progress_ratio == pytest.approx(3 / 7)

    progress = session.set_completion(0, False)
    assert progress.watermark == 0
    assert progress.progress_ratio == 0.0
    assert progress.completed == [False] * 7
    session.close()


@pytest.mark.asyncio
async def test_checklist_mode_progress():
    session = make_session(StaticProxy({URL_A: PAGE_A}), tracker=ChecklistTracker())
    await session.analyze(URL_A, "shoes")

    session.set_completion(2, True)
    progress = session.set_completion(0, False)
    assert progress.mode == "checklist"
    assert progress.watermark is None
    assert progress.completed[2] is True
    session.close()


def test_session_store_reuses_sessions():
    store = SessionStore(factory=lambda session_id: make_session(StaticProxy({}), tracker=FindingTracker()))
    first = store.get("abc")
    assert store.get("abc") is first
    assert store.get("other") is not first


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_session_store_evicts_least_recently_used():
    provider = GatedSnapshotProvider()
    store = SessionStore(
        factory=lambda session_id: make_session(StaticProxy({URL_A: PAGE_A}), provider=provider),
        max_sessions=2,
    )
    oldest = store.get("one")
    await oldest.analyze(URL_A, "shoes")
    assert oldest.snapshot_status == "pending"

    store.get("two")
    store.get("three")

    assert len(store) == 2
    assert "one" not in store
    assert oldest.snapshot_status == "idle"
    assert store.get("one") is not oldest


def test_session_store_access_refreshes_recency():
    store = SessionStore(factory=lambda session_id: make_session(StaticProxy({})), max_sessions=2)
    first = store.get("one")
    store.get("two")
    store.get("one")
    store.get("three")

    assert "two" not in store
    assert store.get("one") is first


def test_session_store_stays_bounded():
    store = SessionStore(factory=lambda session_id: make_session(StaticProxy({})), max_sessions=10)
    for i in range(500):
        store.get(f"session-{i}")
    assert len(store) == 10


def test_session_store_expires_idle_sessions():
    clock = FakeClock()
    store = SessionStore(factory=lambda session_id: make_session(StaticProxy({})), ttl=60, clock=clock)
    idle = store.get("idle")
    clock.now = 30
    active = store.get("active")

    clock.now = 80
    assert store.get("active") is active
    assert "idle" not in store
    assert store.get("idle") is not idle
