"""
On-Page SEO Advisor
Fetches a page through a CORS proxy and turns its title, description, headings, links and body text into ordered SEO findings.
"""

__version__ = "1.0.0"

from .models import (
    PageDocument, PageMetrics, Finding, CompetitiveSnapshot,
    FetchResult, AnalysisResult
)
from .errors import (
    AdvisorError, InputError, UpstreamHTTPError, NetworkError,
    NetworkTimeoutError, ParseError, describe_error
)
from .extractor import parse
from .rules import RuleThresholds, DEFAULT_THRESHOLDS, evaluate
from .tracker import FindingTracker, ChecklistTracker
from .fetcher import ProxyClient
from .snapshot import MockSnapshotProvider
from .session import AnalysisSession, SessionStore
