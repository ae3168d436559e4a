"""
FastAPI application for the On-Page SEO Advisor.
Provides endpoints for analyzing pages, evaluating extracted fields, and tracking acknowledged findings.
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from seo_advisor import __version__, config
from seo_advisor.errors import (
    InputError, NetworkError, NetworkTimeoutError, ParseError, UpstreamHTTPError, describe_error
)
from seo_advisor.metrics import compute_metrics
from seo_advisor.models import (
    AnalysisRequest, AnalysisResponse, CompletionRequest, EvaluateRequest,
    EvaluateResponse, ProgressResponse, SnapshotResponse
)
from seo_advisor.rules import evaluate_metrics, rule_thresholds
from seo_advisor.session import AnalysisSession, SessionStore

# Configure logging
config.configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    sessions.close()
    logger.info("Closed all analysis sessions")


# Initialize FastAPI app
app = FastAPI(
    title="On-Page SEO Advisor",
    description="""
    Analyzes a single web page's on-page SEO signals against a fixed set of rules.

    ## Features
    * Page fetching through a CORS proxy
    * Ordered, explainable SEO findings
    * Finding acknowledgement and progress tracking
    * Background competitive snapshot

    ## Usage
    1. Submit a URL and target keyword to `/analyze`
    2. Work through the returned findings
    3. Mark findings as done via `/findings/{index}/completion`
    """,
    version=__version__,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600
)

sessions = SessionStore()


def get_session_store() -> SessionStore:
    return sessions


def get_session(
    x_session_id: str = Header("default"),
    store: SessionStore = Depends(get_session_store),
) -> AnalysisSession:
    return store.get(x_session_id)


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze_page(
    request: AnalysisRequest,
    session: AnalysisSession = Depends(get_session),
    request_id: str = Header(None),
):
    """
    Analyze a web page for the given keyword.

    Fetches the page through the proxy, extracts its fields and evaluates
    the SEO rules. The competitive snapshot is started in the background
    and can be polled via /snapshot.

    Raises:
        HTTPException: 400 for invalid input, 409 if superseded by a newer
        request, 422 for unusable content, 502/503/504 for fetch failures
    """
    request_id = request_id or str(uuid.uuid4())
    logger.info(f"[{request_id}] Received analysis request for URL: {request.url}, Keyword: {request.keyword}, Session: {session.session_id}")

    try:
        result = await session.analyze(request.url, request.keyword, request_id=request_id)

    except InputError as e:
        logger.error(f"[{request_id}] Invalid input: {e.user_message}")
        raise HTTPException(status_code=400, detail=e.user_message)

    except UpstreamHTTPError as e:
        logger.error(f"[{request_id}] Upstream error: {e.user_message}")
        raise HTTPException(status_code=502, detail=e.user_message)

    except NetworkTimeoutError as e:
        logger.error(f"[{request_id}] {e.user_message}")
        raise HTTPException(status_code=504, detail=e.user_message)

    except NetworkError as e:
        logger.error(f"[{request_id}] {e.user_message}")
        raise HTTPException(status_code=503, detail=e.user_message)

    except ParseError as e:
        logger.error(f"[{request_id}] {e.user_message}")
        raise HTTPException(status_code=422, detail=e.user_message)

    except Exception as e:
        logger.error(f"[{request_id}] Unexpected error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=describe_error(e))

    if result is None:
        raise HTTPException(
            status_code=409,
            detail="This analysis was superseded by a newer request."
        )

    logger.info(f"[{request_id}] Successfully completed analysis for {result.url}")
    return AnalysisResponse(
        status="success",
        session_id=session.session_id,
        url=result.url,
        keyword=result.keyword,
        page=result.document,
        metrics=result.metrics,
        findings=result.findings,
        progress=session.progress(),
    )


@app.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_document(request: EvaluateRequest):
    """Evaluate an already extracted page without touching any session."""
    metrics = compute_metrics(request.document, request.keyword)
    return EvaluateResponse(
        metrics=metrics,
        findings=evaluate_metrics(metrics, rule_thresholds()),
    )


@app.put("/findings/{index}/completion", response_model=ProgressResponse)
async def set_completion(
    index: int,
    request: CompletionRequest,
    session: AnalysisSession = Depends(get_session),
):
    """Mark a finding of the current analysis as done or not done."""
    try:
        return session.set_completion(index, request.checked)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/progress", response_model=ProgressResponse)
async def get_progress(session: AnalysisSession = Depends(get_session)):
    return session.progress()


@app.get("/snapshot", response_model=SnapshotResponse)
async def get_snapshot(session: AnalysisSession = Depends(get_session)):
    """Current state of the background competitive snapshot."""
    return SnapshotResponse(
        status=session.snapshot_status,
        snapshot=session.snapshot,
        error=session.snapshot_error,
    )


@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Dict containing status of the API and its configuration
    """
    return {
        "status": "healthy",
        "version": __version__,
        "proxy_url": config.PROXY_URL,
        "tracker_mode": config.TRACKER_MODE,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.API_PORT)
