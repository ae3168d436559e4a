"""
Pydantic models for the On-Page SEO Advisor.
Defines the page snapshot, derived metrics, findings, and the API request/response shapes.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

# --- Page and evaluation models ---

class PageDocument(BaseModel):
    """
    Immutable snapshot of the SEO-relevant fields of one fetched page.

    Absence is represented as emptiness: every field defaults to an empty
    string or list, never None.
    """
    title: str = ""
    meta_description: str = ""
    h1_tags: List[str] = []
    links: List[str] = []
    body_text: str = ""

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "title": "Running Shoes for Every Distance | Example Store",
                "meta_description": "Compare lightweight running shoes for road and trail.",
                "h1_tags": ["Running Shoes"],
                "links": ["/trail", "https://example.com/road"],
                "body_text": "Our running shoes are tested on road and trail..."
            }
        }

class PageMetrics(BaseModel):
    """Metrics derived from a PageDocument and a keyword. Recomputed on every evaluation."""
    keyword: str = ""
    title_length: int = 0
    description_length: int = 0
    h1_count: int = 0
    link_count: int = 0
    content_length: int = 0
    word_count: int = 0
    keyword_count: int = 0
    keyword_density: Optional[float] = Field(None, description="Percentage; None when the body has no words.")
    title_contains_keyword: bool = False
    description_contains_keyword: bool = False
    h1_contains_keyword: bool = False

    class Config:
        frozen = True

class Finding(BaseModel):
    """One rule-triggered SEO observation."""
    rule_id: str
    title: str
    description: str

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "rule_id": "title-length",
                "title": "Optimize title length",
                "description": "Aim for a title length between 30-60 characters. Current length: 12"
            }
        }

class CompetitiveSnapshot(BaseModel):
    """Approximate competitive landscape for a keyword."""
    top_keywords: List[str] = []
    avg_title_length: int = 0
    avg_description_length: int = 0
    common_title_elements: List[str] = []

class FetchResult(BaseModel):
    """Raw proxy response for a target URL."""
    status: int
    content_type: str = ""
    body: str = ""

class AnalysisResult(BaseModel):
    """Everything produced by one analysis request."""
    generation: int
    url: str
    keyword: str
    document: PageDocument
    metrics: PageMetrics
    findings: List[Finding] = []

# --- API Request/Response Models ---

class AnalysisRequest(BaseModel):
    """Request model for page analysis."""
    url: str = Field(..., description="The URL of the page to analyze")
    keyword: str = Field(..., description="The main keyword to analyze for")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
                "keyword": "running shoes"
            }
        }

class EvaluateRequest(BaseModel):
    """Request model for evaluating an already extracted page."""
    document: PageDocument
    keyword: str = ""

class CompletionRequest(BaseModel):
    checked: bool

class ProgressResponse(BaseModel):
    """Acknowledgement state of the current findings."""
    mode: str
    total: int = 0
    completed: List[bool] = []
    progress_ratio: float = 0.0
    watermark: Optional[int] = None

class AnalysisResponse(BaseModel):
    """Response model for page analysis."""
    status: str
    session_id: str
    url: str
    keyword: str
    page: PageDocument
    metrics: PageMetrics
    findings: List[Finding] = []
    progress: ProgressResponse

class EvaluateResponse(BaseModel):
    metrics: PageMetrics
    findings: List[Finding] = []

class SnapshotResponse(BaseModel):
    status: str
    snapshot: Optional[CompetitiveSnapshot] = None
    error: Optional[str] = None
