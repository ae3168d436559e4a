"""
Rule-based evaluation of on-page SEO signals.

Rules are declared in a fixed table and evaluated in declaration order, which
is also the order findings are presented and indexed in. Every rule is an
independent predicate plus a message builder; rules never suppress each other.
Where one concern has several mutually exclusive outcomes (H1 presence,
keyword density), each outcome is its own entry and the predicates encode
the priority between them.
"""
import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Tuple

from seo_advisor.metrics import compute_metrics
from seo_advisor.models import Finding, PageDocument, PageMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleThresholds:
    title_min_length: int = 30
    title_max_length: int = 60
    description_min_length: int = 120
    description_max_length: int = 160
    min_link_count: int = 2
    min_content_length: int = 300
    density_min: float = 0.5
    density_max: float = 2.5


DEFAULT_THRESHOLDS = RuleThresholds()


def rule_thresholds() -> RuleThresholds:
    """Build thresholds from the environment, falling back to the defaults."""
    defaults = DEFAULT_THRESHOLDS
    return RuleThresholds(
        title_min_length=int(os.getenv("TITLE_MIN_LENGTH", defaults.title_min_length)),
        title_max_length=int(os.getenv("TITLE_MAX_LENGTH", defaults.title_max_length)),
        description_min_length=int(os.getenv("DESCRIPTION_MIN_LENGTH", defaults.description_min_length)),
        description_max_length=int(os.getenv("DESCRIPTION_MAX_LENGTH", defaults.description_max_length)),
        min_link_count=int(os.getenv("MIN_LINK_COUNT", defaults.min_link_count)),
        min_content_length=int(os.getenv("MIN_CONTENT_LENGTH", defaults.min_content_length)),
        density_min=float(os.getenv("DENSITY_MIN", defaults.density_min)),
        density_max=float(os.getenv("DENSITY_MAX", defaults.density_max)),
    )


@dataclass(frozen=True)
class RuleContext:
    metrics: PageMetrics
    thresholds: RuleThresholds

    @property
    def has_keyword(self) -> bool:
        return bool(self.metrics.keyword)

    @property
    def has_density(self) -> bool:
        return self.has_keyword and self.metrics.keyword_density is not None


@dataclass(frozen=True)
class Rule:
    rule_id: str
    applies: Callable[[RuleContext], bool]
    build: Callable[[RuleContext], Tuple[str, str]]

    def evaluate(self, context: RuleContext) -> List[Finding]:
        if not self.applies(context):
            return []
        title, description = self.build(context)
        return [Finding(rule_id=self.rule_id, title=title, description=description)]


# --- Predicates ---

def _title_length_off(ctx: RuleContext) -> bool:
    length = ctx.metrics.title_length
    return length < ctx.thresholds.title_min_length or length > ctx.thresholds.title_max_length


def _description_length_off(ctx: RuleContext) -> bool:
    length = ctx.metrics.description_length
    return length < ctx.thresholds.description_min_length or length > ctx.thresholds.description_max_length


def _density_low(ctx: RuleContext) -> bool:
    return ctx.has_density and ctx.metrics.keyword_density < ctx.thresholds.density_min


def _density_high(ctx: RuleContext) -> bool:
    return ctx.has_density and ctx.metrics.keyword_density > ctx.thresholds.density_max


# --- Message builders ---

def _title_length_message(ctx: RuleContext) -> Tuple[str, str]:
    t = ctx.thresholds
    return (
        "Optimize title length",
        f"Aim for a title length between {t.title_min_length}-{t.title_max_length} characters. "
        f"Current length: {ctx.metrics.title_length}"
    )


def _description_length_message(ctx: RuleContext) -> Tuple[str, str]:
    t = ctx.thresholds
    return (
        "Optimize meta description length",
        f"Aim for a meta description length between {t.description_min_length}-{t.description_max_length} characters. "
        f"Current length: {ctx.metrics.description_length}"
    )


def _density_low_message(ctx: RuleContext) -> Tuple[str, str]:
    t = ctx.thresholds
    return (
        "Increase keyword density",
        f"Your keyword density is {ctx.metrics.keyword_density:.2f}%. "
        f"Aim for {t.density_min}-{t.density_max}% by using \"{ctx.metrics.keyword}\" more often in your content."
    )


def _density_high_message(ctx: RuleContext) -> Tuple[str, str]:
    t = ctx.thresholds
    return (
        "Decrease keyword density",
        f"Your keyword density is {ctx.metrics.keyword_density:.2f}%. "
        f"Keep it between {t.density_min}-{t.density_max}% to avoid looking like keyword stuffing."
    )


RULES: List[Rule] = [
    Rule(
        'title-length',
        _title_length_off,
        _title_length_message,
    ),
    Rule(
        'keyword-in-title',
        lambda ctx: ctx.has_keyword and not ctx.metrics.title_contains_keyword,
        lambda ctx: (
            "Include main keyword in title",
            f"Ensure your main keyword \"{ctx.metrics.keyword}\" is present in the page title for better SEO."
        ),
    ),
    Rule(
        'description-length',
        _description_length_off,
        _description_length_message,
    ),
    Rule(
        'keyword-in-description',
        lambda ctx: ctx.has_keyword and not ctx.metrics.description_contains_keyword,
        lambda ctx: (
            "Include main keyword in meta description",
            f"Mention \"{ctx.metrics.keyword}\" in your meta description so searchers see it is relevant."
        ),
    ),
    Rule(
        'h1-missing',
        lambda ctx: ctx.metrics.h1_count == 0,
        lambda ctx: (
            "Add an H1 tag",
            "Every page should have a unique H1 tag that accurately describes the page content."
        ),
    ),
    Rule(
        'h1-multiple',
        lambda ctx: ctx.metrics.h1_count > 1,
        lambda ctx: (
            "Use only one H1 tag per page",
            "Multiple H1 tags can confuse search engines. Use only one H1 tag that describes your main topic."
        ),
    ),
    Rule(
        'keyword-in-h1',
        lambda ctx: ctx.metrics.h1_count == 1 and ctx.has_keyword and not ctx.metrics.h1_contains_keyword,
        lambda ctx: (
            "Include main keyword in H1 tag",
            f"Your H1 tag should contain the main keyword \"{ctx.metrics.keyword}\"."
        ),
    ),
    Rule(
        'link-count',
        lambda ctx: ctx.metrics.link_count < ctx.thresholds.min_link_count,
        lambda ctx: (
            "Add more internal or external links",
            "Including relevant links helps search engines understand your content and improves user experience."
        ),
    ),
    # Compares characters although the message speaks of words.
    Rule(
        'content-length',
        lambda ctx: ctx.metrics.content_length < ctx.thresholds.min_content_length,
        lambda ctx: (
            "Increase content length",
            f"Pages with more content tend to rank better. "
            f"Aim for at least {ctx.thresholds.min_content_length} words of unique, valuable content."
        ),
    ),
    Rule(
        'keyword-density-low',
        _density_low,
        _density_low_message,
    ),
    Rule(
        'keyword-density-high',
        _density_high,
        _density_high_message,
    ),
]


def evaluate_metrics(metrics: PageMetrics, thresholds: RuleThresholds = DEFAULT_THRESHOLDS) -> List[Finding]:
    """Run every rule against precomputed metrics, in declaration order."""
    context = RuleContext(metrics=metrics, thresholds=thresholds)
    findings: List[Finding] = []
    for rule in RULES:
        findings.extend(rule.evaluate(context))
    return findings


def evaluate(document: PageDocument, keyword: str, thresholds: RuleThresholds = DEFAULT_THRESHOLDS) -> List[Finding]:
    """
    Produce the ordered findings for one page and one keyword.

    Args:
        document: Extracted page fields
        keyword: Target keyword; empty disables the keyword rules
        thresholds: Rule bounds, the documented defaults unless configured

    Returns:
        List of Finding objects, possibly empty
    """
    findings = evaluate_metrics(compute_metrics(document, keyword), thresholds)
    logger.info(f"Generated {len(findings)} findings")
    return findings
