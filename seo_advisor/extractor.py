"""
HTML field extraction for the On-Page SEO Advisor.
"""
import logging
import re
from typing import List

from parsel import Selector

from seo_advisor.models import PageDocument

logger = logging.getLogger(__name__)

VISIBLE_BODY_TEXT = '//body//text()[not(ancestor::script or ancestor::style or ancestor::noscript or ancestor::template)]'


def _normalize(text: str) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()


def _extract_title(selector: Selector) -> str:
    return ''.join(selector.css('title::text').getall()).strip()


def _extract_meta_description(selector: Selector) -> str:
    return selector.css('meta[name="description"]::attr(content)').get('').strip()


def _extract_h1_tags(selector: Selector) -> List[str]:
    # string() keeps the text of nested inline elements such as <span> or <a>
    return [_normalize(h1.xpath('string()').get('')) for h1 in selector.css('h1')]


def _extract_links(selector: Selector) -> List[str]:
    return [href for href in selector.css('a::attr(href)').getall() if href]


def _extract_body_text(selector: Selector) -> str:
    return _normalize(' '.join(selector.xpath(VISIBLE_BODY_TEXT).getall()))


def parse(html: str) -> PageDocument:
    """
    Parse raw HTML into a PageDocument.

    Malformed or partial markup yields whatever fields could be found;
    empty input yields an empty document.
    """
    if not html or not html.strip():
        logger.warning("Empty HTML passed to parser, returning empty document")
        return PageDocument()

    try:
        selector = Selector(text=html)
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not parse HTML: {e}")
        return PageDocument()

    document = PageDocument(
        title=_extract_title(selector),
        meta_description=_extract_meta_description(selector),
        h1_tags=_extract_h1_tags(selector),
        links=_extract_links(selector),
        body_text=_extract_body_text(selector),
    )
    logger.debug(
        f"Parsed document: title length {len(document.title)}, "
        f"{len(document.h1_tags)} H1 tags, {len(document.links)} links"
    )
    return document
