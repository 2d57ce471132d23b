# link_scout/crawler/link_extractor.py
"""
Link extraction for LinkScout: every ``<a href>`` on a page, made absolute.
"""
from __future__ import annotations

from typing import List, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import Tag

from link_scout.errors import ExtractionFailure

_SKIP_PREFIXES = ("mailto:", "javascript:", "tel:", "data:")


def extract_links(body: Union[bytes, str], base_url: str) -> List[str]:
    """
    Return absolute URLs for all anchors in *body*, in document order.

    Honours a ``<base href>`` element. Skips mailto:, javascript:, tel:,
    data: and fragment-only hrefs. Duplicates are kept; the caller dedups
    after normalization.
    """
    try:
        soup = BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ExtractionFailure(f"cannot parse {base_url}: {exc}") from exc

    base = base_url
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        base_href = base_tag.get("href")
        if isinstance(base_href, str) and base_href.strip():
            base = urljoin(base_url, base_href.strip())

    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith("#"):
            continue
        if raw.lower().startswith(_SKIP_PREFIXES):
            continue
        try:
            links.append(urljoin(base, raw))
        except ValueError:
            # left for the normalizer to reject
            links.append(raw)
    return links
