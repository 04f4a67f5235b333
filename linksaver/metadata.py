import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urljoin, urlparse

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "LinkSaverBot/1.0",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

SUMMARY_UNAVAILABLE = "Summary temporarily unavailable."
SUMMARY_RATE_LIMITED = "Summary service temporarily busy (rate limit). Please try again later."
SUMMARY_BAD_URL = (
    "Could not summarize: Invalid URL provided to summarizer. "
    "Ensure it starts with http:// or https://"
)
SUMMARY_TIMED_OUT = "Summary generation timed out."
SUMMARY_UNKNOWN_ERROR = "Summary temporarily unavailable due to network or unknown error."


@dataclass
class PageMetadata:
    title: str
    favicon: str


def default_metadata(url: str) -> PageMetadata:
    return PageMetadata(title=urlparse(url).hostname or url, favicon=urljoin(url, "/favicon.ico"))


def _absolute_favicon(href: str, page_url: str) -> str:
    if href.startswith("//"):
        return "http:" + href
    return urljoin(page_url, href)


def _find_favicon(soup: BeautifulSoup) -> Optional[str]:
    for wanted in ("icon", "shortcut icon"):
        for tag in soup.find_all("link", href=True):
            rel = " ".join(tag.get("rel") or []).lower()
            if rel == wanted:
                return tag["href"].strip() or None
    return None


def parse_page(html: str, url: str) -> PageMetadata:
    meta = default_metadata(url)
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text().strip() if soup.title else ""
    if not title:
        og = soup.find("meta", attrs={"property": "og:title"})
        title = (og.get("content") or "").strip() if og else ""
    if title:
        meta.title = title

    href = _find_favicon(soup)
    if href:
        meta.favicon = _absolute_favicon(href, url)
    return meta


def fetch_page_metadata(url: str, timeout: float) -> PageMetadata:
    """Best-effort title/favicon scrape; falls back to hostname and /favicon.ico."""
    try:
        resp = requests.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
        resp.raise_for_status()
        return parse_page(resp.text, url)
    except Exception as exc:
        logger.warning("Failed to scrape title/favicon for %s: %s", url, exc)
        return default_metadata(url)


def summarizer_url(url: str, endpoint: str) -> str:
    target = url
    for prefix in ("https://", "http://"):
        if target.startswith(prefix):
            target = target[len(prefix):]
            break
    return endpoint + quote(target, safe="")


def _fallback_summary(exc: Exception) -> str:
    response = getattr(exc, "response", None)
    if response is not None:
        if response.status_code == 429:
            return SUMMARY_RATE_LIMITED
        if response.status_code == 400:
            return SUMMARY_BAD_URL
        return f"Summary API error: {response.status_code} - {response.reason or 'Unknown error'}"
    # ConnectTimeout is both a Timeout and a ConnectionError
    if isinstance(exc, requests.Timeout):
        return SUMMARY_TIMED_OUT
    if isinstance(exc, requests.ConnectionError):
        return SUMMARY_UNAVAILABLE
    return SUMMARY_UNKNOWN_ERROR


def summarize(url: str, endpoint: str, timeout: float, max_chars: int = 500) -> str:
    api_url = summarizer_url(url, endpoint)
    logger.info("Requesting summary for %s via %s", url, api_url)
    try:
        resp = requests.get(api_url, timeout=timeout)
        resp.raise_for_status()
    except Exception as exc:
        logger.warning("Summarization failed for %s, using fallback: %s", url, exc)
        return _fallback_summary(exc)

    summary = resp.text.strip()
    if not summary:
        return SUMMARY_UNAVAILABLE
    if len(summary) > max_chars:
        summary = summary[:max_chars] + "..."
    return summary
