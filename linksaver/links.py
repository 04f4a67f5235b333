import logging
import time
from typing import Any, Iterable, List, Optional
from urllib.parse import urlparse

from .config import Settings
from .errors import BadRequest, NotFound
from .metadata import fetch_page_metadata, summarize
from .models import Link
from .storage import Repository

logger = logging.getLogger(__name__)


def clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    seen: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def validate_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise BadRequest("URL is required.")
    try:
        parsed = urlparse(url)
        valid = parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        valid = False
    if not valid:
        raise BadRequest("Please enter a valid URL starting with http:// or https://")
    return url


class LinkService:
    def __init__(self, repo: Repository, settings: Settings):
        self.repo = repo
        self.settings = settings

    def create(self, user_id: int, url: Optional[str], tags: Optional[Iterable[str]] = None) -> Link:
        url = validate_url(url)
        page = fetch_page_metadata(url, timeout=self.settings.page_fetch_timeout)
        summary = summarize(
            url,
            endpoint=self.settings.summary_endpoint,
            timeout=self.settings.summary_timeout,
            max_chars=self.settings.summary_max_chars,
        )
        link = Link(
            id=int(time.time() * 1000),
            user_id=user_id,
            url=url,
            title=page.title,
            favicon=page.favicon,
            summary=summary,
            tags=clean_tags(tags),
        )
        stored = self.repo.add_link(link)
        logger.info("Saved link %s for user %s at position %s", stored.id, user_id, stored.order)
        return stored

    def list(self, user_id: int, tag: Optional[str] = None) -> List[Link]:
        links = self.repo.list_links(user_id)
        if tag:
            links = [link for link in links if tag in link.tags]
        return links

    def delete(self, user_id: int, link_id: int) -> None:
        if not self.repo.delete_link(user_id, link_id):
            raise NotFound("Link not found or not authorized.")
        logger.info("Deleted link %s for user %s", link_id, user_id)

    def reorder(self, user_id: int, ordered_ids: Any) -> None:
        if not isinstance(ordered_ids, list):
            raise BadRequest("orderedLinkIds must be an array.")
        if not all(isinstance(i, int) and not isinstance(i, bool) for i in ordered_ids):
            raise BadRequest("Invalid list of link IDs for reordering.")
        if not self.repo.set_link_order(user_id, ordered_ids):
            raise BadRequest("Invalid list of link IDs for reordering.")
        logger.info("Reordered %s links for user %s", len(ordered_ids), user_id)
