"""
URL metadata lookup for the entry form's autofill.

YouTube links go through the oEmbed endpoint. Anything else goes to a
page-metadata service (Microlink-compatible), or, when none is configured,
the page itself is fetched and its Open Graph tags are read.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..config import MetadataConfig
from ..errors import MetadataFetchFailure
from ..video import extract_youtube_video_id, youtube_watch_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataResult:
    """Outcome of a metadata lookup. Failures carry ``error`` and nothing else."""
    success: bool
    title: str = ""
    description: str = ""
    channel_name: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "MetadataResult":
        return cls(success=False, error=error)


def extract_open_graph(html_content: str) -> dict[str, str]:
    """
    Read title and description from a page's Open Graph / meta tags.

    Falls back to <title> and <meta name="description"> when the
    og: properties are absent.
    """
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(html_content, "html.parser")

    def meta(*keys: str) -> str:
        for key in keys:
            tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
            if tag and tag.get("content"):
                return tag["content"].strip()
        return ""

    title = meta("og:title", "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()
    return {
        "title": title,
        "description": meta("og:description", "twitter:description", "description"),
    }


class MetadataProvider:
    """
    Fetches title, description and channel name for a URL.

    Satisfies MetadataFetcherProtocol.
    """

    def __init__(self, config: Optional[MetadataConfig] = None, session=None):
        """
        Args:
            config: Endpoints and timeout; defaults when omitted
            session: Optional requests-compatible object with a ``get`` method
        """
        self.config = config or MetadataConfig()
        self._http = session or requests

    def _get(self, url: str, /, **params):
        from onmind import __version__

        try:
            resp = self._http.get(
                url,
                params=params or None,
                timeout=self.config.timeout,
                headers={"User-Agent": f"onmind/{__version__}"},
            )
        except requests.RequestException as e:
            raise MetadataFetchFailure(f"Failed to fetch {url}: {e}") from e
        if not resp.ok:
            raise MetadataFetchFailure(f"{url} returned status: {resp.status_code}")
        return resp

    def _json(self, resp) -> dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise MetadataFetchFailure("Failed to parse metadata response") from e
        if not isinstance(data, dict):
            raise MetadataFetchFailure("Invalid metadata response")
        return data

    def fetch_youtube(self, video_id: str) -> MetadataResult:
        """
        Look up a YouTube video by id via oEmbed.

        Raises:
            MetadataFetchFailure: Request failed or the response was unusable
        """
        logger.debug("Fetching oEmbed metadata for YouTube video %s", video_id)
        resp = self._get(self.config.oembed_url, url=youtube_watch_url(video_id), format="json")
        data = self._json(resp)
        author = data.get("author_name") or ""
        return MetadataResult(
            success=True,
            title=data.get("title") or "",
            description=f"Video by {author}" if author else "",
            channel_name=author,
        )

    def fetch_page(self, url: str) -> MetadataResult:
        """
        Look up any other page.

        Raises:
            MetadataFetchFailure: Request failed or the response was unusable
        """
        if self.config.scrape_url:
            logger.debug("Fetching page metadata for %s via %s", url, self.config.scrape_url)
            data = self._json(self._get(self.config.scrape_url, url=url))
            page = data.get("data")
            if not isinstance(page, dict):
                raise MetadataFetchFailure("Invalid response from metadata service")
            return MetadataResult(
                success=True,
                title=page.get("title") or "",
                description=page.get("description") or "",
            )

        logger.debug("Scraping Open Graph tags from %s", url)
        resp = self._get(url)
        og = extract_open_graph(resp.text)
        return MetadataResult(success=True, title=og["title"], description=og["description"])

    def fetch(self, url: str) -> MetadataResult:
        """
        Look up metadata for ``url``. Never raises: failures come back as
        ``MetadataResult(success=False, error=...)``.
        """
        if not url:
            return MetadataResult.failed("No URL provided")
        try:
            video_id = extract_youtube_video_id(url)
            if video_id:
                return self.fetch_youtube(video_id)
            return self.fetch_page(url)
        except MetadataFetchFailure as e:
            logger.warning("Metadata lookup failed for %s: %s", url, e)
            return MetadataResult.failed(str(e))


def fetch_url_metadata(url: str, config: Optional[MetadataConfig] = None) -> MetadataResult:
    """Look up metadata for ``url`` with a default provider."""
    return MetadataProvider(config).fetch(url)
