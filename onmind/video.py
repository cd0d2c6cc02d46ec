"""
Video URL recognition.
"""

import re
from typing import Optional

YOUTUBE = "youtube"
VIMEO = "vimeo"
UNKNOWN = "unknown"

_YOUTUBE_PATTERNS = [
    re.compile(
        r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/"
        r"|youtube\.com/watch\?.*v=)([^&?/]+)"
    ),
    re.compile(r"youtube\.com/shorts/([^&?/]+)"),
    re.compile(r"youtube\.com/live/([^&?/]+)"),
]

_VIMEO_PATTERNS = [
    re.compile(r"vimeo\.com/(\d+)"),
    re.compile(r"player\.vimeo\.com/video/(\d+)"),
]


def _first_match(patterns: list[re.Pattern], url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    for pattern in patterns:
        match = pattern.search(url)
        if match and match.group(1):
            return match.group(1)
    return None


def extract_youtube_video_id(url: Optional[str]) -> Optional[str]:
    """Video id from watch, short-link, embed, /v/, shorts or live URLs."""
    return _first_match(_YOUTUBE_PATTERNS, url)


def extract_vimeo_video_id(url: Optional[str]) -> Optional[str]:
    return _first_match(_VIMEO_PATTERNS, url)


def get_video_platform(url: Optional[str]) -> str:
    """Return "youtube", "vimeo" or "unknown"."""
    if extract_youtube_video_id(url):
        return YOUTUBE
    if extract_vimeo_video_id(url):
        return VIMEO
    return UNKNOWN


def youtube_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"
