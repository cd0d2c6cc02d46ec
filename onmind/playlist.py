"""
Playlist cursor over video entries.
"""

from typing import Optional, Sequence

from .types import Entry


class PlaylistCursor:
    """
    Bounded position over an ordered list of video entries.

    Moving past either end is refused rather than wrapped; next() and
    previous() report whether they moved.
    """

    def __init__(self):
        self._videos: list[Entry] = []
        self._index: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._index is not None

    def start(self, videos: Sequence[Entry], start_index: int = 0) -> None:
        """Replace any current playlist. An empty list leaves the cursor inactive."""
        videos = list(videos)
        if not videos:
            self.stop()
            return
        if not 0 <= start_index < len(videos):
            raise IndexError(f"start_index {start_index} out of range for {len(videos)} videos")
        self._videos = videos
        self._index = start_index

    def stop(self) -> None:
        self._videos = []
        self._index = None

    def next(self) -> bool:
        if self.has_next:
            self._index += 1
            return True
        return False

    def previous(self) -> bool:
        if self.has_previous:
            self._index -= 1
            return True
        return False

    def current(self) -> Optional[Entry]:
        if self._index is None:
            return None
        return self._videos[self._index]

    @property
    def has_next(self) -> bool:
        return self._index is not None and self._index < len(self._videos) - 1

    @property
    def has_previous(self) -> bool:
        return self._index is not None and self._index > 0

    @property
    def current_index(self) -> int:
        """Position in the playlist, or -1 when inactive."""
        return -1 if self._index is None else self._index

    @property
    def total(self) -> int:
        return len(self._videos)

    @property
    def videos(self) -> list[Entry]:
        return list(self._videos)
