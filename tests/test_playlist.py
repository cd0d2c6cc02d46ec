"""
Tests for the playlist cursor and Notebook.play_tag.
"""

import pytest

from onmind.playlist import PlaylistCursor


@pytest.fixture
def videos(make_entry):
    return [
        make_entry(f"Video {i}", url=f"https://youtu.be/vid{i}", tags=["music"])
        for i in range(3)
    ]


class TestPlaylistCursor:
    """Bounded movement, no wrap-around."""

    def test_inactive_by_default(self):
        cursor = PlaylistCursor()
        assert not cursor.active
        assert cursor.current() is None
        assert cursor.current_index == -1
        assert not cursor.next()
        assert not cursor.previous()

    def test_boundaries(self, videos):
        """previous() at the start and next() at the end both refuse."""
        cursor = PlaylistCursor()
        cursor.start(videos)
        assert not cursor.previous()
        assert cursor.current_index == 0
        assert cursor.next()
        assert cursor.next()
        assert cursor.current_index == 2
        assert not cursor.next()
        assert cursor.current_index == 2
        assert cursor.current() is videos[2]

    def test_start_index(self, videos):
        cursor = PlaylistCursor()
        cursor.start(videos, 1)
        assert cursor.has_next
        assert cursor.has_previous
        assert cursor.current() is videos[1]

    def test_start_index_out_of_range(self, videos):
        with pytest.raises(IndexError):
            PlaylistCursor().start(videos, 3)

    def test_empty_start_stops(self, videos):
        cursor = PlaylistCursor()
        cursor.start(videos)
        cursor.start([])
        assert not cursor.active
        assert cursor.total == 0

    def test_restart_replaces(self, videos):
        cursor = PlaylistCursor()
        cursor.start(videos, 2)
        cursor.start(videos[:1])
        assert cursor.total == 1
        assert cursor.current_index == 0


class TestPlayTag:
    """Playlists built from a tag's YouTube entries."""

    def test_play_tag(self, nb):
        nb.create({"title": "One", "tags": ["music"], "url": "https://youtu.be/one"})
        nb.create({"title": "Two", "tags": ["music"], "url": "https://www.youtube.com/watch?v=two"})
        nb.create({"title": "Page", "tags": ["music"], "url": "https://example.com"})
        assert nb.play_tag("music") == 2
        assert nb.playlist.active
        assert {v.title for v in nb.playlist.videos} == {"One", "Two"}

    def test_no_videos_leaves_playlist(self, nb):
        nb.create({"title": "One", "tags": ["music"], "url": "https://youtu.be/one"})
        nb.play_tag("music")
        assert nb.play_tag("nothing") == 0
        assert nb.playlist.total == 1

    def test_sign_out_stops_playlist(self, nb):
        nb.create({"title": "One", "tags": ["music"], "url": "https://youtu.be/one"})
        nb.play_tag("music")
        nb.sign_out()
        assert not nb.playlist.active
