"""Tests for the art cache and snapshot publisher."""

import threading

import pytest

from mpdinfo.core import ArtCache, CacheState, SnapshotPublisher
from mpdinfo.models import DecodedArt, NowPlaying, PlaybackState, Snapshot, TrackIdentity

TRACK_A = TrackIdentity(song_id=1, file="a.flac")
TRACK_B = TrackIdentity(song_id=2, file="b.flac")


def decoded(identity: TrackIdentity) -> DecodedArt:
    """Build a 1x1 decoded image for a track."""
    return DecodedArt(identity=identity, width=1, height=1, pixels=b"\x00\x00\x00\xff", format="PNG")


class TestArtCache:
    """Tests for ArtCache."""

    def test_empty(self) -> None:
        """Test a fresh cache."""
        cache = ArtCache()
        assert cache.entry is None
        assert cache.get(TRACK_A) is None
        assert cache.state(TRACK_A) is CacheState.NOT_FETCHED

    def test_put_art(self) -> None:
        """Test storing decoded art."""
        cache = ArtCache()
        art = decoded(TRACK_A)
        cache.put(TRACK_A, art)

        assert cache.get(TRACK_A) is art
        assert cache.state(TRACK_A) is CacheState.FETCHED_ART

    def test_put_none(self) -> None:
        """Test a failed fetch is remembered."""
        cache = ArtCache()
        cache.put(TRACK_A, None, reason="no album art")

        assert cache.get(TRACK_A) is None
        assert cache.state(TRACK_A) is CacheState.FETCHED_NONE
        assert cache.entry is not None
        assert cache.entry.reason == "no album art"
        assert cache.reason(TRACK_A) == "no album art"
        assert cache.reason(TRACK_B) == ""

    def test_other_track_not_served(self) -> None:
        """Test art is never returned for a different track."""
        cache = ArtCache()
        cache.put(TRACK_A, decoded(TRACK_A))

        assert cache.get(TRACK_B) is None
        assert cache.state(TRACK_B) is CacheState.NOT_FETCHED

    def test_same_file_new_song_id(self) -> None:
        """Test a new queue entry for the same file is a different track."""
        cache = ArtCache()
        cache.put(TRACK_A, decoded(TRACK_A))

        assert cache.get(TrackIdentity(song_id=9, file="a.flac")) is None

    def test_put_evicts(self) -> None:
        """Test storing a new track evicts the old one."""
        cache = ArtCache()
        cache.put(TRACK_A, decoded(TRACK_A))
        cache.put(TRACK_B, None)

        assert cache.state(TRACK_A) is CacheState.NOT_FETCHED
        assert cache.state(TRACK_B) is CacheState.FETCHED_NONE

    def test_mismatched_art_rejected(self) -> None:
        """Test art decoded for one track cannot be stored for another."""
        cache = ArtCache()
        with pytest.raises(ValueError):
            cache.put(TRACK_B, decoded(TRACK_A))
        assert cache.entry is None

    def test_invalidate(self) -> None:
        """Test invalidate keeps only the given track."""
        cache = ArtCache()
        cache.put(TRACK_A, decoded(TRACK_A))

        cache.invalidate(TRACK_A)
        assert cache.state(TRACK_A) is CacheState.FETCHED_ART

        cache.invalidate(TRACK_B)
        assert cache.entry is None

    def test_invalidate_none(self) -> None:
        """Test invalidating for no track empties the cache."""
        cache = ArtCache()
        cache.put(TRACK_A, None)
        cache.invalidate(None)
        assert cache.entry is None

    def test_clear(self) -> None:
        """Test clear."""
        cache = ArtCache()
        cache.put(TRACK_A, decoded(TRACK_A))
        cache.clear()
        assert cache.state(TRACK_A) is CacheState.NOT_FETCHED


class TestSnapshot:
    """Tests for Snapshot coherence."""

    def test_default(self) -> None:
        """Test the empty snapshot."""
        snapshot = Snapshot()
        assert not snapshot.connected
        assert not snapshot.has_art
        assert snapshot.now_playing.state is PlaybackState.STOP

    def test_matching_art(self) -> None:
        """Test art for the current track is accepted."""
        snapshot = Snapshot(NowPlaying(identity=TRACK_A), decoded(TRACK_A), connected=True)
        assert snapshot.has_art

    def test_mismatched_art(self) -> None:
        """Test art for another track is refused."""
        with pytest.raises(ValueError):
            Snapshot(NowPlaying(identity=TRACK_B), decoded(TRACK_A))

    def test_art_without_track(self) -> None:
        """Test art cannot be shown when nothing is playing."""
        with pytest.raises(ValueError):
            Snapshot(NowPlaying(), decoded(TRACK_A))


class TestSnapshotPublisher:
    """Tests for SnapshotPublisher."""

    def test_empty(self) -> None:
        """Test nothing published yet."""
        publisher = SnapshotPublisher()
        assert publisher.latest() is None
        assert publisher.version == 0
        assert publisher.latest_since(0) == (None, 0)

    def test_latest_wins(self) -> None:
        """Test only the newest snapshot is kept."""
        publisher = SnapshotPublisher()
        first = Snapshot(connected=True)
        second = Snapshot(connected=False, error="gone")

        assert publisher.publish(first) == 1
        assert publisher.publish(second) == 2
        assert publisher.latest() is second

    def test_latest_since(self) -> None:
        """Test readers only get snapshots newer than what they saw."""
        publisher = SnapshotPublisher()
        snapshot = Snapshot(connected=True)
        version = publisher.publish(snapshot)

        assert publisher.latest_since(0) == (snapshot, version)
        assert publisher.latest_since(version) == (None, version)

    def test_concurrent_publish(self) -> None:
        """Test publishing from several threads counts every snapshot."""
        publisher = SnapshotPublisher()

        def worker() -> None:
            for _ in range(200):
                publisher.publish(Snapshot(connected=True))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert publisher.version == 800
        assert publisher.latest() is not None
