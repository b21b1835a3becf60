"""
Tests for the trim preview player.
"""
import pytest
import numpy as np

from src.core.preview import TrimPreviewPlayer

SR = 1000


@pytest.fixture
def ten_seconds():
    return np.linspace(-1, 1, 10 * SR, dtype=np.float32)


@pytest.fixture
def states():
    return []


@pytest.fixture
def make_player(ten_seconds, callback_stop, states):
    def factory(streams, decoder=None):
        return TrimPreviewPlayer(
            reader=lambda path: b"",
            decoder=decoder or (lambda data: (ten_seconds, SR)),
            stream_factory=streams,
            callback_stop=callback_stop,
            on_state_changed=states.append,
        )
    return factory


class TestTrimPreviewPlayer:
    """Tests for TrimPreviewPlayer."""

    def test_halts_at_end_exactly_once(self, make_player, stream_factory, states):
        player = make_player(stream_factory)
        assert player.start("clip.wav", 2.0, 8.0)

        assert player.completions == 1
        assert player.position_seconds == pytest.approx(8.0)
        assert not player.is_playing
        assert states == [True, False]

        stream = stream_factory.last
        assert stream.finish_count == 1
        # Exactly 6 s of audio reached the device
        assert np.count_nonzero(np.any(stream.output != 0, axis=1)) == pytest.approx(6 * SR, abs=1)

    def test_buffer_released_handle_kept(self, make_player, stream_factory):
        player = make_player(stream_factory)
        player.start("clip.wav", 2.0, 8.0)
        assert not player.has_buffer
        assert player.has_handle

        player.stop()
        assert not player.has_handle
        assert stream_factory.last.closed
        assert player.completions == 1

    def test_output_starts_at_trim_start(self, make_player, stream_factory, ten_seconds):
        make_player(stream_factory).start("clip.wav", 2.0, 8.0)
        first = stream_factory.last.output[0]
        assert first[0] == pytest.approx(ten_seconds[2 * SR])
        assert first[1] == pytest.approx(ten_seconds[2 * SR])  # Mono copied to both outputs

    def test_end_past_media_stops_at_media_end(self, make_player, stream_factory):
        player = make_player(stream_factory)
        player.start("clip.wav", 9.0, 12.0)
        assert player.completions == 1
        assert player.position_seconds == pytest.approx(10.0)

    def test_new_preview_replaces_previous(self, make_player, manual_stream_factory, states):
        player = make_player(manual_stream_factory)
        player.start("clip.wav", 0.0, 5.0)
        first = manual_stream_factory.last
        player.start("clip.wav", 5.0, 10.0)
        second = manual_stream_factory.last

        assert first.closed and not first.active
        assert second.active
        assert player.is_playing
        # The replaced stream's completion is not counted
        assert player.completions == 0

        second.run()
        assert player.completions == 1
        assert not player.is_playing

    def test_stop_while_playing(self, make_player, manual_stream_factory):
        player = make_player(manual_stream_factory)
        player.start("clip.wav", 0.0, 5.0)
        manual_stream_factory.last.pump(2)
        player.stop()
        assert not player.is_playing
        assert not player.has_buffer
        assert player.completions == 0

    def test_decode_failure(self, make_player, stream_factory, states):
        def broken(data):
            raise RuntimeError("unsupported format")

        player = make_player(stream_factory, decoder=broken)
        assert not player.start("clip.wav", 0.0, 1.0)
        assert not player.is_playing
        assert stream_factory.streams == []
        assert states == []

    def test_empty_range_rejected(self, make_player, stream_factory):
        player = make_player(stream_factory)
        assert not player.start("clip.wav", 5.0, 5.0)
        assert not player.has_handle
