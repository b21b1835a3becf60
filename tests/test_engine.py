"""
Tests for the in-process audio engine.
"""
import numpy as np
import pytest

from src.core.backend import BackendClient, BackendError
from src.core.engine import LocalAudioEngine, normalize_keybind, split_chord, to_keyboard_hotkey
from src.core.models import SoundSettings

DEVICES = [
    {"name": "Speakers (Realtek)", "max_output_channels": 2},
    {"name": "Microphone", "max_output_channels": 0},
    {"name": "CABLE Input (VB-Audio)", "max_output_channels": 8},
]


@pytest.fixture
def engine(manual_stream_factory, callback_stop, hotkeys):
    return LocalAudioEngine(
        stream_factory=manual_stream_factory,
        callback_stop=callback_stop,
        device_query=lambda: DEVICES,
        hotkeys=hotkeys,
    )


@pytest.fixture
def monitor_fails(manual_stream_factory, callback_stop, hotkeys):
    def factory(**kwargs):
        if kwargs["device"] == 2:
            raise OSError("Device unavailable")
        return manual_stream_factory(**kwargs)

    engine = LocalAudioEngine(
        stream_factory=factory,
        callback_stop=callback_stop,
        device_query=lambda: DEVICES,
        hotkeys=hotkeys,
    )
    engine.set_primary_device("Speakers")
    engine.set_monitor_device("CABLE Input")
    return engine


@pytest.fixture
def engine_client(engine):
    return BackendClient(engine)


@pytest.fixture
def sound_id(engine_client, constant_wav):
    return engine_client.add_sound_from_path(str(constant_wav)).id


class TestChords:
    """Tests for chord normalization and hotkey syntax."""

    def test_modifier_order_ignored(self):
        assert normalize_keybind("Shift+Ctrl+A") == normalize_keybind("Ctrl+Shift+A")

    def test_plus_key(self):
        assert split_chord("Ctrl++") == (["Ctrl"], "+")
        assert split_chord("+") == ([], "+")

    @pytest.mark.parametrize("chord, expected", [
        ("Ctrl+Shift+A", "ctrl+shift+a"),
        ("Alt+ARROWUP", "alt+up"),
        ("Ctrl+Space", "ctrl+space"),
        ("Ctrl++", "ctrl+plus"),
        ("F5", "f5"),
    ])
    def test_keyboard_hotkey(self, chord, expected):
        assert to_keyboard_hotkey(chord) == expected


class TestLibraryCommands:
    """Tests for sound library commands."""

    def test_add_uses_file_stem(self, engine_client, constant_wav, sound_id):
        sounds = engine_client.get_sounds()
        assert [s.id for s in sounds] == [sound_id]
        assert sounds[0].name == "tone"
        assert sounds[0].file_path == str(constant_wav)

    def test_add_missing_file(self, engine_client):
        with pytest.raises(BackendError, match="File not found"):
            engine_client.add_sound_from_path("/nowhere/missing.wav")

    def test_order_updates(self, engine_client, constant_wav, sound_id):
        second = engine_client.add_sound_from_path(str(constant_wav)).id
        assert [s.order for s in engine_client.get_sounds()] == [0, 1]

        engine_client.update_sound_order([second, sound_id])
        assert [s.id for s in engine_client.get_sounds()] == [second, sound_id]

    def test_settings_arrive_in_snake_case(self, engine_client, sound_id):
        engine_client.update_sound_settings(sound_id, SoundSettings(volume=0.5, loop_mode=True, echo_delay=250.0))
        settings = engine_client.get_sounds()[0].settings
        assert settings.volume == 0.5
        assert settings.loop_mode
        assert settings.echo_delay == 250.0

    def test_remove(self, engine_client, sound_id):
        engine_client.remove_sound(sound_id)
        assert engine_client.get_sounds() == []

    def test_orders_stay_dense_after_remove(self, engine_client, constant_wav, sound_id):
        engine_client.add_sound_from_path(str(constant_wav))
        engine_client.add_sound_from_path(str(constant_wav))
        engine_client.remove_sound(sound_id)
        added = engine_client.add_sound_from_path(str(constant_wav))

        sounds = engine_client.get_sounds()
        assert [s.order for s in sounds] == [0, 1, 2]
        assert sounds[-1].id == added.id

    def test_unknown_command(self, engine_client):
        with pytest.raises(BackendError, match="unknown command"):
            engine_client.invoke("format_disk")


class TestPlayback:
    """Tests for sound playback on output streams."""

    def test_gain_is_master_times_sound(self, engine_client, manual_stream_factory, sound_id):
        engine_client.play_sound(sound_id)
        stream = manual_stream_factory.last
        stream.pump(1)
        assert stream.kwargs["device"] is None
        assert stream.output[0, 0] == pytest.approx(0.4)

    def test_trim_applied(self, engine_client, manual_stream_factory, sound_id):
        engine_client.update_sound_trim(sound_id, 0.25, 0.75)
        engine_client.play_sound(sound_id)
        stream = manual_stream_factory.last
        stream.run()
        assert np.count_nonzero(stream.output[:, 0]) == 22050
        assert stream.finish_count == 1

    def test_primary_and_monitor(self, engine_client, manual_stream_factory, sound_id):
        engine_client.set_primary_device("Speakers")
        engine_client.set_monitor_device("CABLE Input")
        engine_client.play_sound(sound_id)
        assert [s.kwargs["device"] for s in manual_stream_factory.streams] == [0, 2]

    def test_missing_file_on_play(self, engine_client, constant_wav, sound_id):
        constant_wav.unlink()
        with pytest.raises(BackendError, match="Sound file not found"):
            engine_client.play_sound(sound_id)

    def test_stop_all(self, engine_client, manual_stream_factory, sound_id):
        engine_client.play_sound(sound_id)
        engine_client.stop_all()
        stream = manual_stream_factory.last
        assert not stream.active
        assert stream.closed

    def test_devices_exclude_inputs(self, engine_client):
        names = [d.name for d in engine_client.get_audio_devices()]
        assert names == ["Speakers (Realtek)", "CABLE Input (VB-Audio)"]

    def test_failed_monitor_stops_primary(self, monitor_fails, manual_stream_factory, constant_wav):
        client = BackendClient(monitor_fails)
        sound_id = client.add_sound_from_path(str(constant_wav)).id
        with pytest.raises(BackendError, match="Device unavailable"):
            client.play_sound(sound_id)

        primary = manual_stream_factory.last
        assert primary.kwargs["device"] == 0
        assert not primary.active
        assert primary.closed


class TestQueue:
    """Tests for the engine-side queue."""

    def test_empty_queue_rejected(self, engine_client):
        with pytest.raises(BackendError, match="Queue is empty"):
            engine_client.play_queue()

    def test_queue_reply(self, engine_client, sound_id):
        engine_client.add_to_queue(sound_id)
        assert engine_client.add_to_queue(sound_id) == [sound_id, sound_id]

    def test_queue_plays_until_drained(self, engine_client, manual_stream_factory, sound_id):
        engine_client.add_to_queue(sound_id)
        engine_client.add_to_queue(sound_id)
        engine_client.play_queue()
        assert engine_client.is_queue_playing()

        manual_stream_factory.last.run()
        assert not engine_client.is_queue_playing()
        assert engine_client.add_to_queue(sound_id) == [sound_id]

    def test_queue_is_one_voice(self, engine_client, manual_stream_factory, sound_id):
        engine_client.add_to_queue(sound_id)
        engine_client.add_to_queue(sound_id)
        engine_client.play_queue()
        stream = manual_stream_factory.last
        stream.run()
        assert len(manual_stream_factory.streams) == 1
        assert np.count_nonzero(stream.output[:, 0]) == 2 * 44100

    def test_stop_all_clears_queue(self, engine_client, sound_id):
        engine_client.add_to_queue(sound_id)
        engine_client.play_queue()
        engine_client.stop_all()
        assert not engine_client.is_queue_playing()
        assert engine_client.add_to_queue(sound_id) == [sound_id]

    def test_failed_monitor_keeps_queue(self, monitor_fails, manual_stream_factory, constant_wav):
        client = BackendClient(monitor_fails)
        sound_id = client.add_sound_from_path(str(constant_wav)).id
        client.add_to_queue(sound_id)
        with pytest.raises(BackendError):
            client.play_queue()

        assert not client.is_queue_playing()
        assert manual_stream_factory.last.closed
        assert client.add_to_queue(sound_id) == [sound_id, sound_id]


class TestKeybinds:
    """Tests for global hotkey registration."""

    def test_register_normalizes(self, engine_client, hotkeys, sound_id):
        engine_client.register_sound_keybind(sound_id, "Shift+Ctrl+A")
        assert engine_client.get_registered_keybinds() == ["Ctrl+Shift+A"]
        assert list(hotkeys.bound) == ["Ctrl+Shift+A"]

    def test_reregister_replaces_chord(self, engine_client, hotkeys, sound_id):
        engine_client.register_sound_keybind(sound_id, "Ctrl+A")
        engine_client.register_sound_keybind(sound_id, "Ctrl+B")
        assert engine_client.get_registered_keybinds() == ["Ctrl+B"]
        assert list(hotkeys.bound) == ["Ctrl+B"]

    def test_unregister(self, engine_client, hotkeys, sound_id):
        engine_client.register_sound_keybind(sound_id, "Ctrl+A")
        engine_client.unregister_sound_keybind("Ctrl+A")
        assert engine_client.get_registered_keybinds() == []
        assert hotkeys.bound == {}

    def test_hotkey_plays_sound(self, engine_client, hotkeys, manual_stream_factory, sound_id):
        engine_client.register_sound_keybind(sound_id, "Ctrl+A")
        hotkeys.bound["Ctrl+A"]()
        assert len(manual_stream_factory.streams) == 1

    def test_stop_all_hotkey(self, engine_client, hotkeys, manual_stream_factory, sound_id):
        engine_client.register_stop_all_keybind("Ctrl+Alt+S")
        engine_client.play_sound(sound_id)
        hotkeys.bound["Alt+Ctrl+S"]()
        assert not manual_stream_factory.last.active

    def test_hotkey_failure_logged(self, engine, engine_client, hotkeys, sound_id):
        engine_client.update_sound_keybind(sound_id, "Ctrl+A")
        engine_client.set_stop_all_keybind("Ctrl+S")
        hotkeys.fail = True
        engine.start()
        assert hotkeys.bound == {}

    def test_start_registers_stored_chords(self, engine, engine_client, hotkeys, sound_id):
        engine_client.update_sound_keybind(sound_id, "Ctrl+A")
        engine_client.set_stop_all_keybind("Ctrl+S")
        engine.start()
        assert sorted(hotkeys.bound) == ["Ctrl+A", "Ctrl+S"]

    def test_shutdown_clears_hotkeys(self, engine, engine_client, hotkeys, sound_id):
        engine_client.register_sound_keybind(sound_id, "Ctrl+A")
        engine.shutdown()
        assert hotkeys.bound == {}
        assert engine_client.get_registered_keybinds() == []


class TestPreferences:
    """Tests for preference and update commands."""

    def test_master_volume_clamped(self, engine_client):
        engine_client.set_master_volume(5.0)
        assert engine_client.get_settings().master_volume == 1.0

    def test_settings_round_trip_fields(self, engine_client):
        engine_client.set_overlap_mode(False)
        engine_client.set_theme("purple")
        engine_client.set_crossfade_duration(2.5)
        settings = engine_client.get_settings()
        assert not settings.overlap_mode
        assert settings.theme == "purple"
        assert settings.crossfade_duration == 2.5

    def test_update_check(self, engine_client):
        assert engine_client.get_current_version() == "1.0.0"
        assert not engine_client.check_for_updates().available

    def test_install_update_rejected(self, engine_client):
        with pytest.raises(BackendError):
            engine_client.install_update()
