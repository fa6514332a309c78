import os

import numpy as np
import pytest

from models.constants import CacheConstants, WavConstants
from models.errors import CachedReferenceInvalid, PlaybackBlocked, PublishFailure
from output.export import encode_wav
from output.playback import SoundDevicePlayer
from output.publisher import FilePublisher
from output.storage import JsonFileCacheStore, MemoryCacheStore


def test_memory_store():
    store = MemoryCacheStore({"a": "1"})
    assert store.get("a") == "1"
    assert "b" not in store

    store.set("b", "2")
    assert store.get("b") == "2"

    store.remove("a")
    store.remove("missing")
    assert store.get("a") is None


def test_json_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "nested" / "cache.json")
    JsonFileCacheStore(path).set(CacheConstants.CACHE_KEY, "file:///tmp/noise.wav")

    reopened = JsonFileCacheStore(path)
    assert reopened.get(CacheConstants.CACHE_KEY) == "file:///tmp/noise.wav"
    assert CacheConstants.CACHE_KEY in reopened

    reopened.remove(CacheConstants.CACHE_KEY)
    assert JsonFileCacheStore(path).get(CacheConstants.CACHE_KEY) is None
    assert not [name for name in os.listdir(tmp_path / "nested") if name.endswith(".tmp")]


def test_json_store_treats_corrupt_file_as_empty(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json")

    store = JsonFileCacheStore(str(path))
    assert store.get("generatedNoise") is None

    store.set("generatedNoise", "file:///x.wav")
    assert store.get("generatedNoise") == "file:///x.wav"


def test_json_store_ignores_non_string_values(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text('{"generatedNoise": 42}')
    assert JsonFileCacheStore(str(path)).get("generatedNoise") is None


def test_publish_and_resolve(tmp_path):
    publisher = FilePublisher(str(tmp_path / "published"))
    data = encode_wav(np.zeros(8, dtype=np.float32), 8)

    ref = publisher.publish(data, WavConstants.MIME_TYPE)
    assert ref.startswith("file://")
    assert ref.endswith(".wav")

    path = publisher.resolve(ref)
    with open(path, 'rb') as f:
        assert f.read() == data

    # Identical content is published under the same reference
    assert publisher.publish(data, WavConstants.MIME_TYPE) == ref


def test_publish_rejects_unknown_mime_type(tmp_path):
    with pytest.raises(PublishFailure):
        FilePublisher(str(tmp_path)).publish(b"data", "application/x-unknown")


def test_resolve_rejects_missing_and_foreign_references(tmp_path):
    publisher = FilePublisher(str(tmp_path))

    with pytest.raises(CachedReferenceInvalid) as excinfo:
        publisher.resolve((tmp_path / "gone.wav").as_uri())
    assert excinfo.value.reason == "file not found"

    with pytest.raises(CachedReferenceInvalid):
        publisher.resolve("blob:https://example.com/1234")


def test_unpublish_removes_file(tmp_path):
    publisher = FilePublisher(str(tmp_path))
    ref = publisher.publish(b"RIFF", WavConstants.MIME_TYPE)

    publisher.unpublish(ref)
    with pytest.raises(CachedReferenceInvalid):
        publisher.resolve(ref)

    # Releasing twice is harmless
    publisher.unpublish(ref)


class TestSoundDevicePlayer:
    def setup_method(self):
        self.ready = []
        self.invalid = []

    def make_player(self, publisher):
        player = SoundDevicePlayer(publisher)
        player.add_listener(
            on_ready=self.ready.append,
            on_invalid=lambda ref, reason: self.invalid.append((ref, reason)),
        )
        return player

    def test_valid_source_signals_ready(self, tmp_path):
        publisher = FilePublisher(str(tmp_path))
        samples = np.linspace(-0.5, 0.5, 16, dtype=np.float32)
        ref = publisher.publish(encode_wav(samples, 16), WavConstants.MIME_TYPE)

        player = self.make_player(publisher)
        player.set_source(ref)

        assert self.ready == [ref]
        assert self.invalid == []
        assert player.source == ref

    def test_missing_source_signals_invalid(self, tmp_path):
        publisher = FilePublisher(str(tmp_path))
        ref = (tmp_path / "missing.wav").as_uri()

        self.make_player(publisher).set_source(ref)

        assert self.ready == []
        assert self.invalid == [(ref, "file not found")]

    def test_undecodable_source_signals_invalid(self, tmp_path):
        publisher = FilePublisher(str(tmp_path))
        ref = publisher.publish(b"this is not a wav file", WavConstants.MIME_TYPE)

        self.make_player(publisher).set_source(ref)

        assert self.ready == []
        assert [r for r, _ in self.invalid] == [ref]

    def test_play_without_source_is_blocked(self, tmp_path):
        player = self.make_player(FilePublisher(str(tmp_path)))
        player.set_loop(True)
        assert player.loop is True
        with pytest.raises(PlaybackBlocked):
            player.play()


class FakeSoundDevice:
    """Stands in for the sounddevice module."""

    class PortAudioError(Exception):
        pass

    def __init__(self, refuse=False):
        self.refuse = refuse
        self.played = []
        self.stop_calls = 0

    def play(self, data, samplerate=None, loop=False, device=None):
        if self.refuse:
            raise self.PortAudioError("Error opening OutputStream: Device unavailable")
        self.played.append((len(data), samplerate, loop))

    def stop(self):
        self.stop_calls += 1

    def wait(self):
        pass


class TestSoundDeviceOutput:
    def loaded_player(self, tmp_path):
        publisher = FilePublisher(str(tmp_path))
        samples = np.linspace(-0.5, 0.5, 16, dtype=np.float32)
        ref = publisher.publish(encode_wav(samples, 16), WavConstants.MIME_TYPE)
        player = SoundDevicePlayer(publisher)
        player.set_loop(True)
        player.set_source(ref)
        return player

    def test_play_and_stop(self, tmp_path, monkeypatch):
        device = FakeSoundDevice()
        monkeypatch.setattr("output.playback.get_sounddevice_module", lambda: device)
        player = self.loaded_player(tmp_path)

        player.play()
        assert device.played == [(16, 16, True)]
        assert player._playing

        player.stop()
        assert device.stop_calls == 1
        assert not player._playing

        player.stop()
        assert device.stop_calls == 1

    def test_port_audio_error_blocks_playback(self, tmp_path, monkeypatch):
        device = FakeSoundDevice(refuse=True)
        monkeypatch.setattr("output.playback.get_sounddevice_module", lambda: device)
        player = self.loaded_player(tmp_path)

        with pytest.raises(PlaybackBlocked):
            player.play()
        assert not player._playing
        assert device.played == []

    def test_missing_audio_output_blocks_playback(self, tmp_path, monkeypatch):
        monkeypatch.setattr("output.playback.get_sounddevice_module", lambda: None)
        player = self.loaded_player(tmp_path)

        with pytest.raises(PlaybackBlocked):
            player.play()
        assert not player._playing
