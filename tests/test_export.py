import struct
import unittest

import numpy as np

from models.errors import EncodingFailure
from output.export import AudioExporter, decode_wav, encode_wav


class TestEncodeWav(unittest.TestCase):
    def test_header_fields(self):
        data = encode_wav(np.array([0.0, 0.5, -0.25], dtype=np.float32), 44100)

        self.assertEqual(len(data), 44 + 12)
        fields = struct.unpack_from('<4sI4s4sIHHIIHH4sI', data)
        (riff, chunk_size, wave, fmt, fmt_size, audio_format, channels,
         sample_rate, byte_rate, block_align, bits, data_id, data_size) = fields

        self.assertEqual(riff, b'RIFF')
        self.assertEqual(chunk_size, 48)
        self.assertEqual(wave, b'WAVE')
        self.assertEqual(fmt, b'fmt ')
        self.assertEqual(fmt_size, 16)
        self.assertEqual(audio_format, 3)
        self.assertEqual(channels, 1)
        self.assertEqual(sample_rate, 44100)
        self.assertEqual(byte_rate, 176400)
        self.assertEqual(block_align, 4)
        self.assertEqual(bits, 32)
        self.assertEqual(data_id, b'data')
        self.assertEqual(data_size, 12)

        self.assertEqual(data[44:], np.array([0.0, 0.5, -0.25], dtype='<f4').tobytes())

    def test_empty_buffer(self):
        data = encode_wav(np.zeros(0, dtype=np.float32), 8000)
        self.assertEqual(len(data), 44)
        self.assertEqual(struct.unpack_from('<I', data, 4)[0], 36)
        self.assertEqual(struct.unpack_from('<I', data, 40)[0], 0)

    def test_decodes_bit_exact(self):
        samples = np.random.default_rng(0).uniform(-1.0, 1.0, 1000).astype(np.float32)
        sample_rate, decoded = decode_wav(encode_wav(samples, 22050))

        self.assertEqual(sample_rate, 22050)
        self.assertEqual(decoded.dtype, np.float32)
        np.testing.assert_array_equal(decoded, samples)

    def test_rejects_multichannel(self):
        with self.assertRaises(EncodingFailure):
            encode_wav(np.zeros((10, 2), dtype=np.float32), 44100)

    def test_rejects_unrepresentable_sample_rate(self):
        with self.assertRaises(EncodingFailure):
            encode_wav(np.zeros(4, dtype=np.float32), -1)


def test_save_to_wav_appends_extension(tmp_path):
    exporter = AudioExporter(8000)
    path = exporter.save_to_wav(np.full(8, 0.25, dtype=np.float32), str(tmp_path / "out" / "track"))

    assert path.endswith("track.wav")
    data = open(path, 'rb').read()
    assert len(data) == 44 + 32
    sample_rate, samples = decode_wav(data)
    assert sample_rate == 8000
    assert np.all(samples == np.float32(0.25))


def test_save_to_wav_accepts_encoded_bytes(tmp_path):
    encoded = encode_wav(np.zeros(3, dtype=np.float32), 8000)
    path = AudioExporter(8000).save_to_wav(encoded, str(tmp_path / "track.wav"))
    assert open(path, 'rb').read() == encoded
