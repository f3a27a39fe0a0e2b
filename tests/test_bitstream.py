import io

import pytest

from bitstream import BitInputStream, BitOutputStream


def _written(*writes):
	sink = io.BytesIO()
	out = BitOutputStream(sink)
	for n, value in writes:
		out.write_bits(n, value)
	out.close()
	return sink.getvalue()


def test_write_msb_first_and_pad():
	assert _written((1, 1), (3, 0b010)) == bytes([0b10100000])


def test_write_spans_bytes():
	assert _written((32, 0xFACE8201)) == bytes([0xFA, 0xCE, 0x82, 0x01])
	assert _written((4, 0xA), (9, 0x1FF), (3, 0)) == bytes([0xAF, 0xF8])


def test_write_uses_only_low_bits():
	assert _written((4, 0xFF)) == bytes([0xF0])


def test_zero_width_write_is_noop():
	out = BitOutputStream(io.BytesIO())
	out.write_bits(0, 0)
	assert out.bits_written == 0


def test_bits_written_excludes_padding():
	out = BitOutputStream(io.BytesIO())
	out.write_bits(9, 256)
	out.close()
	assert out.bits_written == 9


def test_close_does_not_close_borrowed_stream():
	sink = io.BytesIO()
	BitOutputStream(sink).close()
	assert not sink.closed


def test_write_after_close_fails():
	out = BitOutputStream(io.BytesIO())
	out.close()
	with pytest.raises(ValueError):
		out.write_bits(1, 1)


def test_bad_width_rejected():
	with pytest.raises(ValueError):
		BitOutputStream(io.BytesIO()).write_bits(65, 0)
	with pytest.raises(ValueError):
		BitInputStream.from_bytes(b"").read_bits(-1)


def test_read_fields():
	bits_in = BitInputStream.from_bytes(bytes([0xAF, 0xF8]))
	assert bits_in.read_bits(4) == 0xA
	assert bits_in.read_bits(9) == 0x1FF
	assert bits_in.read_bits(3) == 0
	assert bits_in.bits_read == 16


def test_read_end_of_data():
	bits_in = BitInputStream.from_bytes(b"\x41")
	assert bits_in.read_bits(8) == 0x41
	assert bits_in.read_bits(1) is None


def test_read_short_field_is_end_of_data():
	bits_in = BitInputStream.from_bytes(b"\xff\xff")
	assert bits_in.read_bits(32) is None


def test_reset_rewinds():
	bits_in = BitInputStream.from_bytes(b"AB")
	assert bits_in.read_bits(3) == 0b010
	bits_in.reset()
	assert bits_in.read_bits(8) == ord("A")
	assert bits_in.read_bits(8) == ord("B")


def test_reset_needs_seekable_stream():
	class OneWay(io.RawIOBase):
		def readable(self):
			return True

		def seekable(self):
			return False

	with pytest.raises(io.UnsupportedOperation):
		BitInputStream(OneWay()).reset()


def test_file_roundtrip(tmp_path):
	path = tmp_path / "bits.bin"
	with BitOutputStream.open_output(path) as out:
		out.write_bits(12, 0xABC)
	assert path.read_bytes() == bytes([0xAB, 0xC0])

	with BitInputStream.open_input(path) as bits_in:
		assert bits_in.read_bits(12) == 0xABC
		assert bits_in.read_bits(4) == 0
		assert bits_in.read_bits(1) is None
