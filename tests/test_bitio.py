import io

from bitio import BitReader, BitWriter


def test_writer_packs_msb_first_and_pads_with_zeros():
    sink = io.BytesIO()
    writer = BitWriter(sink)
    writer.write_bits("10110")
    writer.flush()

    assert sink.getvalue() == bytes([0b10110000])
    assert writer.bits_written == 5
    assert writer.pad_bits == 3


def test_writer_whole_bytes_need_no_padding():
    sink = io.BytesIO()
    with BitWriter(sink) as writer:
        for bit in (1, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 1, 1, 1, 1, 1):
            writer.write_bit(bit)

    assert sink.getvalue() == b"\x81\xff"
    assert writer.pad_bits == 0


def test_writer_empty_writes_nothing():
    sink = io.BytesIO()
    with BitWriter(sink):
        pass
    assert sink.getvalue() == b""


def test_reader_reads_bits_then_none():
    reader = BitReader(io.BytesIO(bytes([0b10100000, 0xFF])))
    bits = [reader.read_bit() for _ in range(16)]

    assert bits == [1, 0, 1, 0, 0, 0, 0, 0] + [1] * 8
    assert reader.read_bit() is None
    assert reader.bits_read == 16


def test_reader_iterates_after_header_bytes():
    stream = io.BytesIO(b"hdr" + bytes([0b01000000]))
    assert stream.read(3) == b"hdr"
    assert list(BitReader(stream)) == [0, 1, 0, 0, 0, 0, 0, 0]
