from typing import BinaryIO, Iterator, Optional


class BitWriter:
    """
    Packs single bits MSB first into a binary stream

    The final partial byte is padded with zero bits by ``flush``
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0
        self.pad_bits = 0

    def write_bit(self, bit: int) -> None:
        self.acc = (self.acc << 1) | (1 if bit else 0)
        self.acc_bits += 1
        self.bits_written += 1
        if self.acc_bits == 8:
            self.stream.write(bytes((self.acc & 0xFF,)))
            self.acc = 0
            self.acc_bits = 0

    def write_bits(self, bits: str) -> None:
        for ch in bits:
            self.write_bit(ch == "1")

    def flush(self) -> None:
        if self.acc_bits != 0:
            self.pad_bits = 8 - self.acc_bits
            self.stream.write(bytes(((self.acc << self.pad_bits) & 0xFF,)))
            self.acc = 0
            self.acc_bits = 0
        self.stream.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.flush()
        return False


class BitReader:
    # Reads bits MSB first, one byte from the stream at a time

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.rack = 0
        self.mask = 0
        self.bits_read = 0

    def read_bit(self) -> Optional[int]:
        if self.mask == 0:
            byte = self.stream.read(1)
            if not byte:
                return None
            self.rack = byte[0]
            self.mask = 0x80
        bit = 1 if self.rack & self.mask else 0
        self.mask >>= 1
        self.bits_read += 1
        return bit

    def __iter__(self) -> Iterator[int]:
        while True:
            bit = self.read_bit()
            if bit is None:
                return
            yield bit
