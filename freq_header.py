"""
Frequency table header

The table is stored as ASCII text, keys ascending, e.g. ``{97:2, 98:1, 256:1}``.
The closing brace ends the header, the Huffman bits start on the next byte
"""

from typing import BinaryIO, Dict

from huffman import DEFAULT_CONFIG, HuffmanConfig, MalformedHeaderError

OPEN = b"{"
CLOSE = b"}"
MAX_HEADER_BYTES = 16 * 1024 # 257 entries of "k:count, " never come close


def serialize_frequency_table(table: Dict[int, int]) -> bytes:
    entries = ", ".join(f"{symbol}:{table[symbol]}" for symbol in sorted(table))
    return OPEN + entries.encode("ascii") + CLOSE

def write_frequency_table(stream: BinaryIO, table: Dict[int, int]) -> int:
    blob = serialize_frequency_table(table)
    stream.write(blob)
    return len(blob)


def parse_frequency_table(blob: bytes, config: HuffmanConfig = DEFAULT_CONFIG) -> Dict[int, int]:
    if not blob.startswith(OPEN) or not blob.endswith(CLOSE) or len(blob) < 2:
        raise MalformedHeaderError("header must be enclosed in braces")

    try:
        body = blob[1:-1].decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedHeaderError(f"header is not ASCII: {e}") from e

    table: Dict[int, int] = {}
    for entry in body.split(","):
        key, sep, value = entry.partition(":")
        if not sep:
            raise MalformedHeaderError(f"bad header entry {entry.strip()!r}")
        if key.startswith(" "): # separator is ", "
            key = key[1:]
        if not (key.isdigit() and value.isdigit()):
            raise MalformedHeaderError(f"bad header entry {entry.strip()!r}")
        symbol = int(key)
        count = int(value)

        if not (0 <= symbol <= 255 or symbol == config.eof_symbol):
            raise MalformedHeaderError(f"symbol {symbol} out of range")
        if symbol in table:
            raise MalformedHeaderError(f"duplicate symbol {symbol}")
        if count < 1:
            raise MalformedHeaderError(f"symbol {symbol} has count {count}")
        table[symbol] = count

    if table.get(config.eof_symbol) != 1:
        raise MalformedHeaderError("end-of-stream symbol missing or count is not 1")
    return table

def read_frequency_table(stream: BinaryIO, config: HuffmanConfig = DEFAULT_CONFIG) -> Dict[int, int]:
    """
    Read exactly one header from ``stream`` and parse it

    Stops right after the closing brace so the stream is left at the first
    body byte
    """
    first = stream.read(1)
    if first != OPEN:
        raise MalformedHeaderError("missing frequency table header")

    blob = bytearray(first)
    while True:
        b = stream.read(1)
        if not b:
            raise MalformedHeaderError("stream ended inside the frequency table header")
        blob += b
        if b == CLOSE:
            break
        if len(blob) > MAX_HEADER_BYTES:
            raise MalformedHeaderError("frequency table header is too long")

    return parse_frequency_table(bytes(blob), config)
