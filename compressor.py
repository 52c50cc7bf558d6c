"""
Huffman file compressor

Compressed layout: frequency table header, then the packed code bits of the
data ending with the end-of-stream code, zero padded to a whole byte.

Usage:
  huffzip compress notes.txt            # writes notes.txt.huf
  huffzip compress --check notes.txt    # also verifies the round trip in memory
  huffzip decompress notes.txt.huf      # writes notes_unc.txt
"""

import argparse
import io
import logging
import os
from typing import BinaryIO, List, Optional, Tuple

import huffman as huff
from bitio import BitReader, BitWriter
from freq_header import read_frequency_table, write_frequency_table

logger = logging.getLogger(__name__)

COMPRESSED_SUFFIX = ".huf"
DECOMPRESSED_TAG = "_unc"


# File naming

def compressed_name(filename: str) -> str:
    return filename + COMPRESSED_SUFFIX

def decompressed_name(filename: str) -> str:
    # example.txt.huf -> example_unc.txt
    if filename.endswith(COMPRESSED_SUFFIX):
        filename = filename[:-len(COMPRESSED_SUFFIX)]
    root, ext = os.path.splitext(filename)
    return root + DECOMPRESSED_TAG + ext


# Streams

def compress_stream(source: BinaryIO, sink: BinaryIO,
                    config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> str:
    """
    Compress everything readable from ``source`` into ``sink``

    Returns the body as a string of '0'/'1', which is handy for tests
    """
    data = source.read()
    table = huff.build_frequency_table(data, config)

    with huff.build_huffman_tree(table, config) as tree:
        code_table = huff.build_code_table(tree)

    bits = huff.encode(data, code_table, config)

    header_size = write_frequency_table(sink, table)
    with BitWriter(sink) as writer:
        huff.write_bits(bits, writer)

    logger.debug("compressed %d bytes: %d symbols, %d header bytes, %d body bits",
                 len(data), len(table), header_size, len(bits))
    return bits

def decompress_stream(source: BinaryIO, sink: Optional[BinaryIO] = None,
                      config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> bytes:
    table = read_frequency_table(source, config)
    return decode_body(source, table, sink, config)

def decode_body(source: BinaryIO, table, sink: Optional[BinaryIO] = None,
                config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> bytes:
    # source must be positioned right after the header that produced table
    with huff.build_huffman_tree(table, config) as tree:
        reader = BitReader(source)
        decoded = huff.decode(reader, tree, output=sink, config=config)

    logger.debug("decompressed %d bytes from %d body bits", len(decoded), reader.bits_read)
    return decoded


# In-memory

def compress_bytes(data: bytes,
                   config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> Tuple[bytes, str]:
    sink = io.BytesIO()
    bits = compress_stream(io.BytesIO(data), sink, config)
    return sink.getvalue(), bits

def decompress_bytes(artifact: bytes,
                     config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> bytes:
    return decompress_stream(io.BytesIO(artifact), None, config)


# Files

def compress(filename: str, config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> str:
    with open(filename, "rb") as source:
        with open(compressed_name(filename), "wb") as sink:
            return compress_stream(source, sink, config)

def decompress(filename: str, config: huff.HuffmanConfig = huff.DEFAULT_CONFIG) -> bytes:
    with open(filename, "rb") as source:
        table = read_frequency_table(source, config) # no output file for a bad header
        with open(decompressed_name(filename), "wb") as sink:
            return decode_body(source, table, sink, config)


# Command line

def run_compress(filename: str, check: bool) -> None:
    bits = compress(filename)
    out_name = compressed_name(filename)
    orig_size = os.path.getsize(filename)
    comp_size = os.path.getsize(out_name)
    logger.info("compress: %s (%dB) -> %s (%dB), %d body bits",
                filename, orig_size, out_name, comp_size, len(bits))

    if check:
        with open(filename, "rb") as f:
            data = f.read()
        with open(out_name, "rb") as f:
            decoded = decompress_bytes(f.read())
        if decoded != data:
            raise huff.HuffmanError(f"{filename}: round-trip check failed")
        logger.info("check: %s round-trips", filename)

def run_decompress(filename: str) -> None:
    decoded = decompress(filename)
    logger.info("decompress: %s -> %s (%dB)", filename, decompressed_name(filename), len(decoded))

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="huffzip", description="Huffman compress or decompress files")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    sub = ap.add_subparsers(dest="command", required=True)

    ap_c = sub.add_parser("compress", help="Compress FILE into FILE.huf")
    ap_c.add_argument("files", nargs="+")
    ap_c.add_argument("--check", action="store_true", help="Decompress in memory and compare with the input")

    ap_d = sub.add_parser("decompress", help="Decompress FILE.huf into FILE_unc")
    ap_d.add_argument("files", nargs="+")

    args = ap.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    failed = 0
    for filename in args.files:
        try:
            if args.command == "compress":
                run_compress(filename, args.check)
            else:
                run_decompress(filename)
        except (OSError, huff.HuffmanError) as e:
            logger.error("%s: %s", filename, e)
            failed += 1

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
