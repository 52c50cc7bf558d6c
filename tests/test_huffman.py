import io
import random

import pytest

import huffman as huff
from huffman import DEFAULT_CONFIG, HuffmanConfig

EOF = DEFAULT_CONFIG.eof_symbol


def _leaves(tree):
    return [n for n in tree.nodes if n.is_leaf()]


def test_frequency_table_aab():
    assert huff.build_frequency_table(b"aab") == {ord('a'): 2, ord('b'): 1, EOF: 1}


def test_frequency_table_empty_has_only_sentinel():
    assert huff.build_frequency_table(b"") == {EOF: 1}


def test_frequency_table_from_stream_and_file(tmp_path):
    data = bytes(range(256)) * 300  # spans several read chunks
    expected = {b: 300 for b in range(256)}
    expected[EOF] = 1

    stream = io.BytesIO(data)
    assert huff.build_frequency_table(stream) == expected
    assert stream.getvalue() == data

    path = tmp_path / "in.bin"
    path.write_bytes(data)
    assert huff.build_frequency_table_from_file(path) == expected


def test_frequency_table_missing_file_raises_oserror(tmp_path):
    with pytest.raises(FileNotFoundError):
        huff.build_frequency_table_from_file(tmp_path / "missing.bin")


def test_custom_config_sentinel():
    config = HuffmanConfig(eof_symbol=300, internal_marker=-1)
    assert huff.build_frequency_table(b"xx", config) == {ord('x'): 2, 300: 1}


@pytest.mark.parametrize("eof,marker", [(65, 257), (256, 0), (256, 256), (-5, 257)])
def test_config_rejects_bad_symbols(eof, marker):
    with pytest.raises(ValueError):
        HuffmanConfig(eof_symbol=eof, internal_marker=marker)


def test_tree_from_empty_table_raises():
    with pytest.raises(huff.DegenerateTreeError):
        huff.build_huffman_tree({})


def test_tree_aab_shape_and_codes():
    table = huff.build_frequency_table(b"aab")
    tree = huff.build_huffman_tree(table)
    assert tree.root_weight == 4
    assert tree.leaf_count() == 3
    assert huff.build_code_table(tree) == {ord('a'): "0", ord('b'): "10", EOF: "11"}


def test_single_symbol_input_gives_two_leaf_tree():
    table = huff.build_frequency_table(b"aaaa")
    tree = huff.build_huffman_tree(table)
    root = tree.node(tree.root)

    assert not root.is_leaf()
    assert tree.leaf_count() == 2
    assert sorted(n.symbol for n in _leaves(tree)) == [ord('a'), EOF]
    assert tree.root_weight == 5

    codes = huff.build_code_table(tree)
    assert codes == {EOF: "0", ord('a'): "1"}


def test_sentinel_only_table_still_branches():
    tree = huff.build_huffman_tree({EOF: 1})
    assert not tree.node(tree.root).is_leaf()
    assert tree.leaf_count() == 1
    assert tree.root_weight == 1
    assert huff.build_code_table(tree) == {EOF: "1"}


def test_deterministic_tie_break():
    table = {ord('a'): 5, ord('b'): 2, ord('c'): 1, EOF: 1}
    reordered = {EOF: 1, ord('c'): 1, ord('a'): 5, ord('b'): 2}

    first = huff.build_code_table(huff.build_huffman_tree(table))
    second = huff.build_code_table(huff.build_huffman_tree(reordered))

    assert first == second
    assert first == {ord('a'): "1", ord('b'): "00", ord('c'): "010", EOF: "011"}


def test_tree_properties_on_random_data():
    rng = random.Random(7)
    data = bytes(rng.choice(b"abcdefghij  \n") for _ in range(5000))
    table = huff.build_frequency_table(data)
    tree = huff.build_huffman_tree(table)

    assert tree.leaf_count() == len(table)
    assert tree.root_weight == sum(table.values()) == len(data) + 1

    for n in tree.nodes:
        if not n.is_leaf():
            assert n.symbol == DEFAULT_CONFIG.internal_marker
            assert n.weight == tree.node(n.zero).weight + tree.node(n.one).weight

    codes = huff.build_code_table(tree)
    assert len(codes) == tree.leaf_count()
    for x, cx in codes.items():
        for y, cy in codes.items():
            if x != y:
                assert not cy.startswith(cx)


def test_all_byte_values_prefix_free():
    table = huff.build_frequency_table(bytes(range(256)))
    codes = huff.build_code_table(huff.build_huffman_tree(table))
    assert len(codes) == 257
    ordered = sorted(codes.values())
    for a, b in zip(ordered, ordered[1:]):
        assert not b.startswith(a)


def test_code_table_of_missing_or_released_tree_is_empty():
    assert huff.build_code_table(None) == {}

    tree = huff.build_huffman_tree(huff.build_frequency_table(b"abc"))
    tree.release()
    assert huff.build_code_table(tree) == {}


def test_release_on_normal_and_error_exit():
    table = huff.build_frequency_table(b"hello")
    with huff.build_huffman_tree(table) as tree:
        assert len(tree.nodes) == 2 * len(table) - 1
    assert tree.released
    assert tree.nodes == []

    with pytest.raises(RuntimeError):
        with huff.build_huffman_tree(table) as tree:
            raise RuntimeError("boom")
    assert tree.released

    tree.release()  # second release is a no-op
    assert tree.root_weight == 0


def test_encode_aab_bit_count():
    table = huff.build_frequency_table(b"aab")
    codes = huff.build_code_table(huff.build_huffman_tree(table))
    bits = huff.encode(b"aab", codes)

    assert bits == "001011"
    assert len(bits) == 2 * len(codes[ord('a')]) + len(codes[ord('b')]) + len(codes[EOF])


def test_encode_unknown_symbol_raises():
    codes = huff.build_code_table(huff.build_huffman_tree(huff.build_frequency_table(b"ab")))
    with pytest.raises(ValueError):
        huff.encode(b"abc", codes)


def test_encode_without_sentinel_code_raises():
    with pytest.raises(ValueError):
        huff.encode(b"a", {ord('a'): "0"})


class _Bits:
    def __init__(self):
        self.bits = []

    def write_bit(self, bit):
        self.bits.append(bit)


def test_write_bits_one_at_a_time():
    sink = _Bits()
    assert huff.write_bits("1101", sink) == 4
    assert sink.bits == [1, 1, 0, 1]


def test_decode_stops_at_sentinel_and_ignores_trailing_bits():
    tree = huff.build_huffman_tree(huff.build_frequency_table(b"aab"))
    out = io.BytesIO()
    assert huff.decode("001011" + "0000", tree, output=out) == b"aab"
    assert out.getvalue() == b"aab"


def test_decode_accepts_int_bits():
    tree = huff.build_huffman_tree(huff.build_frequency_table(b"aab"))
    assert huff.decode([1, 0, 0, 1, 1], tree) == b"ba"


def test_decode_truncated_returns_partial(caplog):
    tree = huff.build_huffman_tree(huff.build_frequency_table(b"aab"))
    with caplog.at_level("WARNING", logger="huffman"):
        assert huff.decode("0010", tree) == b"aab"
    assert "before end-of-stream" in caplog.text

    assert huff.decode("", tree) == b""


def test_decode_filler_leaf_stops():
    tree = huff.build_huffman_tree({EOF: 1})
    assert huff.decode("0", tree) == b""


def test_decode_released_tree_returns_empty():
    tree = huff.build_huffman_tree(huff.build_frequency_table(b"aab"))
    tree.release()
    assert huff.decode("001011", tree) == b""
