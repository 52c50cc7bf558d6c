import heapq
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

NO_CHILD = -1 # arena index used by leaves for both children
READ_CHUNK = 64 * 1024


class HuffmanError(Exception):
    pass

class MalformedHeaderError(HuffmanError, ValueError):
    pass

class DegenerateTreeError(HuffmanError, ValueError):
    pass


@dataclass(frozen=True)
class HuffmanConfig:
    eof_symbol: int = 256 # pseudo end-of-stream symbol, appended to every table
    internal_marker: int = 257 # symbol carried by internal nodes, never transmitted

    def __post_init__(self):
        for value in (self.eof_symbol, self.internal_marker):
            if 0 <= value <= 255:
                raise ValueError(f"symbol {value} collides with a byte value")
        if self.eof_symbol < 0:
            raise ValueError("eof_symbol is written to the header and must be positive")
        if self.eof_symbol == self.internal_marker:
            raise ValueError("eof_symbol and internal_marker must differ")

DEFAULT_CONFIG = HuffmanConfig()


class HuffmanNode: # Node for Huffman tree, children are arena indices
    __slots__ = ("symbol", "weight", "zero", "one")

    def __init__(self, symbol, weight, zero=NO_CHILD, one=NO_CHILD):
        self.symbol = symbol
        self.weight = weight
        self.zero = zero
        self.one = one

    def is_leaf(self):
        return self.zero == NO_CHILD and self.one == NO_CHILD


class HuffmanTree:
    """
    Arena holding every node of one Huffman tree

    Nodes refer to their children by index into ``nodes`` and ``root`` is the
    index of the root. The tree is exclusively owned by whoever built it;
    ``release`` drops all nodes at once. Use it as a context manager so the
    release happens on every exit path
    """

    def __init__(self, config: HuffmanConfig = DEFAULT_CONFIG):
        self.config = config
        self.nodes = []
        self.root = NO_CHILD

    def add_node(self, symbol, weight, zero=NO_CHILD, one=NO_CHILD) -> int:
        self.nodes.append(HuffmanNode(symbol, weight, zero, one))
        return len(self.nodes) - 1

    def node(self, index: int) -> HuffmanNode:
        return self.nodes[index]

    @property
    def released(self) -> bool:
        return self.root == NO_CHILD

    @property
    def root_weight(self) -> int:
        if self.released:
            return 0
        return self.nodes[self.root].weight

    def leaf_count(self) -> int: # filler leaves carry the internal marker and are not counted
        return sum(1 for n in self.nodes
                   if n.is_leaf() and n.symbol != self.config.internal_marker)

    def release(self) -> None:
        released = len(self.nodes)
        self.nodes.clear()
        self.root = NO_CHILD
        if released:
            logger.debug("released %d tree nodes", released)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def build_frequency_table(source, config: HuffmanConfig = DEFAULT_CONFIG) -> Dict[int, int]:
    """
    Count every byte of ``source`` and add the end-of-stream symbol with count 1

    ``source`` may be bytes-like, an iterable of byte values, or a readable
    binary stream. The source is only read, never modified
    """
    table: Dict[int, int] = {}
    if hasattr(source, "read"):
        while True:
            chunk = source.read(READ_CHUNK)
            if not chunk:
                break
            for b in chunk:
                table[b] = table.get(b, 0) + 1
    else:
        for b in source:
            table[b] = table.get(b, 0) + 1

    table[config.eof_symbol] = 1
    return table

def build_frequency_table_from_file(path, config: HuffmanConfig = DEFAULT_CONFIG) -> Dict[int, int]:
    with open(path, "rb") as f:
        return build_frequency_table(f, config)


def build_huffman_tree(frequency_table: Dict[int, int],
                       config: HuffmanConfig = DEFAULT_CONFIG) -> HuffmanTree:
    """
    Build the tree by repeatedly merging the two lightest nodes

    Ties are broken by creation order: leaves are created in ascending symbol
    order, merged nodes after them as they are made. Two builds from equal
    tables therefore produce identical trees. The caller owns the result
    """
    if not frequency_table:
        raise DegenerateTreeError("cannot build a Huffman tree from an empty frequency table")

    tree = HuffmanTree(config)
    priority_queue = [] # entries are (weight, sequence, arena index)
    sequence = 0
    for symbol in sorted(frequency_table):
        index = tree.add_node(symbol, frequency_table[symbol])
        priority_queue.append((frequency_table[symbol], sequence, index))
        sequence += 1

    if len(priority_queue) == 1:
        # only the sentinel is present, pair it with a weightless filler so the root still branches
        index = tree.add_node(config.internal_marker, 0)
        priority_queue.append((0, sequence, index))
        sequence += 1

    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        first_weight, _, first = heapq.heappop(priority_queue)
        second_weight, _, second = heapq.heappop(priority_queue)
        weight = first_weight + second_weight
        merged = tree.add_node(config.internal_marker, weight, zero=first, one=second)
        heapq.heappush(priority_queue, (weight, sequence, merged))
        sequence += 1

    tree.root = priority_queue[0][2]
    logger.debug("built tree with %d leaves, root weight %d", tree.leaf_count(), tree.root_weight)
    return tree


def build_code_table(tree: Optional[HuffmanTree]) -> Dict[int, str]:
    codes: Dict[int, str] = {}
    if tree is None or tree.released:
        return codes

    nodes = tree.nodes
    marker = tree.config.internal_marker
    path = [] # scratch buffer shared by every frame

    def walk(index):
        node = nodes[index]
        if node.is_leaf():
            if node.symbol != marker:
                codes[node.symbol] = "".join(path)
            return

        path.append("0")
        walk(node.zero)
        path.pop()

        path.append("1")
        walk(node.one)
        path.pop()

    walk(tree.root)
    return codes


def encode(data: Iterable[int], code_table: Dict[int, str],
           config: HuffmanConfig = DEFAULT_CONFIG) -> str:
    """Return the bit string for ``data`` followed by the end-of-stream code"""
    parts = []
    for b in data:
        code = code_table.get(b)
        if code is None:
            raise ValueError(f"no Huffman code for symbol {b}")
        parts.append(code)

    eof_code = code_table.get(config.eof_symbol)
    if eof_code is None:
        raise ValueError("code table has no end-of-stream code")
    parts.append(eof_code)
    return "".join(parts)

def write_bits(bits: str, writer) -> int:
    for ch in bits:
        writer.write_bit(1 if ch == "1" else 0)
    return len(bits)


def decode(bits, tree: HuffmanTree, output=None,
           config: Optional[HuffmanConfig] = None) -> bytes:
    """
    Walk ``tree`` with ``bits`` and return the decoded bytes

    Decoding stops at the end-of-stream symbol, which is not emitted. If the
    bits run out first, the bytes decoded so far are returned as they are.
    Every decoded byte is also written to ``output`` when one is given
    """
    config = config or tree.config
    decoded = bytearray()
    if tree.released:
        return bytes(decoded)

    nodes = tree.nodes
    root = tree.root
    current = root

    for bit in bits:
        node = nodes[current]
        current = node.one if bit == 1 or bit == "1" else node.zero

        leaf = nodes[current]
        if not leaf.is_leaf():
            continue
        if leaf.symbol == config.eof_symbol:
            return bytes(decoded)
        if leaf.symbol == config.internal_marker:
            logger.warning("reached filler leaf after %d bytes, body is corrupted", len(decoded))
            return bytes(decoded)

        decoded.append(leaf.symbol)
        if output is not None:
            output.write(bytes((leaf.symbol,)))
        current = root

    logger.warning("bit stream ended before end-of-stream symbol, returning %d bytes", len(decoded))
    return bytes(decoded)
