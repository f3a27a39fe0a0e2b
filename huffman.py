import heapq
import io
import logging

from bitstream import MAX_WIDTH, BitInputStream, BitOutputStream

logger = logging.getLogger(__name__)

BITS_PER_WORD = 8
BITS_PER_INT = 32
ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE  # one past the largest byte value
HUFF_NUMBER = 0xface8200
HUFF_TREE = HUFF_NUMBER | 1  # magic at the start of every compressed stream

# debug levels, mapped onto logging levels by hufftool.py
DEBUG_LOW = 1
DEBUG_HIGH = 4


class HuffError(Exception):
    """Base class for errors in compressed data"""


class FormatError(HuffError):
    pass


class MalformedHeaderError(HuffError):
    pass


class TruncatedStreamError(HuffError):
    pass


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, weight, left=None, right=None, order=0):
        self.symbol = symbol    # 0..256, or None for internal nodes
        self.weight = weight
        self.left = left
        self.right = right
        self.order = order      # creation order, breaks ties between equal weights

    def is_leaf(self):
        return self.left is None and self.right is None

    def __lt__(self, other):
        return (self.weight, self.order) < (other.weight, other.order) # min-heap on weight, oldest node first

    def __eq__(self, other): # same shape and leaf values; weights are not compared
        if not isinstance(other, HuffmanNode):
            return NotImplemented
        if self.is_leaf() or other.is_leaf():
            return self.is_leaf() and other.is_leaf() and self.symbol == other.symbol
        return self.left == other.left and self.right == other.right

    __hash__ = None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol}, weight={self.weight})"
        return f"HuffmanNode(weight={self.weight}, left={self.left!r}, right={self.right!r})"


def count_frequencies(bits_in: BitInputStream) -> list: # reads the whole input, one byte at a time
    counts = [0] * (ALPH_SIZE + 1)
    while True:
        value = bits_in.read_bits(BITS_PER_WORD)
        if value is None:
            break
        counts[value] += 1

    counts[PSEUDO_EOF] = 1
    logger.info("counted %d bytes, %d distinct symbols (with PSEUDO_EOF)",
                sum(counts) - 1, sum(1 for c in counts if c > 0))
    return counts


def build_huffman_tree(counts) -> HuffmanNode: # counts: list of 257 symbol frequencies
    priority_queue = []
    order = 0
    for symbol, weight in enumerate(counts):
        if weight > 0:
            priority_queue.append(HuffmanNode(symbol, weight, order=order))
            order += 1
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left.weight + right.weight, left, right, order=order)
        order += 1
        heapq.heappush(priority_queue, merged_node)

    return priority_queue[0]


def generate_huffman_codes(root: HuffmanNode) -> dict: # maps every leaf symbol to its '0'/'1' path
    codes = {}

    def generate_codes_helper(node, path):
        if node.is_leaf():
            codes[node.symbol] = path
            return
        generate_codes_helper(node.left, path + '0')
        generate_codes_helper(node.right, path + '1')

    generate_codes_helper(root, '')

    if logger.isEnabledFor(logging.DEBUG):
        for symbol in sorted(codes):
            logger.debug("symbol %3d -> %s", symbol, codes[symbol])
    return codes


def write_header(root: HuffmanNode, bits_out: BitOutputStream) -> None:
    """
    Pre-order tree dump: an internal node is a 0 bit followed by its left
    and right subtrees, a leaf is a 1 bit followed by its 9-bit symbol
    """
    if root.is_leaf():
        bits_out.write_bits(1, 1)
        bits_out.write_bits(BITS_PER_WORD + 1, root.symbol)
        logger.debug("header leaf %d", root.symbol)
        return

    bits_out.write_bits(1, 0)
    write_header(root.left, bits_out)
    write_header(root.right, bits_out)


def read_header(bits_in: BitInputStream, depth: int = 0) -> HuffmanNode:
    bit = bits_in.read_bits(1)
    if bit is None:
        raise MalformedHeaderError("ran out of bits while reading tree header")

    if bit == 0:
        # 257 leaves allow internal nodes at depths 0..255 only
        if depth >= ALPH_SIZE:
            raise MalformedHeaderError(f"tree header nests deeper than {ALPH_SIZE} levels")
        left = read_header(bits_in, depth + 1)
        right = read_header(bits_in, depth + 1)
        return HuffmanNode(None, 0, left, right)

    value = bits_in.read_bits(BITS_PER_WORD + 1)
    if value is None:
        raise MalformedHeaderError("ran out of bits while reading a leaf value")
    if value > PSEUDO_EOF:
        raise MalformedHeaderError(f"leaf value {value} is not a symbol")
    return HuffmanNode(value, 0)


def write_code(code: str, bits_out: BitOutputStream) -> None:
    # an empty input leaves PSEUDO_EOF as the only leaf, with an empty code.
    # codes can run to 256 bits, longer than one write_bits call takes
    for start in range(0, len(code), MAX_WIDTH):
        chunk = code[start:start + MAX_WIDTH]
        bits_out.write_bits(len(chunk), int(chunk, 2))


def write_compressed_bits(codes: dict, bits_in: BitInputStream, bits_out: BitOutputStream) -> None:
    while True:
        value = bits_in.read_bits(BITS_PER_WORD)
        if value is None:
            break
        write_code(codes[value], bits_out)

    write_code(codes[PSEUDO_EOF], bits_out)


def read_compressed_bits(root: HuffmanNode, bits_in: BitInputStream) -> bytes:
    if root.is_leaf():
        if root.symbol == PSEUDO_EOF:
            return b""
        raise MalformedHeaderError(f"tree is a single leaf {root.symbol} with no PSEUDO_EOF")

    decoded = bytearray()
    node = root
    while True:
        bit = bits_in.read_bits(1)
        if bit is None:
            raise TruncatedStreamError("bad input, no PSEUDO_EOF")

        node = node.right if bit == 1 else node.left

        # Leaf
        if node.is_leaf():
            if node.symbol == PSEUDO_EOF:
                return bytes(decoded)
            decoded.append(node.symbol)
            node = root


def compress(bits_in: BitInputStream, bits_out: BitOutputStream) -> int:
    """
    Compresses everything readable from bits_in into bits_out and closes
    bits_out. bits_in is read twice, so it must support reset().

    Returns the number of bits written, not counting the final padding
    """
    counts = count_frequencies(bits_in)
    root = build_huffman_tree(counts)
    codes = generate_huffman_codes(root)

    bits_out.write_bits(BITS_PER_INT, HUFF_TREE)
    write_header(root, bits_out)
    header_bits = bits_out.bits_written - BITS_PER_INT
    logger.info("tree header is %d bits for %d leaves", header_bits, len(codes))

    bits_in.reset()
    write_compressed_bits(codes, bits_in, bits_out)
    total_bits = bits_out.bits_written
    logger.info("payload is %d bits", total_bits - header_bits - BITS_PER_INT)

    bits_out.close()
    return total_bits


def decompress(bits_in: BitInputStream, bits_out: BitOutputStream) -> int:
    """
    Reverses compress(). Nothing is written to bits_out unless the whole
    payload decodes up to its PSEUDO_EOF.

    Returns the number of bytes written
    """
    magic = bits_in.read_bits(BITS_PER_INT)
    if magic != HUFF_TREE:
        shown = "end of data" if magic is None else hex(magic)
        raise FormatError(f"illegal header starts with {shown}")

    root = read_header(bits_in)
    decoded = read_compressed_bits(root, bits_in)

    for value in decoded:
        bits_out.write_bits(BITS_PER_WORD, value)
    bits_out.close()
    logger.info("decoded %d bytes from %d bits", len(decoded), bits_in.bits_read)
    return len(decoded)


def compress_bytes(data: bytes) -> bytes:
    out = io.BytesIO()
    compress(BitInputStream(io.BytesIO(data)), BitOutputStream(out))
    return out.getvalue()


def decompress_bytes(blob: bytes) -> bytes:
    out = io.BytesIO()
    decompress(BitInputStream(io.BytesIO(blob)), BitOutputStream(out))
    return out.getvalue()
