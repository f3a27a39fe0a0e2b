"""
Bit-granular reader/writer over binary streams

Bits are packed most-significant-bit first, the same order the
accumulator in experiments.py used when packing Huffman codes
"""

from __future__ import annotations

import io
from typing import BinaryIO, Optional

MAX_WIDTH = 64


class BitInputStream:
    def __init__(self, stream: BinaryIO, owns_stream: bool = False):
        self.stream = stream
        self.owns_stream = owns_stream
        self.acc = 0       # buffered bits not yet handed out
        self.acc_bits = 0  # how many bits of acc are valid
        self.bits_read = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "BitInputStream":
        return cls(io.BytesIO(data), owns_stream=True)

    @classmethod
    def open_input(cls, path) -> "BitInputStream":
        return cls(open(path, "rb"), owns_stream=True)

    def read_bits(self, n: int) -> Optional[int]:
        """
        Returns the next n bits as an unsigned int, or None when fewer
        than n bits are left in the stream
        """
        if n < 0 or n > MAX_WIDTH:
            raise ValueError(f"cannot read {n} bits at once (max {MAX_WIDTH})")

        while self.acc_bits < n:
            chunk = self.stream.read(1)
            if not chunk:
                return None
            self.acc = (self.acc << 8) | chunk[0]
            self.acc_bits += 8

        self.acc_bits -= n
        value = (self.acc >> self.acc_bits) & ((1 << n) - 1)
        self.acc &= (1 << self.acc_bits) - 1
        self.bits_read += n
        return value

    def reset(self) -> None:
        # rewinds to the start so the data can be read a second time
        if not self.stream.seekable():
            raise io.UnsupportedOperation("input stream cannot be rewound")
        self.stream.seek(0)
        self.acc = 0
        self.acc_bits = 0
        self.bits_read = 0

    def close(self) -> None:
        if self.owns_stream:
            self.stream.close()

    def __enter__(self) -> "BitInputStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class BitOutputStream:
    def __init__(self, stream: BinaryIO, owns_stream: bool = False):
        self.stream = stream
        self.owns_stream = owns_stream
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0
        self.closed = False

    @classmethod
    def open_output(cls, path) -> "BitOutputStream":
        return cls(open(path, "wb"), owns_stream=True)

    def write_bits(self, n: int, value: int) -> None:
        """Appends the low n bits of value"""
        if n < 0 or n > MAX_WIDTH:
            raise ValueError(f"cannot write {n} bits at once (max {MAX_WIDTH})")
        if self.closed:
            raise ValueError("write to a closed BitOutputStream")

        self.acc = (self.acc << n) | (value & ((1 << n) - 1))
        self.acc_bits += n
        self.bits_written += n

        if self.acc_bits >= 8:
            whole = self.acc_bits // 8
            self.acc_bits -= whole * 8
            self.stream.write((self.acc >> self.acc_bits).to_bytes(whole, "big"))
            self.acc &= (1 << self.acc_bits) - 1

    def flush(self) -> None:
        self.stream.flush()

    def close(self) -> None:
        """Pads the last partial byte with zero bits and flushes"""
        if self.closed:
            return
        if self.acc_bits != 0:
            pad_bits = 8 - self.acc_bits
            self.stream.write(bytes([(self.acc << pad_bits) & 0xFF]))
            self.acc = 0
            self.acc_bits = 0
        self.flush()
        self.closed = True
        if self.owns_stream:
            self.stream.close()

    def __enter__(self) -> "BitOutputStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
