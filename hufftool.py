"""
Command line front end for the Huffman compressor

How to run:
  python hufftool.py compress notes.txt              (writes notes.txt.hf)
  python hufftool.py decompress notes.txt.hf         (writes notes.txt)
  python hufftool.py decompress notes.txt.hf -o copy.txt --debug 4
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import List, Optional

import huffman as huff
from bitstream import BitInputStream, BitOutputStream

COMPRESSED_SUFFIX = ".hf"
UNCOMPRESSED_SUFFIX = ".uhf"


def log_level_for(debug: int) -> int:
    if debug >= huff.DEBUG_HIGH:
        return logging.DEBUG
    if debug >= huff.DEBUG_LOW:
        return logging.INFO
    return logging.WARNING


def default_output(src: Path, command: str) -> Path:
    if command == "compress":
        return src.with_name(src.name + COMPRESSED_SUFFIX)
    if src.suffix == COMPRESSED_SUFFIX:
        return src.with_suffix("")
    return src.with_name(src.name + UNCOMPRESSED_SUFFIX)


def run_compress(src: Path, dst: Path) -> int:
    buffer = io.BytesIO()
    with BitInputStream.open_input(src) as bits_in:
        bits = huff.compress(bits_in, BitOutputStream(buffer))
    dst.write_bytes(buffer.getvalue())

    original = src.stat().st_size
    compressed = dst.stat().st_size
    print(f"compressed {src} -> {dst}")
    print(f"bits written: {bits}")
    print(f"size: {original} -> {compressed} bytes")
    if original > 0:
        print(f"saved: {100.0 * (1 - compressed / original):.2f}%")
    return 0


def run_decompress(src: Path, dst: Path) -> int:
    # decode fully before touching dst, so bad input leaves no output file
    buffer = io.BytesIO()
    with BitInputStream.open_input(src) as bits_in:
        count = huff.decompress(bits_in, BitOutputStream(buffer))
    dst.write_bytes(buffer.getvalue())

    print(f"decompressed {src} -> {dst}")
    print(f"bytes written: {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman compress or decompress a file")
    ap.add_argument("command", choices=("compress", "decompress"))
    ap.add_argument("input", type=str, help="File to read")
    ap.add_argument("-o", "--output", type=str, default=None,
                    help=f"File to write (default: add {COMPRESSED_SUFFIX}, or strip it when decompressing)")
    ap.add_argument("--debug", type=int, default=0,
                    help=f"Diagnostic level: {huff.DEBUG_LOW} for summaries, {huff.DEBUG_HIGH} for code tables")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=log_level_for(args.debug), format="%(levelname)s %(name)s: %(message)s")

    src = Path(args.input)
    if not src.is_file():
        print(f"error: no such file: {src}", file=sys.stderr)
        return 2
    dst = Path(args.output) if args.output else default_output(src, args.command)

    try:
        if args.command == "compress":
            return run_compress(src, dst)
        return run_decompress(src, dst)
    except huff.HuffError as e:
        print(f"error: {src}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
