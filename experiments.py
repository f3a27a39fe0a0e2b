# Jacob Mitchell, Kyle Axtell
# experiments.py

"""
Benchmark for the Huffman file format

Compresses synthetic datasets through the real stream format (magic,
tree header, payload, PSEUDO_EOF) and records timing and size numbers

Outputs (in --outdir):
  - metrics.csv     (raw row per run per dataset)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_mb 2
  python experiments.py --outdir results --exp1_generators uniform256,english_like --no_exp2
"""

from __future__ import annotations

import argparse
import bisect
import csv
import io
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import huffman as huff
from bitstream import BitInputStream, BitOutputStream


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


# Synthetic dataset generators

def _sample_weighted(rng: random.Random, symbols: Sequence[int], weights: Sequence[float], size: int) -> bytes:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = bytearray()
    for _ in range(size):
        idx = min(bisect.bisect_left(cdf, rng.random()), len(symbols) - 1)
        out.append(symbols[idx])
    return bytes(out)

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample_weighted(rng, list(range(alphabet)), weights, size)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample_weighted(rng, [ord(c) for c in chars], weights, size)

def gen_single_byte(size: int, seed: int = 0) -> bytes:
    # one distinct byte: the tree is that byte plus PSEUDO_EOF
    return bytes([random.Random(seed).randrange(256)]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_byte": lambda size, seed: gen_single_byte(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r}, choose from {sorted(GENERATOR_REGISTRY)}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int  # includes PSEUDO_EOF

    count_ms: float
    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    header_bits: int
    compressed_bytes: int
    compression_ratio: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    """
    Runs the compress steps one at a time so each can be timed, then
    decodes the finished stream with huffman.decompress
    """
    bits_in = BitInputStream(io.BytesIO(data))
    sink = io.BytesIO()
    bits_out = BitOutputStream(sink)

    t0 = now_ns()
    counts = huff.count_frequencies(bits_in)
    t1 = now_ns()
    root = huff.build_huffman_tree(counts)
    codes = huff.generate_huffman_codes(root)
    t2 = now_ns()

    bits_out.write_bits(huff.BITS_PER_INT, huff.HUFF_TREE)
    huff.write_header(root, bits_out)
    header_bits = bits_out.bits_written - huff.BITS_PER_INT
    bits_in.reset()
    huff.write_compressed_bits(codes, bits_in, bits_out)
    bits_out.close()
    t3 = now_ns()

    packed = sink.getvalue()
    t4 = now_ns()
    decoded = huff.decompress_bytes(packed)
    t5 = now_ns()

    count_ms = ns_to_ms(t1 - t0)
    build_ms = ns_to_ms(t2 - t1)
    encode_ms = ns_to_ms(t3 - t2)
    decode_ms = ns_to_ms(t5 - t4)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=len(codes),
        count_ms=count_ms,
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=count_ms + build_ms + encode_ms + decode_ms,
        header_bits=header_bits,
        compressed_bytes=len(packed),
        compression_ratio=len(packed) / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "header_bits", "count_ms", "build_ms", "encode_ms", "decode_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        key_to.setdefault((r.exp_name, r.dataset_name, r.file_size_bytes), []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (exp_name, dataset_name, size_b), items in sorted(key_to.items()):
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    for field, ylabel, title, fname in (
        ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio by Distribution", "exp1_compression_ratio.png"),
        ("header_bits", "Tree Header Size (bits)", "Header Size by Distribution", "exp1_header_bits.png"),
    ):
        plt.figure()
        plt.bar(x, [mean_for(d, field) for d in datasets])
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 1: {title}")
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()

    plt.figure()
    for field in ("count_ms", "build_ms", "encode_ms", "decode_ms"):
        plt.plot(x, [mean_for(d, field) for d in datasets], marker="o", label=field[:-3])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 1: Time per Phase by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_phase_time.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    def mean_size(dist: str, size: int, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dist and r.file_size_bytes == size]
        return statistics.mean(vals) if vals else float("nan")

    for field, ylabel, title, fname in (
        ("total_ms", "Total Time (ms) (count + build + encode + decode)", "Total Runtime vs Size", "exp2_total_time.png"),
        ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio vs Size", "exp2_compression_ratio.png"),
    ):
        plt.figure()
        for dist in distributions:
            sizes = sorted(set(r.file_size_bytes for r in exp_rows if r.dataset_name == dist))
            plt.plot(sizes, [mean_size(dist, s, field) for s in sizes], marker="o", label=dist)
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 2: {title}")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Benchmark the Huffman file format on synthetic data")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    ap.add_argument("--exp1_size_kb", type=int, default=256, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str,
                    default="uniform256,zipf128,repetitive90,repetitive99,english_like,single_byte",
                    help="Comma-separated dataset generator names for experiment 1")

    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_mb", type=int, default=2, help="Experiment 2 max size in MB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,english_like",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    def record(exp_name: str, gen_name: str, size_b: int, seed: int, run_id: int) -> None:
        row = run_one(generate_dataset(gen_name, size_b, seed))
        row.exp_name = exp_name
        row.dataset_name = gen_name
        row.run_id = run_id
        rows.append(row)

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                record("exp1_distribution", gen_name, fixed_size, args.seed + run_id, run_id)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_mb) * 1024 * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    record("exp2_size_scaling", gen_name, size_b, args.seed + 10_000 + size_b + run_id, run_id)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
