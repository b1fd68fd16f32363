"""
Code Book Experiments: chained hash code book vs plain dict

Runs repeated experiments on HuffmanCodeBook to produce data for the report

Outputs (in --outdir):
  - growth.csv      (one row per run per alphabet size)
  - metrics.csv     (raw row per run per dataset per pipeline)
  - summary.csv     (grouped mean/stdev of metrics.csv)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_max_symbols 1024 --exp2_size_kb 256
  python experiments.py --outdir results --no_exp1 --exp2_generators uniform64,zipf64,english_like

Notes:
  Codes are fixed-width block codes (symbol index in binary), the experiments
  measure the table, not the quality of the codes.
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

import matplotlib.pyplot as plt

from bitsequence import BitSequence
from codebook import DEFAULT_BOOK_SIZE, HuffmanCodeBook

FIRST_SYMBOL = 0x20 # generated alphabets start at ' '


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def alphabet_chars(n: int) -> List[str]:
    return [chr(FIRST_SYMBOL + i) for i in range(n)]


def fixed_length_codes(symbols: Iterable[str]) -> Dict[str, BitSequence]:
    """
    Gives each distinct symbol (in sorted order) its index as a fixed-width binary code
    One symbol still gets a 1-bit code so that encoding is never empty
    """
    ordered = sorted(set(symbols))
    width = max(1, math.ceil(math.log2(len(ordered)))) if ordered else 1
    return {sym: BitSequence(format(i, f"0{width}b")) for i, sym in enumerate(ordered)}


def build_codebook(codes: Dict[str, BitSequence], book_size: int = DEFAULT_BOOK_SIZE) -> HuffmanCodeBook:
    book = HuffmanCodeBook(book_size)
    for sym, code in codes.items():
        book.add_sequence(sym, code)
    return book


# Synthetic text generators

def _sample_weighted(size: int, chars: Sequence[str], weights: Sequence[float], rng: random.Random) -> str:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = []
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(chars[lo])
    return ''.join(out)

def gen_uniform(size: int, alphabet: int = 64, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = alphabet_chars(alphabet)
    return ''.join(rng.choice(chars) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> str:
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample_weighted(size, alphabet_chars(alphabet), weights, random.Random(seed))

def gen_repetitive(size: int, dominant: str = 'A', dom_frac: float = 0.90, seed: int = 0) -> str:
    others = [c for c in alphabet_chars(95) if c != dominant]
    weights = [dom_frac] + [(1.0 - dom_frac) / len(others)] * len(others)
    return _sample_weighted(size, [dominant] + others, weights, random.Random(seed))

def gen_english_like(size: int, seed: int = 0) -> str:
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
    return _sample_weighted(size, chars, weights, random.Random(seed))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform64": lambda size, seed: gen_uniform(size, alphabet=64, seed=seed),
    "uniform95": lambda size, seed: gen_uniform(size, alphabet=95, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant='A', dom_frac=0.90, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> Tuple[str, str]:
    """
    Unknown dataset names fall back to uniform64 so a typo does not abort the whole run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform64", gen_uniform(size, alphabet=64, seed=seed)
    return name, fn(size, seed)


# Experiment runners

@dataclass
class GrowthRow:
    run_id: int
    symbols: int
    book_size: int
    resize_count: int
    longest_chain: int
    empty_buckets: int
    comparisons_per_lookup: float
    insert_ms: float


def run_growth(symbols: int) -> GrowthRow:
    codes = fixed_length_codes(alphabet_chars(symbols))

    t0 = now_ns()
    book = build_codebook(codes)
    t1 = now_ns()

    chains = book.chain_lengths()
    comparisons = sum(book.search(sym)[1] for sym in codes)

    return GrowthRow(
        run_id=0,
        symbols=symbols,
        book_size=book.book_size,
        resize_count=book.resize_count,
        longest_chain=max(chains),
        empty_buckets=chains.count(0),
        comparisons_per_lookup=comparisons / max(1, symbols),
        insert_ms=ns_to_ms(t1 - t0),
    )


@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    text_length: int
    run_id: int
    pipeline: str  # "codebook" or "dict"
    unique_symbols: int

    build_ms: float
    encode_ms: float
    total_ms: float

    encoded_bits: int
    compressed_bytes: int
    pad_bits: int
    compression_ratio: float

    lookup_comparisons_total: int
    lookup_comparisons_per_symbol: float
    correctness_ok: int  # 1 or 0


def run_one(text: str, pipeline: str) -> MetricRow:
    codes = fixed_length_codes(text)
    expected = ''.join(str(codes[c]) for c in text)
    comparisons_total = 0

    if pipeline == "codebook":
        t0 = now_ns()
        book = build_codebook(codes)
        t1 = now_ns()
        encoded = book.encode(text)
        t2 = now_ns()
        comparisons_total = sum(book.search(c)[1] for c in text)

    elif pipeline == "dict":
        t0 = now_ns()
        table = {sym: str(code) for sym, code in codes.items()}
        t1 = now_ns()
        encoded = BitSequence(''.join(table[c] for c in text))
        t2 = now_ns()
    else:
        raise ValueError("pipeline must be 'codebook' or 'dict'")

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    packed, pad_bits = encoded.pack()
    original_bytes = len(text.encode("utf-8"))

    return MetricRow(
        exp_name="",
        dataset_name="",
        text_length=len(text),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(codes),
        build_ms=build_ms,
        encode_ms=encode_ms,
        total_ms=build_ms + encode_ms,
        encoded_bits=len(encoded),
        compressed_bytes=len(packed),
        pad_bits=pad_bits,
        compression_ratio=len(packed) / max(1, original_bytes),
        lookup_comparisons_total=comparisons_total,
        lookup_comparisons_per_symbol=(comparisons_total / max(1, len(text))) if pipeline == "codebook" else 0.0,
        correctness_ok=1 if str(encoded) == expected else 0,
    )


def write_csv(path: Path, rows: list) -> None:
    if not rows:
        return
    names = [f.name for f in fields(rows[0])]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ("build_ms", "encode_ms", "total_ms", "compression_ratio", "lookup_comparisons_per_symbol")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, text_length, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.text_length, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "text_length", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, length, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "text_length": length,
                "pipeline": pipeline,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def plot_growth(rows: List[GrowthRow], outdir: Path) -> None:
    if not rows:
        return

    sizes = sorted(set(r.symbols for r in rows))

    def mean_for(symbols: int, field: str) -> float:
        return statistics.mean(getattr(r, field) for r in rows if r.symbols == symbols)

    plt.figure()
    plt.plot(sizes, [mean_for(s, "book_size") for s in sizes], marker="o", label="book size")
    plt.plot(sizes, sizes, linestyle="--", label="symbols")
    plt.xlabel("Symbols Inserted")
    plt.ylabel("Buckets")
    plt.title("Experiment 1: Book Size vs Symbols")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_book_size.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(sizes, [mean_for(s, "comparisons_per_lookup") for s in sizes], marker="o")
    plt.xlabel("Symbols Inserted")
    plt.ylabel("Comparisons per Lookup (avg)")
    plt.title("Experiment 1: Chain Scan Cost vs Symbols")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_lookup_cost.png", dpi=200)
    plt.close()


def plot_encode(rows: List[MetricRow], outdir: Path) -> None:
    if not rows:
        return

    datasets = sorted(set(r.dataset_name for r in rows))
    pipelines = ["codebook", "dict"]
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    plt.figure()
    for p in pipelines:
        plt.plot(x, [mean_for(d, p, "encode_ms") for d in datasets], marker="o", label=p)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Encode Time (ms)")
    plt.title("Experiment 2: Encode Time by Dataset")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp2_encode_time.png", dpi=200)
    plt.close()

    plt.figure()
    plt.plot(x, [mean_for(d, "codebook", "lookup_comparisons_per_symbol") for d in datasets], marker="o")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Comparisons per Symbol (avg)")
    plt.title("Experiment 2: Code Book Lookup Cost by Dataset")
    plt.tight_layout()
    plt.savefig(outdir / "exp2_lookup_cost.png", dpi=200)
    plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (table growth)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (encode)")

    # Experiment 1 controls
    ap.add_argument("--exp1_min_symbols", type=int, default=4, help="Experiment 1 smallest alphabet (doubling growth)")
    ap.add_argument("--exp1_max_symbols", type=int, default=512, help="Experiment 1 largest alphabet")

    # Experiment 2 controls
    ap.add_argument("--exp2_size_kb", type=int, default=64, help="Experiment 2 text length in K characters")
    ap.add_argument("--exp2_generators", type=str, default="uniform64,zipf64,repetitive90,english_like",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    growth_rows: List[GrowthRow] = []
    rows: List[MetricRow] = []

    # Experiment 1: table growth (alphabet size doubles)
    if not args.no_exp1:
        symbols = max(1, args.exp1_min_symbols)
        while symbols <= args.exp1_max_symbols:
            for run_id in range(1, args.runs + 1):
                row = run_growth(symbols)
                row.run_id = run_id
                growth_rows.append(row)
            symbols *= 2

    # Experiment 2: encode the same text through both pipelines
    if not args.no_exp2:
        size = max(1, args.exp2_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp2_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, text = generate_dataset(gen_name, size, args.seed + run_id)
                for pipeline in ("codebook", "dict"):
                    row = run_one(text, pipeline)
                    row.exp_name = "exp2_encode"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)

    growth_csv = outdir / "growth.csv"
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(growth_csv, growth_rows)
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_growth(growth_rows, outdir)
    plot_encode(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(growth_rows)} rows to {growth_csv}")
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Encoding agreement across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
