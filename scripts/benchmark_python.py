#!/usr/bin/env python3

"""
Benchmark comparison: csvfeed vs stdlib csv (vs pandas, polars if installed)

# Install dependencies
pip install -e . pandas polars

# Run benchmark with 200k rows × 10 columns
python scripts/benchmark_python.py --rows 200000 --cols 10

# Parse in smaller read chunks
python scripts/benchmark_python.py --chunk-size 65536

# Use an existing CSV file
python scripts/benchmark_python.py --file /path/to/large.csv
"""

import os
import time
import tempfile
import argparse

import csvfeed


def generate_csv(filepath: str, rows: int, cols: int) -> int:
    """Generate a test CSV file with csvfeed's composer and return its size in bytes."""
    print(f"Generating CSV: {rows:,} rows × {cols} columns...")
    start = time.perf_counter()

    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        composer = csvfeed.RowComposer(f.write, ',', '\n')
        composer.define_columns(cols, [1])
        composer.feed([f'col{i}' for i in range(cols)])

        for row_num in range(rows):
            # Every 10th row carries fields that need quoting.
            if row_num % 10 == 0:
                composer.feed([f'value {row_num}, "{i}"' for i in range(cols)])
            else:
                composer.feed([f'value_{row_num}_{i}' for i in range(cols)])

            if row_num > 0 and row_num % 1_000_000 == 0:
                print(f"  Generated {row_num:,} rows...")

    elapsed = time.perf_counter() - start
    size = os.path.getsize(filepath)
    print(f"  Done in {elapsed:.2f}s, file size: {size / (1024**2):.1f} MB")
    return size


def benchmark_csvfeed(filepath: str, chunk_size: int) -> tuple:
    """Benchmark csvfeed parse_file, parse_file_fast and count_rows."""
    print("Benchmarking csvfeed...")

    start = time.perf_counter()
    row_count = csvfeed.count_rows(filepath, chunk_size=chunk_size)
    count_time = time.perf_counter() - start

    start = time.perf_counter()
    rows = csvfeed.parse_file(filepath, chunk_size=chunk_size)
    parse_time = time.perf_counter() - start

    start = time.perf_counter()
    table = csvfeed.parse_file_fast(filepath, chunk_size=chunk_size)
    table_time = time.perf_counter() - start

    return {
        'count_time': count_time,
        'count_rows': row_count,
        'parse_time': parse_time,
        'parse_rows': len(rows) - 1,  # exclude header
        'parse_cols': len(rows[0]) if rows else 0,
        'table_time': table_time,
        'table_rows': len(table) - 1,
    }, None


def benchmark_pandas(filepath: str) -> tuple:
    """Benchmark pandas CSV reader."""
    try:
        import pandas as pd
    except ImportError:
        return None, "pandas not installed"

    print("Benchmarking pandas...")

    start = time.perf_counter()
    df = pd.read_csv(filepath)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,
        'count_rows': len(df),
        'parse_time': parse_time,
        'parse_rows': len(df),
        'parse_cols': len(df.columns),
    }, None


def benchmark_polars(filepath: str) -> tuple:
    """Benchmark polars CSV reader."""
    try:
        import polars as pl
    except ImportError:
        return None, "polars not installed"

    print("Benchmarking polars...")

    start = time.perf_counter()
    df = pl.read_csv(filepath)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,
        'count_rows': len(df),
        'parse_time': parse_time,
        'parse_rows': len(df),
        'parse_cols': len(df.columns),
    }, None


def benchmark_stdlib(filepath: str) -> tuple:
    """Benchmark Python stdlib csv reader."""
    import csv

    print("Benchmarking stdlib csv...")

    start = time.perf_counter()
    with open(filepath, 'r', newline='') as f:
        reader = csv.reader(f)
        rows = list(reader)
    parse_time = time.perf_counter() - start

    return {
        'count_time': None,
        'count_rows': len(rows) - 1,
        'parse_time': parse_time,
        'parse_rows': len(rows) - 1,
        'parse_cols': len(rows[0]) if rows else 0,
    }, None


def format_throughput(file_size: int, parse_time: float) -> str:
    """Calculate and format throughput in MB/s."""
    if parse_time > 0:
        mb_per_sec = (file_size / (1024**2)) / parse_time
        return f"{mb_per_sec:.1f} MB/s"
    return "N/A"


def main():
    parser = argparse.ArgumentParser(description='Benchmark CSV parsers')
    parser.add_argument('--rows', type=int, default=200_000, help='Number of rows')
    parser.add_argument('--cols', type=int, default=10, help='Number of columns')
    parser.add_argument('--file', type=str, help='Use existing CSV file instead of generating')
    parser.add_argument('--chunk-size', type=int, default=csvfeed.READ_CHUNK_SIZE,
                        help='csvfeed file read chunk size in bytes')
    parser.add_argument('--skip-stdlib', action='store_true', help='Skip stdlib csv benchmark')
    args = parser.parse_args()

    if args.file:
        filepath = args.file
        file_size = os.path.getsize(filepath)
        print(f"Using existing file: {filepath} ({file_size / (1024**2):.1f} MB)")
    else:
        fd, filepath = tempfile.mkstemp(suffix='.csv')
        os.close(fd)
        file_size = generate_csv(filepath, args.rows, args.cols)

    print(f"\n{'='*60}")
    print(f"BENCHMARK: {args.rows:,} rows × {args.cols} columns")
    print(f"File size: {file_size / (1024**2):.1f} MB")
    print(f"{'='*60}\n")

    results = {}

    results['csvfeed'], err = benchmark_csvfeed(filepath, args.chunk_size)
    if err:
        print(f"  Skipped: {err}")

    results['polars'], err = benchmark_polars(filepath)
    if err:
        print(f"  Skipped: {err}")

    results['pandas'], err = benchmark_pandas(filepath)
    if err:
        print(f"  Skipped: {err}")

    if not args.skip_stdlib:
        results['stdlib'], err = benchmark_stdlib(filepath)
        if err:
            print(f"  Skipped: {err}")

    print(f"\n{'='*60}")
    print("RESULTS")
    print(f"{'='*60}")
    print(f"{'Library':<12} {'Parse Time':>12} {'Throughput':>14} {'Rows':>12}")
    print(f"{'-'*60}")

    for name, result in sorted(results.items(), key=lambda x: x[1]['parse_time'] if x[1] else float('inf')):
        if result:
            throughput = format_throughput(file_size, result['parse_time'])
            print(f"{name:<12} {result['parse_time']:>10.3f}s {throughput:>14} {result['parse_rows']:>12,}")

    feed = results.get('csvfeed')
    if feed:
        print(f"\ncsvfeed count_rows:      {feed['count_time']:.3f}s")
        print(f"csvfeed parse_file_fast: {feed['table_time']:.3f}s "
              f"({format_throughput(file_size, feed['table_time'])})")

    if not args.file:
        os.unlink(filepath)
        print(f"\nCleaned up temporary file")


if __name__ == '__main__':
    main()
