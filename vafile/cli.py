"""Command line driver: build a VA-file, run a KNN workload, report pruning and I/O."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional
import numpy as np

from .config import DEFAULT_PAGE_SIZE
from .distance import distance_by_name
from .errors import VAFileError
from .evaluation import exact_topk, recall_at_k, run_knn, sweep_partitions
from .index import VAFile, get_range_searcher
from .relation import VectorRelation, load_matrix


def _parse_ints(s: str) -> List[int]:
    return [int(x) for x in s.split(",") if x.strip()]


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="vafile", description="VA-file similarity search")
    ap.add_argument("--db", required=False, help="Path to DB matrix (.fvecs, .vec, or ASCII-header binary).")
    ap.add_argument("--q",  required=False, help="Path to Query matrix (same formats).")
    ap.add_argument("--k", type=int, default=10)
    ap.add_argument("--partitions", type=int, default=16, help="Grid cells per dimension (power of 2).")
    ap.add_argument("--pagesize", type=int, default=DEFAULT_PAGE_SIZE, help="Simulated page size in bytes.")
    ap.add_argument("--distance", default="l2", help="l1, l2, linf, lp:<p> or cosine (linear scan).")
    ap.add_argument("--eps", type=float, default=None, help="Also run range queries with this radius.")
    ap.add_argument("--maxrows", type=int, default=100000)
    ap.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    # Optional sweep over grid resolutions
    ap.add_argument("--sweep_out", type=str, default=None, help="Directory to write sweep CSV (and PNGs).")
    ap.add_argument("--sweep_partitions", type=str, default="2,4,8,16,32,64",
                    help="Comma list of partition counts, e.g. 4,16,64")
    ap.add_argument("--no_plot", action="store_true", help="Sweep CSV only; skip matplotlib.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Load data or synthesize a small demo if paths are not provided
    if args.db is None or args.q is None:
        rng = np.random.default_rng(42)
        DB = rng.normal(size=(2000, 16))
        Q = rng.normal(size=(30, 16))
    else:
        DB = load_matrix(args.db, args.maxrows)
        Q = load_matrix(args.q, args.maxrows)

    try:
        distance = distance_by_name(args.distance)
        relation = VectorRelation(DB)
        index = VAFile(relation, args.partitions, args.pagesize).initialize()

        gt = [relation.ids[i] for i in exact_topk(relation.matrix, Q, args.k, distance)]
        preds = run_knn(index, Q, args.k, distance)
        R = recall_at_k(gt, preds)

        print(f"n={len(relation)}  d={relation.dimensionality}  partitions={args.partitions}  "
              f"pagesize={args.pagesize}  distance={distance.name}")
        print(f"recall@{args.k}={R:.4f}  refinements/query={index.stats.mean_refinements:.1f}  "
              f"scanned_pages={index.scanned_pages()}")

        if args.eps is not None:
            searcher = get_range_searcher(index, distance)
            hits = [len(searcher.range(q, args.eps)) for q in Q]
            print(f"range eps={args.eps}: mean hits/query={np.mean(hits):.1f}")

        if args.sweep_out is not None:
            rows = sweep_partitions(relation, Q, args.k, distance, _parse_ints(args.sweep_partitions),
                                    args.pagesize, args.sweep_out, plot=not args.no_plot)
            for r in rows:
                print(f"  P={r['partitions']:<4d} refinements/query={r['mean_refinements']:.1f}  "
                      f"pages={r['scanned_pages']}  recall={r['recall']:.4f}")
        index.log_statistics()
    except VAFileError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
