"""
Ground truth, recall and partition sweeps.

The sweep rebuilds the VA-file for each partition count, runs the same
KNN workload and records pruning quality:
  • mean refinements per query (exact distance computations)
  • simulated pages scanned
  • recall against brute force (1.0 unless something is broken)
Results go to a CSV; with matplotlib available, also to two PNG plots.
"""

from __future__ import annotations
import os
from typing import Dict, List, Sequence
import numpy as np

from .distance import Distance
from .index import VAFile, get_knn_searcher
from .relation import VectorRelation

try:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    _HAS_PLT = True
except ImportError:
    _HAS_PLT = False


def exact_topk(X: np.ndarray, Q: np.ndarray, k: int, distance: Distance) -> List[np.ndarray]:
    """Row indices of the k nearest rows of X for every query, nearest first."""
    out = []
    for q in Q:
        d = distance.distances(np.asarray(q, dtype=np.float64), X)
        idx = np.argpartition(d, k - 1)[:k]
        idx = idx[np.argsort(d[idx], kind="stable")]
        out.append(idx)
    return out


def recall_at_k(ground: List[np.ndarray], preds: List[np.ndarray]) -> float:
    """
    Mean Recall@K over queries:
      |GT ∩ Pred| / K, averaged across the evaluation set.
    """
    K = ground[0].size
    s = 0.0
    for g, p in zip(ground, preds):
        s += len(set(g.tolist()) & set(p.tolist())) / K
    return s / len(ground)


def run_knn(index: VAFile, Q: np.ndarray, k: int, distance: Distance) -> List[np.ndarray]:
    """Object ids of the k nearest neighbors per query, through the index."""
    searcher = get_knn_searcher(index, distance)
    return [np.array([oid for oid, _ in searcher.knn(q, k)], dtype=np.int64) for q in Q]


def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def _plot_xy(path: str, xs: Sequence[float], ys: Sequence[float],
             xlabel: str, ylabel: str, title: str):
    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.plot(xs, ys, marker="o")
    ax.set_xscale("log", base=2)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(path, dpi=180)
    plt.close(fig)


def sweep_partitions(relation: VectorRelation, Q: np.ndarray, k: int, distance: Distance,
                     partitions: Sequence[int], page_size: int, outdir: str,
                     plot: bool = True) -> List[Dict[str, float]]:
    if plot and not _HAS_PLT:
        raise RuntimeError("plotting requested but matplotlib is not available")
    _ensure_dir(outdir)
    csv_path = os.path.join(outdir, f"{distance.name}_partition_sweep.csv")

    ids = relation.ids
    gt = [ids[i] for i in exact_topk(relation.matrix, Q, k, distance)]

    rows = []
    for P in partitions:
        index = VAFile(relation, P, page_size).initialize()
        pred = run_knn(index, Q, k, distance)
        rows.append({
            "partitions": P,
            "mean_refinements": index.stats.mean_refinements,
            "scanned_pages": index.scanned_pages(),
            "recall": recall_at_k(gt, pred),
        })

    with open(csv_path, "w") as f:
        f.write("partitions,mean_refinements,scanned_pages,recall\n")
        for r in rows:
            f.write(f"{r['partitions']},{r['mean_refinements']:.4f},{r['scanned_pages']},{r['recall']:.6f}\n")

    if plot:
        xs = [r["partitions"] for r in rows]
        _plot_xy(os.path.join(outdir, f"{distance.name}_refinements_vs_partitions.png"),
                 xs, [r["mean_refinements"] for r in rows],
                 "Partitions per dimension", "Refinements per query", "VA-file: refinements vs grid resolution")
        _plot_xy(os.path.join(outdir, f"{distance.name}_pages_vs_partitions.png"),
                 xs, [r["scanned_pages"] for r in rows],
                 "Partitions per dimension", "Scanned pages", "VA-file: simulated I/O vs grid resolution")
    return rows
