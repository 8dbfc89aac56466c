#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Time every factorization under each decomposer and report how well the
factors reconstruct their input.

    python -m tensor_linalg.benchmark --batch 8 --csv bench_results.csv
"""

import argparse
import time

import numpy as np
import pandas as pd

from .decompositions import cholesky, eigh, lu, qr, svd
from .utils import adjoint

REPEATS = 5  # best of 5 runs leads to stable numbers
SIZES = [(16, 16), (48, 48), (96, 32)]
DECOMPOSERS = ("reference", "lapack")
COLUMNS = ["kernel", "decomposer", "shape", "sec", "residual"]


def wall(f, *args, **kwargs):
    t0 = time.perf_counter()
    f(*args, **kwargs)
    return time.perf_counter() - t0


def _residual(A, B) -> float:
    return float(np.max(np.abs(A - B))) if A.size else 0.0


def _kernels(A, decomposer):
    """(name, call, reconstruction) for every kernel applicable to A."""
    m, n = A.shape[-2:]

    def qr_recon():
        Q, R = qr(A, decomposer=decomposer)
        return Q @ R

    def svd_recon():
        U, S, Vt = svd(A, decomposer=decomposer)
        return (U * S[..., None, :]) @ Vt

    kernels = [
        ("qr", A, lambda: qr(A, decomposer=decomposer), qr_recon),
        ("svd", A, lambda: svd(A, decomposer=decomposer), svd_recon),
    ]
    if m != n:
        return kernels

    spd = A @ adjoint(A) + n * np.eye(n)
    sym = A + adjoint(A)

    def cholesky_recon():
        L = cholesky(spd, decomposer=decomposer)
        return L @ adjoint(L)

    def lu_recon():
        P, L, U = lu(A, decomposer=decomposer)
        return P @ L @ U

    def eigh_recon():
        w, V = eigh(sym, eps=1e-12, decomposer=decomposer)
        return (V * w[..., None, :]) @ adjoint(V)

    kernels += [
        ("cholesky", spd, lambda: cholesky(spd, decomposer=decomposer), cholesky_recon),
        ("lu", A, lambda: lu(A, decomposer=decomposer), lu_recon),
        ("eigh", sym, lambda: eigh(sym, eps=1e-12, decomposer=decomposer), eigh_recon),
    ]
    return kernels


def run_benchmark(
    sizes=SIZES, batch: int = 4, repeats: int = REPEATS, decomposers=DECOMPOSERS, seed=0
) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    records = []
    for m, n in sizes:
        A = rng.standard_normal((batch, m, n))
        for decomposer in decomposers:
            for kernel, target, call, recon in _kernels(A, decomposer):
                sec = min(wall(call) for _ in range(repeats))
                records.append(
                    (kernel, decomposer, f"{batch}×{m}×{n}", sec, _residual(recon(), target))
                )
    return pd.DataFrame(records, columns=COLUMNS)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--batch", type=int, default=4)
    parser.add_argument("--repeats", type=int, default=REPEATS)
    parser.add_argument("--csv", default=None, help="also write the table to this file")
    args = parser.parse_args(argv)

    df = run_benchmark(batch=args.batch, repeats=args.repeats)
    print(df.to_string(index=False))
    if args.csv:
        df.to_csv(args.csv, index=False)
    return df


if __name__ == "__main__":
    main()
