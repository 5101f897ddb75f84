# Patchwork Kriging Benchmark on a Partitioned 2-D Domain
# Author: Shengning Wang

import os
import sys
import time
import numpy as np
from typing import List, Tuple


project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path: sys.path.insert(0, project_root)


from patchwork.data.distribution import MarginalDistribution
from patchwork.models.gp import GaussianProcess
from patchwork.models.patchwork import PatchworkGP
from patchwork.utils.metrics import evaluate
from patchwork.utils.hue_logger import hue, logger


# ----------------------------------------------------------------------
# Partitioning Functions
# ----------------------------------------------------------------------

class GridFunctions:
    """
    Splits the plane into unit cells keyed by (floor(x0), floor(x1)).

    Cells sharing an edge are constrained along evenly spaced points of that edge.
    """

    def __init__(self, num_boundary_points: int = 5):
        self.num_boundary_points = num_boundary_points

    def grouper(self, x: np.ndarray) -> Tuple[int, int]:
        return int(np.floor(x[0])), int(np.floor(x[1]))

    def boundary(self, lhs: Tuple[int, int], rhs: Tuple[int, int]) -> List[np.ndarray]:
        dx, dy = rhs[0] - lhs[0], rhs[1] - lhs[1]
        if abs(dx) + abs(dy) != 1:
            return []

        t = (np.arange(self.num_boundary_points) + 0.5) / self.num_boundary_points
        if dx != 0:
            edge = float(max(lhs[0], rhs[0]))
            return [np.array([edge, lhs[1] + s]) for s in t]
        edge = float(max(lhs[1], rhs[1]))
        return [np.array([lhs[0] + s, edge]) for s in t]

    def nearest_group(self, groups: List[Tuple[int, int]], query: Tuple[int, int]) -> Tuple[int, int]:
        if query in groups:
            return query
        return min(groups, key=lambda g: (g[0] - query[0]) ** 2 + (g[1] - query[1]) ** 2)


def response(x: np.ndarray) -> np.ndarray:
    return np.sin(2.0 * x[:, 0]) * np.cos(1.5 * x[:, 1]) + 0.3 * x[:, 0]


# ======================================================================
# Example Usage
# ======================================================================
if __name__ == "__main__":
    # ------------------------------------------------------------------
    # 1. Configuration & Data
    # ------------------------------------------------------------------
    logger.info(f"{hue.b}generating data...{hue.q}")

    num_train = 400
    num_test = 100
    noise_std = 0.05

    rng = np.random.default_rng(42)
    x_train = rng.uniform(0.0, 3.0, (num_train, 2))
    y_train = response(x_train) + noise_std * rng.standard_normal(num_train)
    x_test = rng.uniform(0.0, 3.0, (num_test, 2))
    y_test = response(x_test)

    targets = MarginalDistribution(y_train, np.full(num_train, noise_std ** 2))
    kwargs = dict(kernel='gaussian', theta=2.0, sigma2=1.0)

    # ------------------------------------------------------------------
    # 2. Patchwork Kriging
    # ------------------------------------------------------------------
    start = time.perf_counter()
    model = PatchworkGP(GridFunctions(), num_workers=4, **kwargs)
    fit = model.fit(list(x_train), targets)
    patchwork_pred = model.predict(list(x_test), fit, predict_type='marginal')
    patchwork_time = time.perf_counter() - start

    # ------------------------------------------------------------------
    # 3. Full GP Reference
    # ------------------------------------------------------------------
    start = time.perf_counter()
    gp = GaussianProcess(**kwargs)
    gp_pred = gp.fit(list(x_train), targets).predict(list(x_test)).marginal()
    gp_time = time.perf_counter() - start

    # ------------------------------------------------------------------
    # 4. Report
    # ------------------------------------------------------------------
    for name, pred, elapsed in (('patchwork', patchwork_pred, patchwork_time), ('full gp', gp_pred, gp_time)):
        metrics = evaluate(pred, y_test)
        logger.info(f"{hue.c}{name:>10}{hue.q}: r2 = {hue.m}{metrics['r2']:.4f}{hue.q}, "
                    f"rmse = {hue.m}{metrics['rmse']:.4f}{hue.q}, nll = {hue.m}{metrics['nll']:.2f}{hue.q}, "
                    f"time = {hue.m}{elapsed:.2f}s{hue.q}")
