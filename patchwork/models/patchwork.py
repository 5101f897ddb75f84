# Patchwork Kriging: partitioned Gaussian Process regression
# Author: Shengning Wang

"""
Patchwork Gaussian Process regression, after

    Chiwoo Park and Daniel Apley. 2018. Patchwork Kriging for large-scale Gaussian process
    regression. J. Mach. Learn. Res. 19, 1 (January 2018), 269-311.

The training data is split into groups, an independent GP is fitted to each group and the local
posteriors are stitched together by conditioning on boundary pseudo observations
model_i(x) - model_j(x) = 0 at locations shared by neighbouring groups.

The patchwork functions object supplies three pure functions:

    grouper(feature) -> key
        the group a feature belongs to.
    boundary(key_a, key_b) -> list of features
        locations along which the two groups are constrained to agree (empty if not adjacent).
    nearest_group(keys, query_key) -> key
        used at prediction time: query_key itself if it was fitted, otherwise the fitted group
        whose model should represent it.
"""

import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Hashable, List, Optional, Protocol, Sequence, Tuple, Union

from tqdm.auto import tqdm

from patchwork.data.dataset import RegressionDataset
from patchwork.data.distribution import JointDistribution, MarginalDistribution
from patchwork.data.grouped import Grouped
from patchwork.models.block import block_inner_product, block_solve
from patchwork.models.covariance import PatchworkCovariance
from patchwork.models.errors import BlockStructureError, NumericalError
from patchwork.models.features import GroupFeature, build_boundary_features, as_group_features
from patchwork.models.gp import GaussianProcess
from patchwork.models.kernels import StationaryCovariance
from patchwork.models.ldlt import LDLT
from patchwork.utils.hue_logger import hue, logger


class PatchworkFunctions(Protocol):
    """
    Protocol for the user-supplied partitioning functions.

    Methods:
        grouper(feature) -> key
        boundary(key_a, key_b) -> List[feature]
        nearest_group(keys, query_key) -> key
    """
    def grouper(self, feature: Any) -> Hashable: ...
    def boundary(self, lhs: Hashable, rhs: Hashable) -> Sequence[Any]: ...
    def nearest_group(self, groups: List[Hashable], query: Hashable) -> Hashable: ...


@dataclass
class PatchworkFit:
    """
    Trained patchwork model: one independently fitted GP per group.

    Attributes:
        fit_models: Fitted local models keyed by group
    """
    fit_models: Grouped

    def keys(self) -> List[Hashable]:
        return self.fit_models.keys()

    def __len__(self) -> int:
        return len(self.fit_models)


def fit_groups(dataset: RegressionDataset, grouper: Callable[[Any], Hashable],
               local_fit: Callable[[RegressionDataset], Any], num_workers: int = 1) -> Grouped:
    """
    Partitions a dataset and fits every group independently.

    Group fits share no state, so with num_workers > 1 they are fanned out on a thread pool and
    merged back by key. The first failing group aborts the whole fit.

    Args:
    - dataset (RegressionDataset): Training data
    - grouper (Callable): feature -> group key
    - local_fit (Callable): RegressionDataset -> fitted local model
    - num_workers (int): Thread pool size, 1 fits sequentially

    Returns:
    - Grouped: Fitted local models in first-seen key order
    """
    datasets = dataset.group_by(grouper)
    keys = datasets.keys()

    for key, group in datasets.items():
        logger.debug(f'group {hue.c}{key!r}{hue.q}: {hue.m}{len(group)}{hue.q} samples')

    progress = tqdm(total=len(keys), desc='fitting groups', leave=False)
    try:
        if num_workers > 1 and len(keys) > 1:
            with ThreadPoolExecutor(max_workers=min(num_workers, len(keys))) as pool:
                future_map = {key: pool.submit(local_fit, datasets.at(key)) for key in keys}
                fitted = {}
                for key, future in future_map.items():
                    fitted[key] = future.result()
                    progress.update(1)
        else:
            fitted = {}
            for key in keys:
                fitted[key] = local_fit(datasets.at(key))
                progress.update(1)
    finally:
        progress.close()

    return Grouped((key, fitted[key]) for key in keys)


class PatchworkGP:
    """
    Patchwork Kriging model.

    Fits one exact GP per group and, at prediction time, couples them through boundary pseudo
    observations. The global solve against the training covariance conditioned on the boundaries
    is carried out with the Woodbury identity, so only the per-group decompositions from fit time
    and one dense decomposition of boundary size are ever needed.

    Attributes:
    - functions (PatchworkFunctions): grouper / boundary / nearest_group
    - covariance_function (Callable): Base covariance k(x, y)
    - num_workers (int): Thread pool size for the group fits
    - variance_tolerance (float): Relative tolerance for negative predictive variances
    """

    def __init__(self, functions: PatchworkFunctions, kernel: Union[str, Callable] = 'gaussian',
                 theta: Union[float, np.ndarray] = 1.0, sigma2: float = 1.0, nugget: float = 0.0,
                 covariance_function: Optional[Callable[[Any, Any], float]] = None,
                 num_workers: int = 1, variance_tolerance: float = 1e-8):
        """
        Args:
        - functions (PatchworkFunctions): Object providing grouper, boundary and nearest_group.
        - kernel (Union[str, Callable]): Correlation model, see StationaryCovariance.
        - theta (Union[float, np.ndarray]): Correlation parameters.
        - sigma2 (float): Process variance.
        - nugget (float): Variance added between identical features.
        - covariance_function (Optional[Callable]): Overrides kernel / theta / sigma2 / nugget.
        - num_workers (int): Number of threads used to fit the groups.
        - variance_tolerance (float): Negative predictive variances below
            -variance_tolerance * prior variance raise NumericalError.
        """
        for name in ('grouper', 'boundary', 'nearest_group'):
            if not callable(getattr(functions, name, None)):
                raise TypeError(f'patchwork functions must provide a callable {name}()')
        if num_workers < 1:
            raise ValueError(f'num_workers must be >= 1, got {num_workers}')
        if variance_tolerance < 0:
            raise ValueError(f'variance_tolerance must be non-negative, got {variance_tolerance}')

        if covariance_function is None:
            covariance_function = StationaryCovariance(kernel, theta, sigma2, nugget)

        self.functions = functions
        self.covariance_function = covariance_function
        self.covariance = PatchworkCovariance(covariance_function)
        self.local_model = GaussianProcess(covariance_function=covariance_function)
        self.num_workers = num_workers
        self.variance_tolerance = variance_tolerance

    def __repr__(self) -> str:
        return f'PatchworkGP({self.covariance_function!r}, num_workers={self.num_workers})'

    # ======================================================================
    # Fit
    # ======================================================================

    def fit(self, features: Union[RegressionDataset, Sequence[Any]],
            targets: Optional[Union[MarginalDistribution, np.ndarray]] = None) -> PatchworkFit:
        """
        Partitions the training data with the grouper and fits every group independently.

        Args:
        - features (Union[RegressionDataset, Sequence[Any]]): Training features or a whole dataset
        - targets (Optional[Union[MarginalDistribution, np.ndarray]]): Training targets,
            omitted when features is a RegressionDataset

        Returns:
        - PatchworkFit: Fitted local models keyed by group
        """
        dataset = features if isinstance(features, RegressionDataset) else RegressionDataset(features, targets)
        if len(dataset) == 0:
            raise BlockStructureError('A patchwork fit needs at least one training sample')

        logger.info(f'fitting patchwork GP on {hue.m}{len(dataset)}{hue.q} samples...')

        fit_models = fit_groups(dataset, self.functions.grouper, self.local_model.fit, self.num_workers)

        logger.info(f'{hue.g}fitted {len(fit_models)} groups{hue.q}')
        return PatchworkFit(fit_models)

    def from_fit_models(self, fit_models: Union[Grouped, dict]) -> PatchworkFit:
        """
        Wraps independently fitted local models into a PatchworkFit.

        Every local model must have been fitted with this model's covariance function.
        """
        fit_models = Grouped(fit_models)
        if len(fit_models) == 0:
            raise BlockStructureError('A patchwork fit needs at least one group')
        return PatchworkFit(fit_models)

    # ======================================================================
    # Predict
    # ======================================================================

    def predict(self, features: Sequence[Any], fit: PatchworkFit,
                predict_type: str = 'joint') -> Union[JointDistribution, MarginalDistribution, np.ndarray]:
        """
        Predicts at the query features, in their input order.

        Args:
        - features (Sequence[Any]): Query features (num_queries,)
        - fit (PatchworkFit): Result of fit()
        - predict_type (str): 'joint', 'marginal' or 'mean'

        Returns:
        - Union[JointDistribution, MarginalDistribution, np.ndarray]: Posterior at the queries
        """
        if predict_type not in ('joint', 'marginal', 'mean'):
            raise ValueError(f"Unknown predict_type: '{predict_type}'. Available: ['joint', 'marginal', 'mean']")

        features = list(features)
        if len(fit.fit_models) == 1:
            # nothing to stitch
            joint = fit.fit_models.first_value().predict(features)
            mean, cov = joint.mean, joint.covariance
        else:
            mean, cov = self._predict_patchwork(features, fit, with_covariance=(predict_type != 'mean'))

        if predict_type == 'mean':
            return mean

        self._check_variance(cov, features)
        joint = JointDistribution(mean, cov)
        if predict_type == 'marginal':
            return joint.marginal()
        return joint

    def query_group_features(self, features: Sequence[Any], keys: List[Hashable]) -> List[GroupFeature]:
        """
        Assigns every query feature to a fitted group, falling back to nearest_group.
        """
        fitted = set(keys)
        group_features = []
        for f in features:
            key = self.functions.nearest_group(keys, self.functions.grouper(f))
            if key not in fitted:
                raise BlockStructureError(f'nearest_group returned {key!r}, which is not a fitted group')
            group_features.append(GroupFeature(key, f))
        return group_features

    def _predict_patchwork(self, features: List[Any], fit: PatchworkFit,
                           with_covariance: bool = True) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """
        Woodbury combination of the group models.

        With A = C_dd (block diagonal, decomposed per group at fit time), C = C_db and
        B = C_bb, conditioning on the boundaries turns the training covariance into
        A - C B^{-1} C^T, whose inverse is applied as

            A^{-1} rhs + A^{-1} C S^{-1} C^T A^{-1} rhs,    S = B - C^T A^{-1} C.

        Returns:
        - Tuple[np.ndarray, Optional[np.ndarray]]: Posterior mean and, if requested, joint covariance
        """
        cov_matrix = self.covariance.matrix
        fit_models: Grouped = fit.fit_models
        keys = fit_models.keys()

        boundary_features = build_boundary_features(self.functions.boundary, keys)

        logger.info(f'predicting {hue.m}{len(features)}{hue.q} features from {hue.m}{len(keys)}{hue.q} groups '
                    f'with {hue.m}{len(boundary_features)}{hue.q} boundary features...')

        # C_bb: covariance between all boundary pseudo observations
        C_bb = cov_matrix(boundary_features, boundary_features)
        C_bb_ldlt = LDLT(C_bb)

        # C_dd: block diagonal training covariance, one decomposition per group
        C_dd = fit_models.apply(lambda fit_model: fit_model.train_covariance)
        train_features = fit_models.apply(lambda key, fit_model: as_group_features(key, fit_model.train_features))

        # C_db: covariance between each group's training features and all boundaries
        C_db = train_features.apply(lambda group_features: cov_matrix(group_features, boundary_features))

        # S_bb = C_bb - C_db^T C_dd^{-1} C_db
        S_bb = C_bb - block_inner_product(C_db, block_solve(C_dd, C_db))
        S_bb_ldlt = LDLT(S_bb)

        logger.debug(f'schur complement of size {hue.m}{S_bb.shape[0]}{hue.q}')

        def solver(rhs: Grouped) -> Grouped:
            Ai_rhs = block_solve(C_dd, rhs)
            Si_Ct_Ai_rhs = S_bb_ldlt.solve(block_inner_product(C_db, Ai_rhs))
            C_Si_Ct_Ai_rhs = C_db.apply(lambda C_db_i: C_db_i @ Si_Ct_Ai_rhs)
            output = block_solve(C_dd, C_Si_Ct_Ai_rhs)
            return output.apply(lambda key, block: block + Ai_rhs.at(key))

        ys = fit_models.apply(lambda fit_model: fit_model.targets.mean)
        information = solver(ys)

        # queries keep their input order, each tagged with the group that represents it
        query_features = self.query_group_features(features, keys)

        C_fb = cov_matrix(query_features, boundary_features)
        C_fb_bb_inv = C_bb_ldlt.solve(C_fb.T).T

        def cross_block(key: Hashable, group_features: List[GroupFeature]) -> np.ndarray:
            return cov_matrix(group_features, query_features) - C_db.at(key) @ C_fb_bb_inv.T

        cross = train_features.apply(cross_block)

        mean = block_inner_product(cross, information)
        if not with_covariance:
            return mean, None

        explained = block_inner_product(cross, solver(cross))
        prior = cov_matrix(query_features, query_features)
        cov = prior - C_fb_bb_inv @ C_fb.T - explained

        logger.info(f'{hue.g}prediction completed{hue.q}')
        return mean, cov

    def _check_variance(self, cov: np.ndarray, features: List[Any]) -> None:
        """
        Raises NumericalError on predictive variances that are negative beyond roundoff.
        """
        diag = np.diag(cov)
        if diag.size == 0:
            return
        prior_variance = np.array([self.covariance_function(f, f) for f in features], dtype=float)
        tol = self.variance_tolerance * max(np.max(np.abs(prior_variance)), np.finfo(float).tiny)
        negative = np.flatnonzero(diag < -tol)
        if negative.size > 0:
            raise NumericalError(f'negative predictive variance at {negative.size} queries '
                                 f'(min {diag.min():.3e}), the covariance is not positive semi-definite')


# ======================================================================
# Example Usage
# ======================================================================
if __name__ == "__main__":

    class StripFunctions:
        """
        Splits the real line into unit-width strips keyed by their integer index.
        """

        def grouper(self, x: float) -> int:
            return int(np.floor(x))

        def boundary(self, lhs: int, rhs: int) -> List[float]:
            if abs(lhs - rhs) != 1:
                return []
            edge = float(max(lhs, rhs))
            return [edge - 0.05, edge, edge + 0.05]

        def nearest_group(self, groups: List[int], query: int) -> int:
            return min(groups, key=lambda g: abs(g - query))

    rng = np.random.default_rng(42)
    x_train = np.sort(rng.uniform(0.0, 4.0, 120))
    y_train = np.sin(2.0 * x_train) + 0.05 * rng.standard_normal(x_train.size)
    x_test = np.linspace(-0.5, 4.5, 11)

    model = PatchworkGP(StripFunctions(), kernel='gaussian', theta=2.0, sigma2=1.0, num_workers=4)
    patchwork_fit = model.fit(list(x_train), MarginalDistribution(y_train, np.full(x_train.size, 0.05 ** 2)))
    prediction = model.predict(list(x_test), patchwork_fit, predict_type='marginal')

    for x, mu, var in zip(x_test, prediction.mean, prediction.variance):
        logger.info(f'x = {hue.c}{x:5.2f}{hue.q}  mean = {hue.m}{mu: .4f}{hue.q}  '
                    f'std = {hue.m}{np.sqrt(max(var, 0.0)):.4f}{hue.q}  truth = {np.sin(2.0 * x): .4f}')
