"""
fgmodel/model.py

Structured output model over factor graphs for max-margin learning.

The model owns the factor type registry and one global parameter vector
(the weight cache). The cache and the per-type weight vectors are kept
in sync in both directions; the joint feature vector is laid out so
that <w, psi(x, y)> = -E(x, y; w), and argmax is the loss-augmented
max oracle a margin-rescaling structured SVM calls per example:

    max_y [ L(y_i, y) - E(x_i, y; w) ] + E(x_i, y_i; w)

computed as an energy minimisation over the loss-augmented graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from fgmodel.core.registry import FactorTypeRegistry
from fgmodel.errors import ConfigurationError, InvariantViolation
from fgmodel.inference.map_inference import MAPInference, MAPInferType
from fgmodel.structure.factor_graph import FactorGraph
from fgmodel.structure.factor_type import FactorType
from fgmodel.structure.observation import (
    FactorGraphFeatures,
    FactorGraphLabels,
    FactorGraphObservation,
)

log = logging.getLogger(__name__)


@dataclass
class ResultSet:
    """
    Output of the max oracle for one example.

    Attributes:
        psi_truth: Joint feature vector of the ground truth
        psi_pred: Joint feature vector of the inferred labelling
        argmax: Inferred labelling
        score: energy_gt - energy_pred
        delta: Loss of the inferred labelling against the ground truth
    """
    psi_truth: np.ndarray
    psi_pred: np.ndarray
    argmax: FactorGraphObservation
    score: float
    delta: float

    def slack(self, w: np.ndarray) -> float:
        """Margin violation <w, psi_pred> + delta - <w, psi_truth>."""
        w = np.asarray(w, dtype=np.float64)
        return float(np.dot(w, self.psi_pred) + self.delta - np.dot(w, self.psi_truth))


@dataclass
class PrimalConstraints:
    """
    Constraint and objective matrices for a primal QP solver.

    Minimise 0.5 w^T C w subject to A w <= a, B w = b, lb <= w <= ub.
    Entries left as None mean "use the solver's default".
    """
    C: np.ndarray
    A: Optional[np.ndarray] = None
    a: Optional[np.ndarray] = None
    B: Optional[np.ndarray] = None
    b: Optional[np.ndarray] = None
    lb: Optional[np.ndarray] = None
    ub: Optional[np.ndarray] = None


class FactorGraphModel:
    """
    Max-margin model over a set of factor graph samples.

    Args:
        features: One factor graph per training/prediction sample
        labels: Ground truth observation per sample
        inf_type: MAP inference mode (enum member or name)
        verbose: Emit diagnostics through the logger
        logger: Sink for diagnostics (default: this module's logger)
        inference_options: Keyword options forwarded to the backend
    """

    def __init__(
        self,
        features: Optional[FactorGraphFeatures] = None,
        labels: Optional[FactorGraphLabels] = None,
        inf_type: Union[MAPInferType, str] = MAPInferType.TREE_MAX_PROD,
        verbose: bool = False,
        logger: Optional[logging.Logger] = None,
        **inference_options,
    ):
        self.features = features
        self.labels = labels
        self._check_sizes()
        self.inf_type = MAPInferType.parse(inf_type)
        self.verbose = verbose
        self.logger = logger if logger is not None else log
        self.inference_options = inference_options

        self._registry = FactorTypeRegistry()
        self._w_cache = np.zeros(0, dtype=np.float64)

    def _diag(self, msg: str, *args) -> None:
        if self.verbose:
            self.logger.info(msg, *args)

    def _check_sizes(self) -> None:
        if self.features is None or self.labels is None:
            return
        if len(self.features) != len(self.labels):
            raise ConfigurationError(
                f"{len(self.features)} feature samples but {len(self.labels)} labels"
            )

    def set_features(self, features: FactorGraphFeatures) -> None:
        self.features = features
        self._check_sizes()

    def set_labels(self, labels: FactorGraphLabels) -> None:
        self.labels = labels
        self._check_sizes()

    # ------------------------------------------------------------------
    # Factor type registry
    # ------------------------------------------------------------------

    def add_factor_type(self, ftype: FactorType) -> None:
        """
        Register a factor type; its weights are appended to the global vector.

        Registering an id that is already present is logged and ignored.
        """
        if not self._registry.add(ftype):
            return

        self.pull_from_types()
        self._diag("add_factor_type(): w_map = %s", self._registry.w_map.tolist())

    def del_factor_type(self, type_id: int) -> None:
        """Unregister a factor type and drop its run from the mapping table."""
        self._registry.remove(type_id)
        self.pull_from_types()
        self._diag("del_factor_type(): w_map = %s", self._registry.w_map.tolist())

    def get_factor_type(self, type_id: int) -> Optional[FactorType]:
        return self._registry.get(type_id)

    def get_factor_types(self) -> List[FactorType]:
        return list(self._registry.types)

    def get_global_params_mapping(self) -> np.ndarray:
        return self._registry.w_map.copy()

    def get_mapping(self, type_id: int) -> np.ndarray:
        """Positions of a type's weights inside the global parameter vector."""
        return self._registry.mapping(type_id)

    def total_dimension(self) -> int:
        return self._registry.dim

    # ------------------------------------------------------------------
    # Weight cache synchronisation
    # ------------------------------------------------------------------

    def pull_from_types(self) -> np.ndarray:
        """Gather every type's weights into the global vector; returns a copy."""
        dim = self.total_dimension()
        if self._w_cache.size != dim:
            self._w_cache = np.zeros(dim, dtype=np.float64)

        offset = 0
        for ftype in self._registry:
            fw = np.asarray(ftype.get_w(), dtype=np.float64)
            fw_map = self.get_mapping(ftype.type_id)
            if fw_map.size != fw.size:
                raise InvariantViolation(
                    f"factor type {ftype.type_id}: {fw.size} weights but {fw_map.size} mapped positions"
                )
            self._w_cache[fw_map] = fw
            offset += ftype.w_dim

        if offset != self._w_cache.size:
            raise InvariantViolation(f"factor type dimensions sum to {offset}, cache has {self._w_cache.size}")

        return self._w_cache.copy()

    def push_to_types(self, w: np.ndarray) -> None:
        """Scatter a global weight vector into every type; no-op if unchanged."""
        w = np.asarray(w, dtype=np.float64).reshape(-1)
        if np.array_equal(self._w_cache, w):
            return

        if w.size != self._w_cache.size:
            raise ConfigurationError(f"weight vector length {w.size} != model dimension {self._w_cache.size}")

        self._diag("push_to_types(): updating w_cache")
        self._w_cache = w.copy()

        offset = 0
        for ftype in self._registry:
            fw_map = self.get_mapping(ftype.type_id)
            ftype.set_w(self._w_cache[fw_map].copy())
            offset += ftype.w_dim

        if offset != self._w_cache.size:
            raise InvariantViolation(f"factor type dimensions sum to {offset}, cache has {self._w_cache.size}")

    # ------------------------------------------------------------------
    # Joint feature vector
    # ------------------------------------------------------------------

    def _get_sample(self, feat_idx: int) -> FactorGraph:
        if self.features is None:
            raise ConfigurationError("model has no features")
        return self.features.get_sample(feat_idx)

    def joint_feature_vector(self, feat_idx: int, y: FactorGraphObservation) -> np.ndarray:
        """
        Sufficient statistics psi(x, y) with <w, psi> = -E(x, y; w).

        Args:
            feat_idx: Sample index into the features
            y: Labelling of the sample's variables

        Returns:
            Vector of length total_dimension()
        """
        fg = self._get_sample(feat_idx)
        states = y.get_data()
        if states.size != fg.num_variables:
            raise ConfigurationError(
                f"example {feat_idx}: labelling has {states.size} states, graph has {fg.num_variables} variables"
            )

        psi = np.zeros(self.total_dimension(), dtype=np.float64)
        for fac in fg.factors:
            ftype = fac.get_factor_type()
            w_map = self.get_mapping(ftype.type_id)
            if w_map.size != ftype.w_dim:
                raise InvariantViolation(
                    f"factor type {ftype.type_id}: {w_map.size} mapped positions, w_dim {ftype.w_dim}"
                )

            dat = fac.get_data()
            d = dat.size
            if w_map.size != d * ftype.num_assignments:
                raise InvariantViolation(
                    f"factor type {ftype.type_id}: w_dim {w_map.size} != data length {d} "
                    f"x {ftype.num_assignments} assignments"
                )

            ei = ftype.index_from_universe_assignment(states, fac.get_variables())
            np.add.at(psi, w_map[ei * d:(ei + 1) * d], dat)

        # -E(x, y) = <w, psi(x, y)>
        return -psi

    # ------------------------------------------------------------------
    # Max oracle
    # ------------------------------------------------------------------

    def argmax(self, w: np.ndarray, feat_idx: int, training: bool = True) -> ResultSet:
        """
        Loss-augmented (training) or plain (prediction) MAP for one sample.

        Args:
            w: Global weight vector
            feat_idx: Sample index
            training: Subtract the ground-truth loss from disagreeing states

        Returns:
            ResultSet with psi vectors, the inferred labelling, score and delta
        """
        fg = self._get_sample(feat_idx)
        if self.labels is None:
            raise ConfigurationError("model has no labels")

        fg.connect_components()
        if self.inf_type.requires_tree and not fg.is_tree_graph():
            raise InvariantViolation(f"example {feat_idx}: {self.inf_type.value} requires a tree-structured graph")

        self._diag("------ example %d", feat_idx)

        self.push_to_types(w)
        fg.compute_energies()

        if self.verbose:
            self._diag("energy table before loss-aug: %s", fg.evaluate_energies())

        y_truth = self.labels.get_label(feat_idx)
        states_gt = y_truth.get_data()

        psi_truth = self.joint_feature_vector(feat_idx, y_truth)
        energy_gt = fg.evaluate_energy(states_gt)
        score = energy_gt

        if training:
            fg.loss_augmentation(y_truth)
            if self.verbose:
                self._diag("energy table after loss-aug: %s", fg.evaluate_energies())

        try:
            infer_met = MAPInference(fg, self.inf_type, **self.inference_options)
            infer_met.inference()
            y_star = infer_met.get_structured_outputs()
        finally:
            if training:
                fg.compute_energies()
        states_star = y_star.get_data()

        psi_pred = self.joint_feature_vector(feat_idx, y_star)
        energy_pred = fg.evaluate_energy(states_star)
        score -= energy_pred
        delta = self.delta_loss(y_truth, y_star)

        ret = ResultSet(psi_truth=psi_truth, psi_pred=psi_pred, argmax=y_star, score=score, delta=delta)

        if self.verbose:
            w = np.asarray(w, dtype=np.float64)
            self._diag(
                "state_pred=%s dot_pred=%f energy_pred=%f delta=%f",
                states_star.tolist(), float(np.dot(w, psi_pred)), energy_pred, delta,
            )
            self._diag(
                "state_gt=%s dot_truth=%f energy_gt=%f",
                states_gt.tolist(), float(np.dot(w, psi_truth)), energy_gt,
            )
            self._diag("slack=%f score=%f", ret.slack(w), score)

        return ret

    def delta_loss(self, y_truth: FactorGraphObservation, y_pred: FactorGraphObservation) -> float:
        """Weighted Hamming loss, weighted by the ground truth's loss weights."""
        s_truth = y_truth.get_data()
        s_pred = y_pred.get_data()
        if s_pred.size != s_truth.size:
            raise ConfigurationError(f"assignment lengths differ: {s_truth.size} vs {s_pred.size}")

        return float(np.sum(y_truth.get_loss_weights()[s_pred != s_truth]))

    # ------------------------------------------------------------------
    # Primal optimisation constraints
    # ------------------------------------------------------------------

    def build_constraints(
        self,
        regularization: float,
        A: Optional[np.ndarray] = None,
        a: Optional[np.ndarray] = None,
        B: Optional[np.ndarray] = None,
        b: Optional[np.ndarray] = None,
        lb: Optional[np.ndarray] = None,
        ub: Optional[np.ndarray] = None,
    ) -> PrimalConstraints:
        """
        Regulariser and parameter bounds required by the inference mode.

        With graph cut, every binary pairwise type gets the submodularity
        bounds E(0,0) = E(1,1) = 0, E(1,0) >= 0, E(0,1) >= 0 (weights in
        that table order). The four energies are over-parameterised, so
        pinning two of them loses nothing.
        """
        dim = self.total_dimension()
        out = PrimalConstraints(C=regularization * np.eye(dim), A=A, a=a, B=B, b=b, lb=lb, ub=ub)

        if self.inf_type is not MAPInferType.GRAPH_CUT:
            return out

        out.lb = np.full(dim, -np.inf)
        out.ub = np.full(dim, np.inf)
        for ftype in self._registry:
            card = np.asarray(ftype.cardinalities)
            if not (card.size == 2 and card[0] == 2 and card[1] == 2):
                continue

            # TODO: support pairwise types with edge features (w_dim = 4 * d)
            if ftype.w_dim != 4:
                raise ConfigurationError(
                    f"factor type {ftype.type_id}: graph cut doesn't support edge features (w_dim {ftype.w_dim})"
                )
            fw_map = self.get_mapping(ftype.type_id)
            if fw_map.size != ftype.w_dim:
                raise InvariantViolation(
                    f"factor type {ftype.type_id}: {fw_map.size} mapped positions, w_dim {ftype.w_dim}"
                )

            e00, e10, e01, e11 = fw_map
            out.lb[e00] = out.ub[e00] = 0.0
            out.lb[e11] = out.ub[e11] = 0.0
            out.lb[e10] = 0.0
            out.lb[e01] = 0.0

        return out
