"""
Tests for joint feature vectors.
"""

import numpy as np
import pytest

from fgmodel.errors import ConfigurationError, InvariantViolation
from fgmodel.model import FactorGraphModel
from fgmodel.structure.factor import Factor
from fgmodel.structure.factor_graph import FactorGraph
from fgmodel.structure.factor_type import TableFactorType
from fgmodel.structure.observation import (
    FactorGraphFeatures,
    FactorGraphLabels,
    FactorGraphObservation,
)


def _model_for(fg, *ftypes, states=None):
    n = fg.num_variables
    obs = FactorGraphObservation(states if states is not None else [0] * n)
    model = FactorGraphModel(FactorGraphFeatures([fg]), FactorGraphLabels([obs]))
    for ft in ftypes:
        model.add_factor_type(ft)
    return model


class TestSignConvention:
    def test_single_factor_single_assignment(self):
        ft = TableFactorType(0, [1], [0.0])
        fg = FactorGraph([1])
        fg.add_factor(Factor(ft, [0], [2.5]))
        model = _model_for(fg, ft)

        psi = model.joint_feature_vector(0, FactorGraphObservation([0]))
        assert psi.tolist() == [-2.5]

    def test_mapped_position_of_second_type(self):
        other = TableFactorType(4, [2], [0.0, 0.0])
        ft = TableFactorType(9, [1], [0.0])
        fg = FactorGraph([1])
        fg.add_factor(Factor(ft, [0], [3.0]))
        model = _model_for(fg, other, ft)

        psi = model.joint_feature_vector(0, FactorGraphObservation([0]))
        assert psi.tolist() == [0.0, 0.0, -3.0]


class TestAggregation:
    @pytest.fixture
    def chain(self):
        unary = TableFactorType(0, [2], np.zeros(4))
        pairwise = TableFactorType(1, [2, 2], np.zeros(4))
        fg = FactorGraph([2, 2, 2])
        xs = [0.5, -1.0, 2.0]
        for i, x in enumerate(xs):
            fg.add_factor(Factor(unary, [i], [1.0, x]))
        fg.add_factor(Factor(pairwise, [0, 1]))
        fg.add_factor(Factor(pairwise, [1, 2]))
        return fg, unary, pairwise, xs

    def test_same_type_factors_accumulate(self, chain):
        fg, unary, pairwise, xs = chain
        model = _model_for(fg, unary, pairwise)

        psi = model.joint_feature_vector(0, FactorGraphObservation([1, 1, 0]))

        # unary block: state 0 -> [0, 1], state 1 -> [2, 3]
        expected = np.zeros(8)
        expected[0:2] += [1.0, xs[2]]
        expected[2:4] += [1.0, xs[0]]
        expected[2:4] += [1.0, xs[1]]
        # pairwise block at 4..7: (1,1) -> 7, (1,0) -> 5
        expected[7] += 1.0
        expected[5] += 1.0
        assert np.allclose(psi, -expected)

    def test_inner_product_is_negative_energy(self, chain):
        fg, unary, pairwise, _ = chain
        model = _model_for(fg, unary, pairwise)
        rng = np.random.default_rng(1)

        for _ in range(5):
            w = rng.normal(size=model.total_dimension())
            model.push_to_types(w)
            fg.compute_energies()
            for k in range(8):
                y = [(k >> i) & 1 for i in range(3)]
                psi = model.joint_feature_vector(0, FactorGraphObservation(y))
                assert np.dot(w, psi) == pytest.approx(-fg.evaluate_energy(y))


class TestLayoutErrors:
    def test_data_length_mismatch_is_fatal(self):
        ft = TableFactorType(0, [2], np.zeros(4))
        fg = FactorGraph([2])
        fg.add_factor(Factor(ft, [0], [1.0, 2.0, 3.0]))
        model = _model_for(fg, ft)

        with pytest.raises(InvariantViolation):
            model.joint_feature_vector(0, FactorGraphObservation([0]))

    def test_unregistered_type_is_fatal(self):
        ft = TableFactorType(0, [2], np.zeros(2))
        fg = FactorGraph([2])
        fg.add_factor(Factor(ft, [0]))
        model = _model_for(fg)

        with pytest.raises(InvariantViolation):
            model.joint_feature_vector(0, FactorGraphObservation([1]))

    def test_short_labelling_is_rejected(self):
        ft = TableFactorType(0, [2], np.zeros(2))
        fg = FactorGraph([2, 2])
        fg.add_factor(Factor(ft, [0]))
        fg.add_factor(Factor(ft, [1]))
        model = _model_for(fg, ft)

        with pytest.raises(ConfigurationError):
            model.joint_feature_vector(0, FactorGraphObservation([1]))
