"""
Tests for primal optimisation constraints.
"""

import numpy as np
import pytest

from fgmodel.errors import ConfigurationError
from fgmodel.inference.map_inference import MAPInferType
from fgmodel.model import FactorGraphModel
from fgmodel.structure.factor_type import TableFactorType


def _model(inf_type):
    model = FactorGraphModel(inf_type=inf_type)
    model.add_factor_type(TableFactorType(0, [2], np.zeros(4)))
    model.add_factor_type(TableFactorType(1, [2, 2], np.zeros(4)))
    model.add_factor_type(TableFactorType(2, [3, 3], np.zeros(9)))
    return model


class TestRegularizer:
    @pytest.mark.parametrize("mode", list(MAPInferType))
    def test_C_is_scaled_identity(self, mode):
        model = _model(mode)
        cons = model.build_constraints(0.5)
        assert cons.C.shape == (17, 17)
        assert np.array_equal(cons.C, 0.5 * np.eye(17))


class TestNonGraphCut:
    def test_bounds_left_to_caller(self):
        model = _model(MAPInferType.TREE_MAX_PROD)
        cons = model.build_constraints(1.0)
        assert cons.lb is None
        assert cons.ub is None

    def test_caller_bounds_passed_through(self):
        model = _model(MAPInferType.LOOPY_MAX_PROD)
        lb = np.full(17, -5.0)
        A = np.ones((1, 17))
        cons = model.build_constraints(1.0, A=A, a=np.ones(1), lb=lb)
        assert cons.lb is lb
        assert cons.A is A


class TestGraphCutSubmodularity:
    def test_pairwise_binary_bounds(self):
        model = _model(MAPInferType.GRAPH_CUT)
        cons = model.build_constraints(1.0)

        e00, e10, e01, e11 = model.get_mapping(1)
        assert cons.lb[e00] == cons.ub[e00] == 0.0
        assert cons.lb[e11] == cons.ub[e11] == 0.0
        assert cons.lb[e01] == 0.0 and cons.lb[e10] == 0.0
        assert np.isposinf(cons.ub[e01]) and np.isposinf(cons.ub[e10])

    def test_other_types_unbounded(self):
        model = _model(MAPInferType.GRAPH_CUT)
        cons = model.build_constraints(1.0)

        others = np.concatenate([model.get_mapping(0), model.get_mapping(2)])
        assert np.all(np.isneginf(cons.lb[others]))
        assert np.all(np.isposinf(cons.ub[others]))

    def test_edge_features_rejected(self):
        model = FactorGraphModel(inf_type=MAPInferType.GRAPH_CUT)
        model.add_factor_type(TableFactorType(0, [2, 2], np.zeros(8)))
        with pytest.raises(ConfigurationError):
            model.build_constraints(1.0)

    def test_bounds_follow_shifted_mapping(self):
        model = FactorGraphModel(inf_type="graph_cut")
        model.add_factor_type(TableFactorType(5, [2], np.zeros(2)))
        model.add_factor_type(TableFactorType(6, [2, 2], np.zeros(4)))
        cons = model.build_constraints(2.0)

        assert np.isneginf(cons.lb[:2]).all()
        assert cons.lb[2:].tolist() == [0.0, 0.0, 0.0, 0.0]
        assert cons.ub[2:].tolist() == [0.0, np.inf, np.inf, 0.0]
