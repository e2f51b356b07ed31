"""
Tests for weight cache synchronisation between the global vector and factor types.
"""

import numpy as np
import pytest

from fgmodel.errors import ConfigurationError
from fgmodel.model import FactorGraphModel
from fgmodel.structure.factor_type import TableFactorType


class CountingFactorType(TableFactorType):
    """Table factor type that counts weight updates."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.set_calls = 0

    def set_w(self, w):
        self.set_calls += 1
        super().set_w(w)


@pytest.fixture
def model_and_types():
    unary = CountingFactorType(0, [2], [1.0, 2.0])
    pairwise = CountingFactorType(1, [2, 2], [3.0, 4.0, 5.0, 6.0])
    model = FactorGraphModel()
    model.add_factor_type(unary)
    model.add_factor_type(pairwise)
    return model, unary, pairwise


class TestPull:
    def test_pull_gathers_type_weights(self, model_and_types):
        model, _, _ = model_and_types
        assert np.array_equal(model.pull_from_types(), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_pull_returns_copy(self, model_and_types):
        model, _, _ = model_and_types
        w = model.pull_from_types()
        w[:] = 0.0
        assert np.array_equal(model.pull_from_types(), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_pull_sees_external_type_update(self, model_and_types):
        model, unary, _ = model_and_types
        unary.set_w([9.0, 8.0])
        assert np.array_equal(model.pull_from_types()[:2], [9.0, 8.0])


class TestPush:
    def test_push_scatters_into_types(self, model_and_types):
        model, unary, pairwise = model_and_types
        model.push_to_types(np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6]))

        assert np.allclose(unary.get_w(), [0.1, 0.2])
        assert np.allclose(pairwise.get_w(), [0.3, 0.4, 0.5, 0.6])

    def test_push_pull_round_trip(self, model_and_types):
        model, _, _ = model_and_types
        rng = np.random.default_rng(0)
        for _ in range(5):
            w = rng.normal(size=model.total_dimension())
            model.push_to_types(w)
            assert np.array_equal(model.pull_from_types(), w)

    def test_repeated_push_is_noop(self, model_and_types):
        model, unary, pairwise = model_and_types
        w = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])

        model.push_to_types(w)
        assert unary.set_calls == 1
        assert pairwise.set_calls == 1

        model.push_to_types(w.copy())
        assert unary.set_calls == 1
        assert pairwise.set_calls == 1

    def test_push_of_current_cache_is_noop(self, model_and_types):
        model, unary, _ = model_and_types
        model.push_to_types(model.pull_from_types())
        assert unary.set_calls == 0

    def test_push_wrong_length_raises(self, model_and_types):
        model, unary, _ = model_and_types
        with pytest.raises(ConfigurationError):
            model.push_to_types(np.zeros(5))
        assert unary.set_calls == 0

    def test_push_does_not_alias_input(self, model_and_types):
        model, unary, _ = model_and_types
        w = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        model.push_to_types(w)
        w[0] = 100.0
        assert unary.get_w()[0] == pytest.approx(0.1)


class TestFactorTypeWeights:
    def test_set_w_length_checked(self):
        ft = TableFactorType(0, [2], [1.0, 2.0])
        with pytest.raises(ConfigurationError):
            ft.set_w([1.0, 2.0, 3.0])

    def test_get_w_is_copy(self):
        ft = TableFactorType(0, [2], [1.0, 2.0])
        w = ft.get_w()
        w[0] = 5.0
        assert ft.get_w()[0] == 1.0
