"""
Tests for the weighted Hamming delta loss.
"""

import numpy as np
import pytest

from fgmodel.errors import ConfigurationError
from fgmodel.model import FactorGraphModel
from fgmodel.structure.observation import FactorGraphObservation


@pytest.fixture
def model():
    return FactorGraphModel()


def test_identical_assignments_have_zero_loss(model):
    rng = np.random.default_rng(0)
    y = rng.integers(0, 3, size=8)
    truth = FactorGraphObservation(y, rng.uniform(0.0, 5.0, size=8))
    assert model.delta_loss(truth, FactorGraphObservation(y)) == 0.0


def test_weighted_positions(model):
    truth = FactorGraphObservation([0, 1, 0, 1, 0, 1, 0], [1, 1, 3, 1, 1, 2, 1])
    pred = FactorGraphObservation([0, 1, 1, 1, 0, 0, 0])
    assert model.delta_loss(truth, pred) == pytest.approx(5.0)


def test_uses_truth_weights_only(model):
    truth = FactorGraphObservation([0, 0], [2.0, 0.0])
    pred = FactorGraphObservation([1, 1], [100.0, 100.0])
    assert model.delta_loss(truth, pred) == pytest.approx(2.0)


def test_zero_weight_disagreement_is_free(model):
    truth = FactorGraphObservation([0, 1, 2], [1.0, 0.0, 1.0])
    pred = FactorGraphObservation([0, 0, 2])
    assert model.delta_loss(truth, pred) == 0.0


def test_default_weights_give_normalised_hamming(model):
    truth = FactorGraphObservation([0, 1, 1, 0])
    pred = FactorGraphObservation([1, 1, 0, 0])
    assert model.delta_loss(truth, pred) == pytest.approx(0.5)


def test_length_mismatch(model):
    with pytest.raises(ConfigurationError):
        model.delta_loss(FactorGraphObservation([0, 1]), FactorGraphObservation([0, 1, 0]))
