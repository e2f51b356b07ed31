"""
Tests for the command line helpers.
"""

import json

import numpy as np
import pytest

from main import build_model_from_dict, demo_chain, main, result_to_dict


PROBLEM = {
    "factor_types": [
        {"id": 0, "cardinalities": [2], "weights": [0.0, 1.0]},
        {"id": 1, "cardinalities": [2, 2], "weights": [0.0, 0.5, 0.5, 0.0]},
    ],
    "graph": {
        "cardinalities": [2, 2],
        "factors": [
            {"type": 0, "variables": [0]},
            {"type": 0, "variables": [1]},
            {"type": 1, "variables": [0, 1]},
        ],
    },
    "label": {"states": [1, 1], "loss_weights": [1.0, 1.0]},
}


def test_build_model_uses_type_weights_by_default():
    model, w = build_model_from_dict(PROBLEM)
    assert model.total_dimension() == 6
    assert np.array_equal(w, [0.0, 1.0, 0.0, 0.5, 0.5, 0.0])


def test_result_to_dict():
    model, w = build_model_from_dict(PROBLEM)
    res = model.argmax(w, 0, training=False)
    out = result_to_dict(model, res, w)
    assert out["argmax"] == [0, 0]
    assert out["score"] == pytest.approx(2.0)
    assert out["delta"] == pytest.approx(2.0)


@pytest.mark.parametrize("inference", ["tree_max_prod", "loopy_max_prod", "lp_relaxation", "graph_cut"])
def test_demo_chain(inference):
    assert demo_chain(inference)


def test_oracle_command(tmp_path, monkeypatch):
    inp = tmp_path / "problem.json"
    out = tmp_path / "result.json"
    inp.write_text(json.dumps(PROBLEM))

    monkeypatch.setattr("sys.argv", ["fgmodel", "oracle", "-i", str(inp), "-o", str(out), "--predict"])
    assert main() == 0
    assert json.loads(out.read_text())["argmax"] == [0, 0]


def test_oracle_command_honours_training_key(tmp_path, monkeypatch):
    # Loss weights large enough that the loss-augmented argmax leaves the truth
    problem = dict(PROBLEM, label={"states": [0, 0], "loss_weights": [5.0, 5.0]})
    inp = tmp_path / "problem.json"
    out = tmp_path / "result.json"

    inp.write_text(json.dumps(problem))
    monkeypatch.setattr("sys.argv", ["fgmodel", "oracle", "-i", str(inp), "-o", str(out)])
    assert main() == 0
    assert json.loads(out.read_text())["argmax"] == [1, 1]

    inp.write_text(json.dumps(dict(problem, training=False)))
    assert main() == 0
    assert json.loads(out.read_text())["argmax"] == [0, 0]
