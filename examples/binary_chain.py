"""
Example: Max oracle on a binary chain.

X0--X1--X2 with shared unary and pairwise factor types.
"""

import numpy as np

from fgmodel import (
    Factor,
    FactorGraph,
    FactorGraphFeatures,
    FactorGraphLabels,
    FactorGraphModel,
    FactorGraphObservation,
    TableFactorType,
)


def main():
    # Unary type: 2 states x 2 data dims, pairwise type: 4 states x 1 data dim
    unary = TableFactorType(0, [2], np.zeros(4))
    pairwise = TableFactorType(1, [2, 2], np.zeros(4))

    fg = FactorGraph([2, 2, 2])
    observations = [0.1, 0.9, 0.8]
    for i, x in enumerate(observations):
        fg.add_factor(Factor(unary, [i], [1.0, x]))
    fg.add_factor(Factor(pairwise, [0, 1]))
    fg.add_factor(Factor(pairwise, [1, 2]))

    truth = FactorGraphObservation([0, 1, 1], [1.0, 1.0, 1.0])

    model = FactorGraphModel(FactorGraphFeatures([fg]), FactorGraphLabels([truth]))
    model.add_factor_type(unary)
    model.add_factor_type(pairwise)
    print(f"Parameter mapping: {model.get_global_params_mapping()}")

    w = np.array([0.0, 1.0, 0.5, -1.0, 0.0, 0.3, 0.3, 0.0])

    for training in (False, True):
        res = model.argmax(w, 0, training=training)
        print(f"\ntraining={training}")
        print(f"  argmax = {res.argmax.get_data()}")
        print(f"  score  = {res.score:.4f}")
        print(f"  delta  = {res.delta:.4f}")
        print(f"  slack  = {res.slack(w):.4f}")

    # <w, psi> equals negative energy
    y = res.argmax.get_data()
    print("\n--- Verification ---")
    print(f"<w, psi_pred> = {np.dot(w, res.psi_pred):.6f}")
    print(f"-E(y_pred)    = {-fg.evaluate_energy(y):.6f}")


if __name__ == "__main__":
    main()
