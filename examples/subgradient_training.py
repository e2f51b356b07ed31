"""
Example: Structured SVM training by subgradient descent.

The outer optimiser is a few lines around FactorGraphModel.argmax:
for each example the oracle returns psi_truth, psi_pred and delta, and
the hinge subgradient is psi_pred - psi_truth whenever the slack is positive.
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


def make_dataset(unary, pairwise, num_samples=20, length=6, seed=0):
    rng = np.random.default_rng(seed)
    features = FactorGraphFeatures()
    labels = FactorGraphLabels()
    for _ in range(num_samples):
        # Piecewise-constant labels observed through noise
        cut = rng.integers(1, length)
        y = np.array([0] * cut + [1] * (length - cut))
        x = y + rng.normal(scale=0.6, size=length)

        fg = FactorGraph([2] * length)
        for i in range(length):
            fg.add_factor(Factor(unary, [i], [1.0, x[i]]))
        for i in range(length - 1):
            fg.add_factor(Factor(pairwise, [i, i + 1]))
        features.add_sample(fg)
        labels.add_label(FactorGraphObservation(y))
    return features, labels


def main():
    unary = TableFactorType(0, [2], np.zeros(4))
    pairwise = TableFactorType(1, [2, 2], np.zeros(4))
    features, labels = make_dataset(unary, pairwise)

    model = FactorGraphModel(features, labels)
    model.add_factor_type(unary)
    model.add_factor_type(pairwise)

    lam = 1e-3
    w = model.pull_from_types()
    for epoch in range(30):
        grad = lam * w
        risk = 0.0
        for i in range(len(features)):
            res = model.argmax(w, i, training=True)
            slack = res.slack(w)
            if slack > 0:
                risk += slack
                grad += (res.psi_pred - res.psi_truth) / len(features)
        w = w - 0.5 / (epoch + 1) * grad
        if epoch % 5 == 0:
            print(f"epoch {epoch:2d}  risk = {risk / len(features):.4f}")

    errors = 0.0
    for i in range(len(features)):
        res = model.argmax(w, i, training=False)
        errors += res.delta
    print(f"\nmean normalised Hamming loss: {errors / len(features):.4f}")
    print(f"w = {np.round(w, 3)}")


if __name__ == "__main__":
    main()
