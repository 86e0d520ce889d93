"""
Regularization utilities for KAN (Section 2.3 of paper).

Implements:
- Eq 2.9-2.12: L1 regularization on activations
- Eq 2.13-2.14: Entropy regularization for sparsification

The activation L1 is approximated by the mean absolute spline coefficient of
each edge, which needs no input samples.
"""

import torch


def edge_importance(layer):
    """
    Mean absolute spline coefficient per edge.

    Args:
        layer: KANLinear layer
    Returns:
        importance: (out_features, in_features)
    """
    return torch.abs(layer.spline_weight).mean(dim=-1)


def compute_entropy(importance):
    """
    Eq 2.13-2.14: Entropy of the normalised edge importance.

    S(Φ_l) = -Σ_{i,j} p_{i,j} * log(p_{i,j})
    where p_{i,j} = |φ_{i,j}|_1 / Σ_{i',j'} |φ_{i',j'}|_1

    Edges with zero importance contribute 0 (0 * log 0 = 0).

    Args:
        importance: (out_features, in_features) importance matrix
    Returns:
        entropy: Scalar entropy value (lower = sparser)
    """
    total = importance.sum()
    p = importance / total.clamp_min(torch.finfo(importance.dtype).tiny)
    nonzero = p > 0
    # log of a safe operand keeps the gradient finite at p == 0
    log_p = torch.log(torch.where(nonzero, p, torch.ones_like(p)))
    return -torch.where(nonzero, p * log_p, torch.zeros_like(p)).sum()


def regularization_loss(layer, regularize_activation=1.0, regularize_entropy=1.0):
    """
    Eq 2.12 for one layer: μ_1 * |Φ|_1 + μ_2 * S(Φ).

    Args:
        layer: KANLinear layer
        regularize_activation: Weight of the L1 term (μ_1)
        regularize_entropy: Weight of the entropy term (μ_2)
    Returns:
        reg_loss: Scalar tensor
    """
    l1_fake = edge_importance(layer)
    reg_loss_activation = l1_fake.sum()
    reg_loss_entropy = compute_entropy(l1_fake)
    return regularize_activation * reg_loss_activation + regularize_entropy * reg_loss_entropy


def total_regularization(model, regularize_activation=1.0, regularize_entropy=1.0):
    """Sum of the per-layer regularization losses of a KAN model."""
    return sum(
        regularization_loss(layer, regularize_activation, regularize_entropy)
        for layer in model.layers
    )
