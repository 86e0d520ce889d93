"""
KAN Functions Module
====================

Functional helpers around KAN and KANLinear.

Usage:
    from kolmogorov.modules.kan_functions import *

    # Create model
    model = create_kan([2, 5, 1])

    # Adapt grids to the data, then predict
    update_grid(model, x)
    y = predict(model, x)
"""

from copy import deepcopy
from typing import Dict, List, Optional, Union

import torch
import torch.nn as nn

from ..config import KANConfig
from .kan_layer import KANLinear
from .kan_model import KAN


__all__ = [
    # Creation
    'create_kan', 'create_kan_from_config',
    # Inference
    'predict', 'predict_batch',
    # Grid
    'update_grid',
    # Regularization
    'get_total_reg',
    # Utilities
    'count_parameters', 'summary', 'clone_kan',
]


# =============================================================================
# CREATION
# =============================================================================

def create_kan(layers: List[int],
               grid_size: int = 5,
               spline_order: int = 3,
               base_activation: Optional[nn.Module] = None,
               generator: Optional[torch.Generator] = None,
               **kwargs) -> KAN:
    """
    Create a KAN model with specified architecture.

    Args:
        layers: Layer widths [input, hidden..., output]
        grid_size: B-spline grid intervals
        spline_order: Spline polynomial order (default: 3 = cubic)
        base_activation: Base activation (default: Sigmoid)
        generator: Optional random source for reproducible initialisation
        **kwargs: Any other KANLinear hyperparameter
    Returns:
        KAN model

    Example:
        >>> model = create_kan([2, 5, 1])
        >>> model = create_kan([10, 20, 10, 1], grid_size=10)
    """
    return KAN(
        layers_hidden=layers,
        grid_size=grid_size,
        spline_order=spline_order,
        base_activation=base_activation,
        generator=generator,
        **kwargs
    )


def create_kan_from_config(config: Union[Dict, KANConfig],
                           generator: Optional[torch.Generator] = None) -> KAN:
    """
    Create KAN from a KANConfig or a plain configuration dict.

    Dict keys are the KANConfig field names; unknown keys raise ValueError.
    """
    if not isinstance(config, KANConfig):
        config = KANConfig.from_dict(config)
    if config.layers_hidden is None:
        raise ValueError("config.layers_hidden is required to build a network")
    return KAN(config.layers_hidden, generator=generator, **config.layer_kwargs())


# =============================================================================
# INFERENCE
# =============================================================================

def predict(model: nn.Module, x: torch.Tensor) -> torch.Tensor:
    """Get predictions."""
    model.eval()
    with torch.no_grad():
        return model(x)


def predict_batch(model: nn.Module, x: torch.Tensor, batch_size: int = 256) -> torch.Tensor:
    """Predict in batches for large datasets."""
    model.eval()
    outputs = []
    with torch.no_grad():
        for i in range(0, len(x), batch_size):
            outputs.append(model(x[i:i + batch_size]))
    return torch.cat(outputs, dim=0)


# =============================================================================
# GRID OPERATIONS
# =============================================================================

def update_grid(model: Union[KAN, KANLinear], x: torch.Tensor,
                margin: float = 0.01, verbose: bool = False) -> Union[KAN, KANLinear]:
    """
    Update grid based on data distribution.

    Args:
        model: KAN model or a single KANLinear layer
        x: Samples for grid adaptation (batch should be >= grid_size + 1)
        margin: Extra room around the observed input range
        verbose: Print the new active range of every layer
    Returns:
        Model with updated grid
    """
    layers = [model] if isinstance(model, KANLinear) else list(model.layers)
    with torch.no_grad():
        for l, layer in enumerate(layers):
            layer.update_grid(x, margin=margin)
            if verbose:
                k = layer.spline_order
                low = layer.grid[:, k].min().item()
                high = layer.grid[:, -k - 1].max().item()
                print(f"Layer {l}: grid updated, active range [{low:.4f}, {high:.4f}]")
            x = layer(x)
    return model


# =============================================================================
# REGULARIZATION
# =============================================================================

def get_total_reg(model: KAN, lambda_l1: float = 1.0,
                  lambda_entropy: float = 1.0) -> torch.Tensor:
    """Get total regularization loss."""
    return model.regularization_loss(
        regularize_activation=lambda_l1,
        regularize_entropy=lambda_entropy,
    )


# =============================================================================
# UTILITIES
# =============================================================================

def count_parameters(model: nn.Module, trainable_only: bool = True) -> int:
    """Count model parameters."""
    if trainable_only:
        return sum(p.numel() for p in model.parameters() if p.requires_grad)
    return sum(p.numel() for p in model.parameters())


def summary(model: KAN) -> str:
    """Get model summary string."""
    lines = ["KAN Model Summary", "=" * 40]

    arch = [model.layers[0].in_features]
    for layer in model.layers:
        arch.append(layer.out_features)
    lines.append(f"Architecture: {arch}")
    lines.append(f"Grid size: {model.layers[0].grid_size}")
    lines.append(f"Spline order: {model.layers[0].spline_order}")
    lines.append(f"Knots per feature: {model.layers[0].grid.shape[-1]}")
    lines.append(f"Parameters: {count_parameters(model):,}")

    return "\n".join(lines)


def clone_kan(model: KAN) -> KAN:
    """Create a deep copy of KAN model."""
    return deepcopy(model)
