"""
kolmogorov - B-spline Kolmogorov-Arnold Networks

A PyTorch implementation of KAN layers with adaptive knot grids.
Based on paper: https://arxiv.org/abs/2404.19756

Usage:
    from kolmogorov import KAN

    # Create model
    model = KAN([input_dim, hidden1, output_dim])

    # Fit the knot grids to the data, keeping the current function
    model.update_grid(x_train)

    # Evaluate
    y = model(x_train)
    reg = model.regularization_loss(regularize_activation=1.0, regularize_entropy=1.0)
"""

from .config import KANConfig

# Core modules
from .modules import KAN, KANLinear, create_kan, create_kan_from_config, update_grid

# Spline utilities
from .utils import B_batch, coef2curve, curve2coef, make_grid, adaptive_grid

__version__ = "1.0.0"

__all__ = [
    # Core
    'KAN', 'KANLinear', 'KANConfig',
    'create_kan', 'create_kan_from_config', 'update_grid',
    # Spline utilities
    'B_batch', 'coef2curve', 'curve2coef', 'make_grid', 'adaptive_grid',
]
