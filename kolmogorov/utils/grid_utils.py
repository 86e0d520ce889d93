"""
Knot grids for B-spline KAN layers (Sec 2.2 and 2.5 of the paper).

Grids are stored per input feature as rows of shape
(in_features, grid_size + 2k + 1). The first and last k knots pad the
active domain so that every basis function of degree k is fully defined.
"""

import warnings

import torch


def make_grid(in_features, grid_size, spline_order, grid_range=(-1, 1), dtype=None):
    """
    Uniform knot grid over grid_range, padded by spline_order knots per side.

    Args:
        in_features: Number of rows (one grid per input feature)
        grid_size: Number of active intervals
        spline_order: B-spline degree k
        grid_range: (low, high) of the active domain
    Returns:
        grid: (in_features, grid_size + 2k + 1)
    """
    h = (grid_range[1] - grid_range[0]) / grid_size
    grid = (
        torch.arange(-spline_order, grid_size + spline_order + 1, dtype=dtype) * h
        + grid_range[0]
    )
    return grid.expand(in_features, -1).contiguous()


def extend_grid(active, spline_order, step):
    """
    Pad an active grid with spline_order knots on each side.

    Args:
        active: (grid_size + 1, in_features) active knots, one column per feature
        spline_order: B-spline degree k
        step: (in_features,) knot spacing used for the padding
    Returns:
        grid: (in_features, grid_size + 2k + 1)
    """
    offsets = torch.arange(1, spline_order + 1, dtype=active.dtype, device=active.device)
    # (k, 1) * (in_features,) -> (k, in_features)
    left = active[:1] - offsets.flip(0).unsqueeze(1) * step
    right = active[-1:] + offsets.unsqueeze(1) * step
    return torch.cat([left, active, right], dim=0).T.contiguous()


def adaptive_grid(x, grid_size, spline_order, grid_eps=0.02, margin=0.01, stacklevel=2):
    """
    Data-driven knot grid (Sec 2.5, grid update).

    Active knots are a blend of evenly spaced order statistics of x
    (adaptive) and an evenly spaced grid over [min(x) - margin, max(x) + margin]
    (uniform), weighted by grid_eps. The result is padded at the uniform step.

    Args:
        x: (batch, in_features) samples
        grid_size: Number of active intervals
        spline_order: B-spline degree k
        grid_eps: 0 = purely adaptive, 1 = purely uniform
        margin: Extra room around the observed range
        stacklevel: Frame the small-batch warning is attributed to
    Returns:
        grid: (in_features, grid_size + 2k + 1)
    """
    if x.dim() != 2:
        raise ValueError(f"x must be (batch, in_features), got shape {tuple(x.shape)}")
    batch = x.size(0)
    if batch < grid_size + 1:
        warnings.warn(
            f"Grid update with batch={batch} < grid_size + 1 = {grid_size + 1}: "
            "adaptive knots will repeat and the refitted splines are unreliable.",
            RuntimeWarning,
            stacklevel=stacklevel,
        )

    x_sorted = torch.sort(x, dim=0).values
    # round(i / G * (batch - 1)) for i = 0..G
    idx = torch.round(
        torch.arange(grid_size + 1, dtype=torch.float64) / grid_size * (batch - 1)
    ).long().to(x.device)
    grid_adaptive = x_sorted[idx]

    x_min, x_max = x_sorted[0], x_sorted[-1]
    uniform_step = (x_max - x_min + 2 * margin) / grid_size
    grid_uniform = (
        torch.arange(grid_size + 1, dtype=x.dtype, device=x.device).unsqueeze(1)
        * uniform_step
        + x_min
        - margin
    )

    active = grid_eps * grid_uniform + (1 - grid_eps) * grid_adaptive
    return extend_grid(active, spline_order, uniform_step)
