import math

import torch
import torch.nn as nn
import torch.nn.functional as F

from ..config import KANConfig
from ..utils.grid_utils import make_grid, adaptive_grid
from ..utils.spline_utils import B_batch, curve2coef
from ..utils.regularization import regularization_loss


def _uniform(shape, bound, generator=None):
    return (torch.rand(shape, generator=generator) * 2 - 1) * bound


class KANLinear(nn.Module):
    """
    One KAN layer: y = base_activation(W_b x) + sum_i spline_{o,i}(x_i).

    Every (out, in) edge owns grid_size + spline_order B-spline coefficients
    defined on the knot row of its input feature. The grid is adapted to the
    data with update_grid(), which refits the coefficients so the layer keeps
    computing the same function.
    """

    def __init__(self, in_features, out_features, grid_size=5, spline_order=3, scale_noise=0.1,
                 scale_base=1.0, scale_spline=1.0, enable_standalone_scale_spline=True,
                 base_activation=None, grid_eps=0.02, grid_range=(-1, 1), generator=None):
        super(KANLinear, self).__init__()
        if in_features < 1 or out_features < 1:
            raise ValueError(f"Feature counts must be positive, got {in_features} -> {out_features}")
        self.config = KANConfig(
            grid_size=grid_size,
            spline_order=spline_order,
            scale_noise=scale_noise,
            scale_base=scale_base,
            scale_spline=scale_spline,
            enable_standalone_scale_spline=enable_standalone_scale_spline,
            base_activation=base_activation if base_activation is not None else nn.Sigmoid(),
            grid_eps=grid_eps,
            grid_range=tuple(grid_range),
        )
        self.in_features = in_features
        self.out_features = out_features
        self.grid_size = grid_size
        self.spline_order = spline_order
        self.grid_eps = grid_eps
        self.base_activation = self.config.base_activation

        self.register_buffer("grid", make_grid(in_features, grid_size, spline_order, grid_range))

        self.base_weight = nn.Parameter(torch.empty(out_features, in_features))
        self.spline_weight = nn.Parameter(torch.empty(out_features, in_features, grid_size + spline_order))
        if enable_standalone_scale_spline:
            self.spline_scaler = nn.Parameter(torch.empty(out_features, in_features))
        else:
            # Identity scaler, fixed for the lifetime of the layer
            self.register_buffer("spline_scaler", torch.ones(out_features, in_features))

        self.reset_parameters(generator)

    @property
    def num_basis(self):
        return self.grid_size + self.spline_order

    def reset_parameters(self, generator=None):
        """
        Draw fresh weights. Spline coefficients are fitted to small noise
        sampled on the active knots, so every edge starts as a smooth curve.
        """
        cfg = self.config
        bound = 1 / math.sqrt(self.in_features)
        with torch.no_grad():
            self.base_weight.copy_(_uniform(self.base_weight.shape, bound, generator) * cfg.scale_base)

            noise = (
                (torch.rand(self.grid_size + 1, self.in_features, self.out_features, generator=generator) - 0.5)
                * cfg.scale_noise / self.grid_size
            ).to(self.grid.dtype)
            x_active = self.grid.T[self.spline_order:self.grid.size(1) - self.spline_order]
            coef = curve2coef(x_active, noise, self.grid, self.spline_order)
            if not cfg.enable_standalone_scale_spline:
                coef = coef * cfg.scale_spline
            self.spline_weight.copy_(coef)

            if cfg.enable_standalone_scale_spline:
                self.spline_scaler.copy_(_uniform(self.spline_scaler.shape, bound, generator) * cfg.scale_spline)

    @property
    def scaled_spline_weight(self):
        # (out_features, in_features, grid_size + spline_order)
        return self.spline_weight * self.spline_scaler.unsqueeze(-1)

    def _check_input(self, x):
        if x.dim() != 2 or x.size(1) != self.in_features:
            raise ValueError(
                f"Expected input of shape (batch, {self.in_features}), got {tuple(x.shape)}"
            )

    def b_splines(self, x):
        """Basis values of x on the current grid: (batch, in_features, num_basis)."""
        self._check_input(x)
        return B_batch(x, self.grid, self.spline_order)

    def forward(self, x):
        # x: (batch, in_features)
        self._check_input(x)

        # 1. Base branch: (batch, out_features)
        base_output = self.base_activation(F.linear(x, self.base_weight))

        # 2. Spline branch
        # (batch, in_features * num_basis) x (out_features, in_features * num_basis)^T
        spline_output = F.linear(
            self.b_splines(x).view(x.size(0), -1),
            self.scaled_spline_weight.view(self.out_features, -1),
        )

        return base_output + spline_output

    def replace_grid(self, new_grid):
        """Overwrite the knot grid in place."""
        if new_grid.shape != self.grid.shape:
            raise ValueError(
                f"New grid must have shape {tuple(self.grid.shape)}, got {tuple(new_grid.shape)}"
            )
        self.grid.copy_(new_grid)

    def _commit(self, new_grid, new_spline_weight):
        # Grid and coefficients only make sense together; write both or neither
        if new_spline_weight.shape != self.spline_weight.shape:
            raise ValueError(
                f"New spline weight must have shape {tuple(self.spline_weight.shape)}, "
                f"got {tuple(new_spline_weight.shape)}"
            )
        self.replace_grid(new_grid)
        self.spline_weight.data.copy_(new_spline_weight)

    @torch.no_grad()
    def update_grid(self, x, margin=0.01):
        """
        Re-knot the grid from the distribution of x (Sec 2.5) and refit the
        spline coefficients so that the layer output on x is preserved.

        Args:
            x: (batch, in_features) samples; batch should be >= grid_size + 1
            margin: Extra room around the observed input range
        """
        self._check_input(x)

        # Per-edge spline values before re-knotting: (batch, in_features, out_features).
        # The scaler multiplies each edge by a constant, so fitting the unscaled
        # curves and keeping the scaler reproduces the scaled ones.
        splines = self.b_splines(x)
        unreduced_spline_output = torch.einsum('bik,oik->bio', splines, self.spline_weight)

        # Caller sits above the no_grad wrapper frame
        new_grid = adaptive_grid(x, self.grid_size, self.spline_order, self.grid_eps, margin, stacklevel=4)
        new_grid = new_grid.to(self.grid.dtype)
        new_coef = curve2coef(x, unreduced_spline_output, new_grid, self.spline_order)

        self._commit(new_grid, new_coef)

    def regularization_loss(self, regularize_activation=1.0, regularize_entropy=1.0):
        """L1 + entropy sparsification loss (Sec 2.3) over the spline weights."""
        return regularization_loss(self, regularize_activation, regularize_entropy)

    def extra_repr(self):
        return (
            f"in_features={self.in_features}, out_features={self.out_features}, "
            f"grid_size={self.grid_size}, spline_order={self.spline_order}"
        )
