import torch
import torch.nn as nn

from .kan_layer import KANLinear
from ..utils.regularization import total_regularization


class KAN(nn.Module):
    def __init__(self, layers_hidden, grid_size=5, spline_order=3, scale_noise=0.1, scale_base=1.0,
                 scale_spline=1.0, enable_standalone_scale_spline=True, base_activation=None,
                 grid_eps=0.02, grid_range=(-1, 1), generator=None):
        """
        Kolmogorov-Arnold Network (KAN) model.

        Args:
            layers_hidden: List of integers [in_dim, h1, h2, ..., out_dim]
            grid_size: Number of grid intervals (G in paper)
            spline_order: B-spline degree (k in paper)
            generator: Optional torch.Generator shared by all layer initialisations
        """
        super(KAN, self).__init__()
        if len(layers_hidden) < 2:
            raise ValueError("layers_hidden needs at least an input and an output width")
        self.layers_hidden = list(layers_hidden)
        self.layers = nn.ModuleList()
        for in_h, out_h in zip(layers_hidden[:-1], layers_hidden[1:]):
            self.layers.append(
                KANLinear(
                    in_h,
                    out_h,
                    grid_size=grid_size,
                    spline_order=spline_order,
                    scale_noise=scale_noise,
                    scale_base=scale_base,
                    scale_spline=scale_spline,
                    enable_standalone_scale_spline=enable_standalone_scale_spline,
                    base_activation=base_activation,
                    grid_eps=grid_eps,
                    grid_range=grid_range,
                    generator=generator,
                )
            )

    def forward(self, x, update_grid=False):
        """
        Forward pass through all layers.

        With update_grid=True each layer re-knots its grid on the activations
        it actually receives before evaluating them.
        """
        for layer in self.layers:
            if update_grid:
                layer.update_grid(x)
            x = layer(x)
        return x

    @torch.no_grad()
    def update_grid(self, x, margin=0.01):
        """
        Grid update (Sec 2.5) for every layer, in order, each on the output
        distribution of the previous one.
        """
        for layer in self.layers:
            layer.update_grid(x, margin=margin)
            x = layer(x)

    def regularization_loss(self, regularize_activation=1.0, regularize_entropy=1.0):
        """Calculate regularization for sparsification (Sec 2.3)."""
        return total_regularization(self, regularize_activation, regularize_entropy)

    def get_parameter_count(self):
        """Spline coefficients per edge times edges, summed over layers."""
        return sum(
            layer.in_features * layer.out_features * layer.num_basis
            for layer in self.layers
        )
