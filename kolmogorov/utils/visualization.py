"""
Visualization utilities for KAN networks.

Implements:
- Learned spline plotting per edge, with knot positions
- Network structure visualization
"""

import torch
import matplotlib.pyplot as plt

from .regularization import edge_importance
from .spline_utils import B_batch


def plot_activation_function(layer, edge_idx, x_range=None, n_points=100, ax=None):
    """
    Plot the learned spline function for a specific edge.

    Args:
        layer: KANLinear layer
        edge_idx: Tuple (in_idx, out_idx) specifying the edge
        x_range: Range of x values to plot (default: the active grid domain)
        n_points: Number of points to sample
        ax: Matplotlib axis (created if None)
    Returns:
        ax: Matplotlib axis with the plot
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    in_idx, out_idx = edge_idx
    k = layer.spline_order
    knots = layer.grid[in_idx].detach().cpu()
    if x_range is None:
        x_range = (knots[k].item(), knots[-k - 1].item())

    x = torch.linspace(x_range[0], x_range[1], n_points, dtype=layer.grid.dtype)

    with torch.no_grad():
        # Only the relevant input column matters for this edge
        x_input = torch.zeros(n_points, layer.in_features, dtype=layer.grid.dtype)
        x_input[:, in_idx] = x
        splines = B_batch(x_input, layer.grid.cpu(), k)
        coef = layer.scaled_spline_weight[out_idx, in_idx, :].cpu()
        y_spline = splines[:, in_idx, :] @ coef

    ax.plot(x.numpy(), y_spline.numpy(), 'r-', linewidth=2, label='Spline φ(x)')
    visible = knots[(knots >= x_range[0]) & (knots <= x_range[1])]
    ax.plot(visible.numpy(), torch.zeros_like(visible).numpy(), 'k|', markersize=10, label='Knots')
    ax.axhline(y=0, color='gray', linestyle=':', alpha=0.5)
    ax.set_xlabel('x')
    ax.set_ylabel('φ(x)')
    ax.set_title(f'Edge ({in_idx}, {out_idx})')
    ax.legend()
    ax.grid(True, alpha=0.3)

    return ax


def plot_kan_structure(model, figsize=(12, 8)):
    """
    Visualize the KAN network structure with edge importance.

    Similar to Fig 0.1(d) in the paper.

    Args:
        model: KAN model
        figsize: Figure size
    Returns:
        fig, ax: Matplotlib figure and axis
    """
    fig, ax = plt.subplots(figsize=figsize)

    layer_dims = [model.layers[0].in_features]
    for layer in model.layers:
        layer_dims.append(layer.out_features)

    n_layers = len(layer_dims)
    max_neurons = max(layer_dims)

    node_positions = {}
    for l, n_neurons in enumerate(layer_dims):
        x = l / (n_layers - 1)
        for i in range(n_neurons):
            node_positions[(l, i)] = (x, (i + 0.5) / max_neurons)

    for l, layer in enumerate(model.layers):
        with torch.no_grad():
            importance = edge_importance(layer)
            importance = importance / (importance.max() + 1e-8)

        for i in range(layer.in_features):
            for j in range(layer.out_features):
                x1, y1 = node_positions[(l, i)]
                x2, y2 = node_positions[(l + 1, j)]
                imp = importance[j, i].item()
                ax.plot([x1, x2], [y1, y2], color=plt.cm.viridis(imp),
                        alpha=0.3 + 0.7 * imp, linewidth=2)

    for (l, i), (x, y) in node_positions.items():
        circle = plt.Circle((x, y), 0.02, color='white', ec='black', linewidth=2, zorder=10)
        ax.add_patch(circle)
        ax.text(x, y, f'{i}', ha='center', va='center', fontsize=8, zorder=11)

    for l, n_neurons in enumerate(layer_dims):
        ax.text(l / (n_layers - 1), -0.05, f'Layer {l}\n({n_neurons})', ha='center', va='top', fontsize=10)

    ax.set_xlim(-0.1, 1.1)
    ax.set_ylim(-0.15, 1.05)
    ax.set_aspect('equal')
    ax.axis('off')
    ax.set_title('KAN Network Structure (edge color = importance)')

    return fig, ax
