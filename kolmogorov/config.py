"""
Configuration for KAN layers and networks.
"""

from dataclasses import dataclass, field, fields, asdict
from typing import Callable, Dict, List, Optional, Tuple

import torch.nn as nn


_LAYER_KEYS = (
    'grid_size', 'spline_order', 'scale_noise', 'scale_base', 'scale_spline',
    'enable_standalone_scale_spline', 'base_activation', 'grid_eps', 'grid_range',
)


@dataclass(frozen=True)
class KANConfig:
    """Hyperparameters of a KAN layer (and, optionally, of a whole network).

    Args:
        layers_hidden: Layer widths [in_dim, h1, ..., out_dim]; only used when
            building a full network
        grid_size: Number of grid intervals (G in the paper)
        spline_order: B-spline degree (k in the paper)
        scale_noise: Magnitude of the noise the initial splines are fitted to
        scale_base: Scale of the base weight initialisation
        scale_spline: Scale of the spline (or spline scaler) initialisation
        enable_standalone_scale_spline: Learn a separate scale per edge
        base_activation: Pointwise function applied to the base branch
        grid_eps: Blend between adaptive (0) and uniform (1) grid on update
        grid_range: Initial (low, high) bounds of the active grid
    """
    layers_hidden: Optional[List[int]] = None
    grid_size: int = 5
    spline_order: int = 3
    scale_noise: float = 0.1
    scale_base: float = 1.0
    scale_spline: float = 1.0
    enable_standalone_scale_spline: bool = True
    base_activation: Callable = field(default_factory=nn.Sigmoid)
    grid_eps: float = 0.02
    grid_range: Tuple[float, float] = (-1.0, 1.0)

    def __post_init__(self):
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be >= 1, got {self.grid_size}")
        if self.spline_order < 0:
            raise ValueError(f"spline_order must be >= 0, got {self.spline_order}")
        if not 0.0 <= self.grid_eps <= 1.0:
            raise ValueError(f"grid_eps must lie in [0, 1], got {self.grid_eps}")
        if len(self.grid_range) != 2 or not self.grid_range[0] < self.grid_range[1]:
            raise ValueError(f"grid_range must be (low, high) with low < high, got {self.grid_range}")
        for name in ('scale_noise', 'scale_base', 'scale_spline'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if not callable(self.base_activation):
            raise ValueError("base_activation must be callable")
        if self.layers_hidden is not None:
            if len(self.layers_hidden) < 2:
                raise ValueError("layers_hidden needs at least an input and an output width")
            if any(int(w) < 1 for w in self.layers_hidden):
                raise ValueError(f"layer widths must be positive, got {self.layers_hidden}")

    @classmethod
    def from_dict(cls, config: Dict) -> 'KANConfig':
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            raise ValueError(f"Unknown KAN config keys: {sorted(unknown)}")
        config = dict(config)
        if 'grid_range' in config:
            config['grid_range'] = tuple(config['grid_range'])
        if 'layers_hidden' in config:
            config['layers_hidden'] = list(config['layers_hidden'])
        return cls(**config)

    def layer_kwargs(self) -> Dict:
        """Keyword arguments accepted by KANLinear."""
        return {key: getattr(self, key) for key in _LAYER_KEYS}

    def to_dict(self) -> Dict:
        config = asdict(self)
        config['base_activation'] = self.base_activation
        return config
