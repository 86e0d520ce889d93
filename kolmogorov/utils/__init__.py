from .spline_utils import B_batch, coef2curve, curve2coef
from .grid_utils import make_grid, extend_grid, adaptive_grid
from .regularization import edge_importance, compute_entropy, regularization_loss, total_regularization

__all__ = [
    'B_batch', 'coef2curve', 'curve2coef',
    'make_grid', 'extend_grid', 'adaptive_grid',
    'edge_importance', 'compute_entropy', 'regularization_loss', 'total_regularization',
]
