from .kan_layer import KANLinear
from .kan_model import KAN
from .kan_functions import (
    create_kan, create_kan_from_config, predict, predict_batch,
    update_grid, get_total_reg, count_parameters, summary, clone_kan
)

__all__ = [
    'KAN', 'KANLinear',
    'create_kan', 'create_kan_from_config', 'predict', 'predict_batch',
    'update_grid', 'get_total_reg', 'count_parameters', 'summary', 'clone_kan'
]
