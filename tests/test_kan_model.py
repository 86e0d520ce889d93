"""
Tests for the KAN network driver, configuration and functional helpers.
"""

import os
import sys

import pytest
import torch
import torch.nn as nn

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from kolmogorov import KAN, KANConfig, KANLinear
from kolmogorov.modules.kan_functions import (
    create_kan, create_kan_from_config, predict, predict_batch,
    update_grid, get_total_reg, count_parameters, summary, clone_kan
)


def relative_error(a, b):
    return ((a - b).norm() / b.norm()).item()


class TestKAN:

    def test_layers_chain(self):
        model = KAN([2, 5, 3, 1], grid_size=4, spline_order=2)
        assert len(model.layers) == 3
        for prev, nxt in zip(model.layers[:-1], model.layers[1:]):
            assert prev.out_features == nxt.in_features
        assert all(layer.grid_size == 4 and layer.spline_order == 2 for layer in model.layers)

    def test_forward_shape(self):
        model = KAN([2, 5, 3, 1], generator=torch.Generator().manual_seed(0))
        y = model(torch.rand(32, 2) * 2 - 1)
        assert y.shape == (32, 1)

    def test_forward_matches_layers(self):
        model = KAN([3, 4, 2])
        x = torch.rand(10, 3)
        expected = model.layers[1](model.layers[0](x))
        assert torch.equal(model(x), expected)

    def test_update_grid_preserves_function(self):
        g = torch.Generator().manual_seed(0)
        model = KAN([2, 4, 1], generator=g).double()
        x = torch.rand(500, 2, generator=g, dtype=torch.float64) * 2 - 1

        before = model(x)
        model.update_grid(x)
        after = model(x)
        assert relative_error(after, before) < 1e-3

    def test_later_layers_adapt_to_hidden_activations(self):
        g = torch.Generator().manual_seed(1)
        model = KAN([2, 3, 1], generator=g)
        x = torch.rand(200, 2, generator=g) * 2 - 1
        model.update_grid(x, margin=0.0)

        hidden = model.layers[0](x)
        k = model.layers[1].spline_order
        grid = model.layers[1].grid
        # Active domain of layer 1 spans the hidden activations it receives
        assert torch.allclose(grid[:, k], hidden.min(dim=0).values, atol=1e-4)
        assert torch.allclose(grid[:, -k - 1], hidden.max(dim=0).values, atol=1e-4)

    def test_forward_with_update_grid(self):
        g = torch.Generator().manual_seed(2)
        model = KAN([2, 4, 1], generator=g)
        twin = clone_kan(model)
        x = torch.rand(100, 2, generator=g) * 2 - 1

        y = model(x, update_grid=True)
        twin.update_grid(x)
        assert torch.allclose(y, twin(x))
        for layer, twin_layer in zip(model.layers, twin.layers):
            assert torch.allclose(layer.grid, twin_layer.grid)

    def test_regularization_is_sum_of_layers(self):
        model = KAN([2, 3, 2])
        total = model.regularization_loss(regularize_activation=0.5, regularize_entropy=2.0)
        expected = sum(
            layer.regularization_loss(regularize_activation=0.5, regularize_entropy=2.0)
            for layer in model.layers
        )
        assert torch.allclose(total, expected)

    def test_parameter_count(self):
        model = KAN([2, 5, 1], grid_size=5, spline_order=3)
        # (2*5 + 5*1) edges * (5 + 3) coefficients
        assert model.get_parameter_count() == 15 * 8

    def test_needs_two_widths(self):
        with pytest.raises(ValueError):
            KAN([3])


class TestKANConfig:

    def test_defaults(self):
        config = KANConfig()
        assert config.grid_size == 5
        assert config.spline_order == 3
        assert config.grid_eps == 0.02
        assert config.grid_range == (-1.0, 1.0)
        assert isinstance(config.base_activation, nn.Sigmoid)

    def test_from_dict(self):
        config = KANConfig.from_dict({'layers_hidden': (2, 3, 1), 'grid_size': 8, 'grid_range': [-2, 2]})
        assert config.layers_hidden == [2, 3, 1]
        assert config.grid_range == (-2, 2)
        assert config.layer_kwargs()['grid_size'] == 8
        assert 'layers_hidden' not in config.layer_kwargs()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="grid_sise"):
            KANConfig.from_dict({'grid_sise': 5})

    @pytest.mark.parametrize("kwargs", [
        {"layers_hidden": [2]},
        {"layers_hidden": [2, 0, 1]},
        {"grid_eps": -0.1},
        {"scale_base": -1.0},
        {"base_activation": 3},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            KANConfig(**kwargs)

    def test_to_dict_round_trip(self):
        config = KANConfig(layers_hidden=[2, 1], grid_size=3)
        assert KANConfig.from_dict(config.to_dict()).grid_size == 3


class TestFunctions:

    def test_create_kan(self):
        model = create_kan([3, 4, 2], grid_size=7, grid_eps=0.5)
        assert isinstance(model, KAN)
        assert model.layers[0].grid_size == 7
        assert model.layers[0].grid_eps == 0.5

    def test_create_kan_from_config(self):
        model = create_kan_from_config({'layers_hidden': [2, 6, 1], 'spline_order': 2,
                                        'enable_standalone_scale_spline': False})
        assert [l.out_features for l in model.layers] == [6, 1]
        assert model.layers[0].spline_order == 2
        assert 'spline_scaler' not in dict(model.layers[0].named_parameters())

    def test_create_kan_from_config_requires_layers(self):
        with pytest.raises(ValueError):
            create_kan_from_config(KANConfig())

    def test_reproducible_with_generator(self):
        a = create_kan([2, 3, 1], generator=torch.Generator().manual_seed(5))
        b = create_kan([2, 3, 1], generator=torch.Generator().manual_seed(5))
        x = torch.rand(8, 2)
        assert torch.equal(predict(a, x), predict(b, x))

    def test_predict_batch(self):
        model = create_kan([2, 3, 1])
        x = torch.rand(50, 2)
        assert torch.allclose(predict_batch(model, x, batch_size=16), predict(model, x))

    def test_update_grid_on_layer(self):
        layer = KANLinear(2, 2)
        old = layer.grid.clone()
        assert update_grid(layer, torch.rand(64, 2) * 4) is layer
        assert not torch.equal(layer.grid, old)

    def test_update_grid_verbose(self, capsys):
        model = create_kan([2, 3, 1])
        update_grid(model, torch.rand(64, 2), verbose=True)
        out = capsys.readouterr().out
        assert "Layer 0" in out and "Layer 1" in out

    def test_get_total_reg(self):
        model = create_kan([2, 3, 1])
        assert torch.allclose(
            get_total_reg(model, lambda_l1=1.0, lambda_entropy=0.5),
            model.regularization_loss(regularize_activation=1.0, regularize_entropy=0.5),
        )

    def test_count_parameters(self):
        model = create_kan([2, 5, 1], grid_size=5, spline_order=3)
        # Per edge: 1 base weight + 8 coefficients + 1 scaler
        assert count_parameters(model) == 15 * 10
        no_scaler = create_kan([2, 5, 1], enable_standalone_scale_spline=False)
        assert count_parameters(no_scaler) == 15 * 9

    def test_summary(self):
        text = summary(create_kan([2, 5, 1]))
        assert "Architecture: [2, 5, 1]" in text
        assert "Knots per feature: 12" in text

    def test_clone_is_independent(self):
        model = create_kan([2, 3, 1])
        twin = clone_kan(model)
        twin.update_grid(torch.rand(50, 2) * 3)
        assert not torch.equal(model.layers[0].grid, twin.layers[0].grid)
