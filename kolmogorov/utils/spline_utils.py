import torch


def _check_inputs(x, grid):
    if x.dim() != 2:
        raise ValueError(f"x must be (batch, in_features), got shape {tuple(x.shape)}")
    if grid.dim() != 2 or grid.size(0) != x.size(1):
        raise ValueError(
            f"grid must be (in_features={x.size(1)}, num_knots), got shape {tuple(grid.shape)}"
        )


def B_batch(x, grid, k=3):
    """
    Compute B-spline basis functions (Cox-de Boor recursion).

    Args:
        x: (batch, in_features)
        grid: (in_features, grid_size + 2k + 1)
        k: spline degree
    Returns:
        splines: (batch, in_features, grid_size + k)
    """
    _check_inputs(x, grid)
    if grid.size(1) < k + 2:
        raise ValueError(f"grid with {grid.size(1)} knots cannot carry degree {k} splines")

    # x: (batch, in_features) -> (batch, in_features, 1)
    x = x.unsqueeze(-1)
    grid = grid.to(dtype=x.dtype, device=x.device)

    # 0-th degree B-splines
    # (batch, in_features, grid_size + 2k)
    value = ((x >= grid[:, :-1]) & (x < grid[:, 1:])).to(x.dtype)

    for p in range(1, k + 1):
        # (in_features, grid_size + 2k - p)
        left_den = grid[:, p:-1] - grid[:, :-(p + 1)]
        right_den = grid[:, p + 1:] - grid[:, 1:-p]
        # Repeated knots: a zero-width span contributes nothing
        left_ok = left_den != 0
        right_ok = right_den != 0
        left_den = torch.where(left_ok, left_den, torch.ones_like(left_den))
        right_den = torch.where(right_ok, right_den, torch.ones_like(right_den))

        v1 = (x - grid[:, :-(p + 1)]) / left_den * value[:, :, :-1] * left_ok
        v2 = (grid[:, p + 1:] - x) / right_den * value[:, :, 1:] * right_ok
        value = v1 + v2

    return value.contiguous()  # (batch, in_features, grid_size + k)


def coef2curve(x_eval, grid, coef, k):
    """
    Convert spline coefficients to curve values.

    Args:
        x_eval: (batch, in_features)
        grid: (in_features, grid_size + 2k + 1)
        coef: (out_features, in_features, grid_size + k)
        k: spline degree
    Returns:
        y: (batch, in_features, out_features)
    """
    b_splines = B_batch(x_eval, grid, k)
    if coef.dim() != 3 or coef.shape[1:] != b_splines.shape[1:]:
        raise ValueError(
            f"coef must be (out_features, {b_splines.size(1)}, {b_splines.size(2)}), "
            f"got shape {tuple(coef.shape)}"
        )
    return torch.einsum('bik,oik->bio', b_splines, coef.to(b_splines.dtype))


def curve2coef(x_eval, y_eval, grid, k):
    """
    Least-squares spline coefficients reproducing a curve.

    Each input feature is solved independently against all of its output
    columns at once. Rank-deficient systems (few or clustered samples) get
    the minimum-norm solution.

    Args:
        x_eval: (batch, in_features)
        y_eval: (batch, in_features, out_features)
        grid: (in_features, grid_size + 2k + 1)
        k: spline degree
    Returns:
        coef: (out_features, in_features, grid_size + k)
    """
    if y_eval.dim() != 3 or y_eval.shape[:2] != x_eval.shape:
        raise ValueError(
            f"y_eval must be (batch, in_features, out_features) matching x_eval "
            f"{tuple(x_eval.shape)}, got shape {tuple(y_eval.shape)}"
        )
    b_splines = B_batch(x_eval, grid, k)

    # (batch, in_features, grid_size + k) -> (in_features, batch, grid_size + k)
    A = b_splines.transpose(0, 1)
    # (batch, in_features, out_features) -> (in_features, batch, out_features)
    B = y_eval.to(A.dtype).transpose(0, 1)

    # gelsd (SVD) gives the minimum-norm solution; only available on CPU
    driver = 'gelsd' if A.device.type == 'cpu' else None
    # (in_features, grid_size + k, out_features)
    coef = torch.linalg.lstsq(A, B, driver=driver).solution

    # (out_features, in_features, grid_size + k)
    return coef.permute(2, 0, 1).contiguous()
