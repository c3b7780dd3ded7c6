from __future__ import annotations

import math

import numpy as np
import pytest
import torch

from sdca_entropy.prox import lambert_w_exp, prox_entropy, thresholds_entropy_norm
from sdca_entropy.prox.entropy import _solve_lambert_sum
from sdca_entropy.summation import KahanSummation, PlainSummation


def _kahan() -> KahanSummation:
    return KahanSummation(result_type=np.float64)


def _check_kkt(v: torch.Tensor, x: torch.Tensor, hi: float) -> None:
    free = [j for j in range(len(x)) if x[j].item() < hi]
    capped = [j for j in range(len(x)) if x[j].item() >= hi]
    for i in free:
        for j in free:
            lhs = (x[i].item() + math.log(x[i].item())) - (x[j].item() + math.log(x[j].item()))
            assert lhs == pytest.approx(v[i].item() - v[j].item(), abs=1e-12)
    if capped and free:
        assert min(v[j].item() for j in capped) >= max(v[j].item() for j in free)


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
@pytest.mark.parametrize("summation_cls", [KahanSummation, PlainSummation])
def test_prox_feasible_and_optimal(seed: int, summation_cls) -> None:
    gen = torch.Generator().manual_seed(seed)
    v = torch.randn(6, dtype=torch.float64, generator=gen) * 2.0
    x = v.clone()
    aux = torch.empty_like(x)
    hi, rhs = 0.4, 1.0

    prox_entropy(x, aux, hi, rhs, summation_cls(np.float64))

    assert math.fsum(x.tolist()) == pytest.approx(rhs, abs=1e-12)
    assert bool((x > 0).all())
    assert x.max().item() <= hi
    _check_kkt(v, x, hi)
    # aux holds a descending copy of the input
    assert torch.equal(aux, torch.sort(v, descending=True).values)


def test_prox_uncapped_matches_lambert_form() -> None:
    v = torch.tensor([0.5, -1.0, 2.0, 0.0], dtype=torch.float64)
    x = v.clone()
    prox_entropy(x, torch.empty_like(x), 10.0, 3.0, _kahan())
    assert math.fsum(x.tolist()) == pytest.approx(3.0, abs=1e-12)
    _check_kkt(v, x, 10.0)


def test_prox_saturates_when_caps_cannot_reach_rhs() -> None:
    x = torch.tensor([0.3, -1.0, 2.0], dtype=torch.float64)
    prox_entropy(x, torch.empty_like(x), 0.25, 1.0, _kahan())
    assert x.tolist() == [0.25, 0.25, 0.25]


def test_prox_single_coordinate_saturates() -> None:
    # A single coordinate with cap rhs / 2 cannot carry the required mass.
    x = torch.tensor([0.0], dtype=torch.float64)
    prox_entropy(x, torch.empty_like(x), 0.5, 1.0, _kahan())
    assert x.tolist() == [0.5]


def test_prox_only_touches_the_view() -> None:
    buf = torch.tensor([1.0, 0.2, -0.4, 7.0], dtype=torch.float64)
    scratch = torch.full((4,), 9.0, dtype=torch.float64)
    prox_entropy(buf[:3], scratch[:3], 1.0, 1.0, _kahan())
    assert buf[3].item() == 7.0
    assert scratch[3].item() == 9.0
    assert math.fsum(buf[:3].tolist()) == pytest.approx(1.0, abs=1e-12)


def test_prox_empty_is_noop() -> None:
    x = torch.empty(0, dtype=torch.float64)
    prox_entropy(x, torch.empty_like(x), 0.5, 1.0, _kahan())
    assert x.numel() == 0


def test_prox_single_precision() -> None:
    gen = torch.Generator().manual_seed(5)
    x = torch.randn(8, dtype=torch.float32, generator=gen)
    hi = np.float32(0.3)
    prox_entropy(x, torch.empty_like(x), hi, np.float32(1.0), KahanSummation(np.float32))
    assert x.dtype == torch.float32
    assert math.fsum(x.tolist()) == pytest.approx(1.0, abs=1e-5)
    assert x.max().item() <= float(hi)
    assert bool((x > 0).all())


def test_thresholds_without_cap_is_log_sum_exp() -> None:
    a = torch.tensor([0.3, -1.2, 2.0, 0.5], dtype=torch.float64)
    expected = torch.logsumexp(a, dim=0).item()
    result = thresholds_entropy_norm(a, 1.0, 1.0, _kahan())
    assert result.index == 0
    assert float(result.t) == pytest.approx(expected, abs=1e-12)
    assert a.tolist() == [2.0, 0.5, 0.3, -1.2]


def test_thresholds_rhs_shifts_by_log() -> None:
    a = torch.tensor([0.3, -1.2, 2.0, 0.5], dtype=torch.float64)
    expected = torch.logsumexp(a, dim=0).item() - math.log(2.0)
    result = thresholds_entropy_norm(a, 2.0, 2.0, _kahan())
    assert result.index == 0
    assert float(result.t) == pytest.approx(expected, abs=1e-12)


def test_thresholds_with_cap() -> None:
    a = torch.tensor([3.0, 2.5, 0.0, -1.0, 1.0], dtype=torch.float64)
    hi = 0.3
    result = thresholds_entropy_norm(a, hi, 1.0, _kahan())
    t = float(result.t)
    p = result.index
    values = a.tolist()
    assert values == sorted(values, reverse=True)
    assert p >= 1
    x = [hi] * p + [math.exp(aj - t) for aj in values[p:]]
    assert math.fsum(x) == pytest.approx(1.0, abs=1e-12)
    assert all(math.exp(aj - t) >= hi * (1 - 1e-12) for aj in values[:p])
    assert all(xj <= hi * (1 + 1e-12) for xj in x[p:])


def test_thresholds_all_capped() -> None:
    a = torch.tensor([1.0, -2.0, 0.5, 3.0], dtype=torch.float64)
    result = thresholds_entropy_norm(a, 0.25, 1.0, _kahan())
    assert result.index >= 3
    assert float(result.t) == pytest.approx(-2.0 - math.log(0.25), abs=1e-12)


def test_prox_many_capped_coordinates() -> None:
    v = torch.linspace(3.0, -3.0, 120, dtype=torch.float64)
    x = v.clone()
    hi = 1.0 / 80
    prox_entropy(x, torch.empty_like(x), hi, 1.0, _kahan())

    assert int((x >= hi).sum()) >= 10
    assert math.fsum(x.tolist()) == pytest.approx(1.0, abs=1e-12)
    assert x.max().item() <= hi
    _check_kkt(v, x, hi)


def test_warm_started_root_matches_cold_start() -> None:
    summation = _kahan()
    u = [np.float64(value) for value in (2.0, 1.1, 0.4, -0.3, -1.5, -2.0)]
    rhs = np.float64(1.0)
    t_prev = _solve_lambert_sum(u, rhs, summation)
    lead = np.float64(lambert_w_exp(u[0] - t_prev))
    # A cap below the leading term moves the root left of t_prev.
    remaining = rhs - np.float64(0.5) * lead

    cold = _solve_lambert_sum(u[1:], remaining, summation)
    warm = _solve_lambert_sum(u[1:], remaining, summation, t_prev)

    assert float(warm) < float(t_prev)
    assert float(warm) == pytest.approx(float(cold), abs=1e-12)
    w = [lambert_w_exp(uj - warm) for uj in u[1:]]
    assert math.fsum(w) == pytest.approx(float(remaining), abs=1e-12)


def test_prox_saturation_ignores_ordering() -> None:
    for values in ([5.0, -5.0, 0.0, 1.0], [-5.0, 5.0, 1.0, 0.0]):
        x = torch.tensor(values, dtype=torch.float64)
        prox_entropy(x, torch.empty_like(x), 0.2, 1.0, _kahan())
        assert x.tolist() == [0.2] * 4
