# tests/sde/test_heston.py
import gc
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import numpy as np
import pytest

from stochvol.core.errors import UninitializedValueError
from stochvol.core.handle import Handle
from stochvol.core.observer import Observer
from stochvol.market.daycount import Actual360
from stochvol.market.quote import SimpleQuote
from stochvol.market.term_structure import FlatForward
from stochvol.sde.heston import HestonProcess

REF = date(2025, 1, 2)


class Counter(Observer):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def update(self):
        self.calls += 1


def _process(rate=0.03, div=0.0, spot=100.0, rho=-0.5, day_counter=None):
    return HestonProcess(
        FlatForward(REF, rate, day_counter),
        FlatForward(REF, div, day_counter),
        SimpleQuote(spot),
        v0=0.04,
        kappa=1.0,
        theta=0.04,
        sigma=0.2,
        rho=rho,
    )


def test_size_and_initial_values():
    p = _process()
    assert p.size() == 2
    assert p.factors() == 2
    np.testing.assert_allclose(p.initial_values(), [100.0, 0.04])


def test_reference_scenario_drift_and_diffusion():
    p = _process()
    x = [100.0, 0.04]

    mu = p.drift(0.0, x)
    assert mu.shape == (2,)
    assert mu[0] == pytest.approx(0.01)
    assert mu[1] == pytest.approx(0.0, abs=1e-15)

    d = p.diffusion(0.0, x)
    assert d.shape == (2, 2)
    np.testing.assert_allclose(
        d, [[0.2, 0.0], [-0.02, math.sqrt(0.75) * 0.04]], rtol=1e-12
    )


def test_drift_includes_dividend_yield():
    p = _process(rate=0.05, div=0.02)
    mu = p.drift(0.5, [100.0, 0.09])
    assert mu[0] == pytest.approx(0.05 - 0.02 - 0.045)
    assert mu[1] == pytest.approx(1.0 * (0.04 - 0.09))


@pytest.mark.parametrize("negative", [-5.0, -1e-12, -0.04])
@pytest.mark.parametrize("price", [1.0, 100.0])
def test_negative_variance_is_floored_at_zero(negative, price):
    p = _process()
    t = 0.25
    np.testing.assert_array_equal(p.drift(t, [price, negative]), p.drift(t, [price, 0.0]))
    np.testing.assert_array_equal(
        p.diffusion(t, [price, negative]), p.diffusion(t, [price, 0.0])
    )
    assert p.drift(t, [price, negative])[1] == pytest.approx(0.04)
    np.testing.assert_array_equal(p.diffusion(t, [price, negative]), np.zeros((2, 2)))


@pytest.mark.parametrize("rho", [-1.0, -0.7, 0.0, 0.3, 1.0])
def test_diffusion_reproduces_covariance(rho):
    p = _process(rho=rho)
    v = 0.09
    d = p.diffusion(0.0, [100.0, v])
    cov = d @ d.T

    assert cov[0, 0] == pytest.approx(v)
    assert cov[1, 1] == pytest.approx(0.2**2 * v)
    corr = cov[0, 1] / math.sqrt(cov[0, 0] * cov[1, 1])
    assert corr == pytest.approx(rho)
    assert np.all(np.isfinite(d))


def test_apply_is_multiplicative_in_price_additive_in_variance():
    p = _process()
    out = p.apply([100.0, 0.01], [-3.0, -0.05])
    assert out[0] == pytest.approx(100.0 * math.exp(-3.0))
    assert out[0] > 0.0
    # variance is not clamped on update
    assert out[1] == pytest.approx(-0.04)

    out = p.apply([100.0, 0.01], [50.0, 0.02])
    assert out[0] > 0.0
    assert out[1] == pytest.approx(0.03)


def test_time_mapping():
    p = _process()
    assert p.time(REF) == 0.0
    assert p.time(date(2026, 1, 2)) == pytest.approx(1.0)

    p360 = _process(day_counter=Actual360())
    assert p360.time(date(2025, 7, 1)) == pytest.approx(180 / 360)


def test_time_follows_rebound_risk_free_curve():
    from stochvol.core.handle import RelinkableHandle

    curve = RelinkableHandle(FlatForward(REF, 0.03))
    p = HestonProcess(curve, FlatForward(REF, 0.0), 100.0, 0.04, 1.0, 0.04, 0.2, -0.5)
    curve.link_to(FlatForward(date(2026, 1, 2), 0.03))
    assert p.time(date(2026, 1, 2)) == 0.0


def test_accessors_return_live_handles():
    p = _process()
    assert isinstance(p.risk_free_rate, Handle)
    assert isinstance(p.dividend_yield, Handle)
    assert p.s0.current_link().value() == 100.0
    assert p.v0.current_link().value() == 0.04
    assert p.kappa.current_link().value() == 1.0
    assert p.theta.current_link().value() == 0.04
    assert p.sigma.current_link().value() == 0.2
    assert p.rho.current_link().value() == -0.5


def test_rebinding_sigma_changes_diffusion_without_rebuild():
    p = _process()
    x = [100.0, 0.04]
    before = p.diffusion(0.0, x)

    new_sigma = SimpleQuote(0.5)
    p.sigma.link_to(new_sigma)
    after = p.diffusion(0.0, x)
    assert after[1, 0] == pytest.approx(-0.5 * 0.5 * 0.2)
    assert not np.allclose(before, after)

    new_sigma.set_value(0.1)
    assert p.diffusion(0.0, x)[1, 0] == pytest.approx(-0.5 * 0.1 * 0.2)


def test_parameters_are_read_fresh():
    spot = SimpleQuote(100.0)
    rate = SimpleQuote(0.03)
    p = HestonProcess(
        FlatForward(REF, rate), FlatForward(REF, 0.0), spot, 0.04, 1.0, 0.04, 0.2, -0.5
    )
    spot.set_value(120.0)
    rate.set_value(0.05)
    p.kappa.current_link().set_value(2.0)
    p.theta.link_to(SimpleQuote(0.09))

    assert p.initial_values()[0] == 120.0
    mu = p.drift(0.0, [120.0, 0.04])
    assert mu[0] == pytest.approx(0.05 - 0.02)
    assert mu[1] == pytest.approx(2.0 * (0.09 - 0.04))


def test_changes_reach_observers_of_the_process():
    rate = SimpleQuote(0.03)
    spot = SimpleQuote(100.0)
    p = HestonProcess(
        FlatForward(REF, rate), FlatForward(REF, 0.0), spot, 0.04, 1.0, 0.04, 0.2, -0.5
    )
    listener = Counter()
    listener.register_with(p)

    rate.set_value(0.04)
    assert listener.calls == 1
    spot.set_value(101.0)
    assert listener.calls == 2
    p.rho.current_link().set_value(0.1)
    assert listener.calls == 3
    p.v0.link_to(SimpleQuote(0.05))
    assert listener.calls == 4


def test_close_removes_all_subscriptions():
    spot = SimpleQuote(100.0)
    p = HestonProcess(FlatForward(REF, 0.03), FlatForward(REF, 0.0), spot, 0.04, 1.0, 0.04, 0.2, -0.5)
    listener = Counter()
    listener.register_with(p)

    p.close()
    spot.set_value(99.0)
    p.sigma.current_link().set_value(0.3)
    assert listener.calls == 0
    assert p.sigma.observer_count() == 0
    assert p.s0.observer_count() == 0


def test_dropped_process_leaves_no_subscriber():
    spot_handle = Handle(SimpleQuote(100.0))
    p = HestonProcess(FlatForward(REF, 0.03), FlatForward(REF, 0.0), spot_handle, 0.04, 1.0, 0.04, 0.2, -0.5)
    assert spot_handle.observer_count() == 1

    del p
    gc.collect()
    assert spot_handle.observer_count() == 0


def test_unset_spot_fails_fast():
    p = HestonProcess(
        FlatForward(REF, 0.03), FlatForward(REF, 0.0), SimpleQuote(), 0.04, 1.0, 0.04, 0.2, -0.5
    )
    with pytest.raises(UninitializedValueError):
        p.initial_values()


def test_construction_does_not_validate_parameters():
    p = HestonProcess(
        FlatForward(REF, 0.03), FlatForward(REF, 0.0), 100.0, -0.04, -1.0, -0.04, -0.2, 0.0
    )
    np.testing.assert_allclose(p.initial_values(), [100.0, -0.04])


def test_concurrent_evaluation_matches_serial():
    p = _process()
    states = [[100.0, v] for v in np.linspace(-0.05, 0.2, 64)]
    serial = [p.diffusion(0.1, x) for x in states]
    with ThreadPoolExecutor(max_workers=4) as pool:
        parallel = list(pool.map(lambda x: p.diffusion(0.1, x), states))
    for a, b in zip(serial, parallel):
        np.testing.assert_array_equal(a, b)
