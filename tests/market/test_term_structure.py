# tests/market/test_term_structure.py
import math
from datetime import date

import numpy as np
import pytest

from stochvol.core.handle import RelinkableHandle
from stochvol.core.observer import Observer
from stochvol.market.daycount import Actual360
from stochvol.market.quote import SimpleQuote
from stochvol.market.term_structure import (
    Compounding,
    FlatForward,
    NelsonSiegelCurve,
    NSParams,
    fit_ns,
    ns_yield,
)

REF = date(2025, 1, 2)


class Counter(Observer):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def update(self):
        self.calls += 1


def test_flat_forward_rates_and_discount():
    curve = FlatForward(REF, 0.03)
    assert curve.reference_date() == REF
    assert curve.forward_rate(0.0, 0.0) == pytest.approx(0.03)
    assert curve.forward_rate(1.0, 2.0, Compounding.CONTINUOUS) == pytest.approx(0.03)
    assert curve.discount(2.0) == pytest.approx(math.exp(-0.06))
    assert curve.zero_rate(5.0) == pytest.approx(0.03)

    simple = curve.forward_rate(1.0, 2.0, Compounding.SIMPLE)
    assert simple == pytest.approx(math.exp(0.03) - 1.0)


def test_flat_forward_follows_rate_quote():
    rate = SimpleQuote(0.03)
    curve = FlatForward(REF, rate)
    c = Counter()
    c.register_with(curve)

    rate.set_value(0.05)
    assert c.calls == 1
    assert curve.forward_rate(0.5, 0.5) == pytest.approx(0.05)


def test_flat_forward_accepts_relinkable_handle():
    h = RelinkableHandle(SimpleQuote(0.01))
    curve = FlatForward(REF, h)
    h.link_to(SimpleQuote(0.02))
    assert curve.forward_rate(0.0, 1.0) == pytest.approx(0.02)


def test_time_from_reference_uses_day_counter():
    curve = FlatForward(REF, 0.0, Actual360())
    assert curve.day_counter() == Actual360()
    assert curve.time_from_reference(date(2025, 7, 1)) == pytest.approx(180 / 360)


def test_invalid_times_rejected():
    curve = FlatForward(REF, 0.03)
    with pytest.raises(ValueError):
        curve.discount(-1.0)
    with pytest.raises(ValueError):
        curve.forward_rate(2.0, 1.0)


def test_ns_fit_recovery():
    true_p = NSParams(beta0=2.5, beta1=-1.0, beta2=1.2, tau=1.5)
    t = np.array([0.25, 0.5, 1.0, 2.0, 5.0, 10.0])
    y = ns_yield(t, true_p)
    rng = np.random.default_rng(7)
    y_noisy = y + rng.normal(scale=1e-3, size=y.shape)

    fitted, res = fit_ns(t, y_noisy)
    assert pytest.approx(true_p.beta0, rel=1e-2) == fitted.beta0
    assert math.isfinite(fitted.tau) and fitted.tau > 0


def test_nelson_siegel_curve_rates():
    params = NSParams(beta0=4.0, beta1=-1.0, beta2=0.5, tau=2.0)
    curve = NelsonSiegelCurve(REF, params)

    assert curve.zero_rate(5.0) == pytest.approx(ns_yield(5.0, params) / 100.0)
    # short end tends to beta0 + beta1
    assert curve.zero_rate(0.0) == pytest.approx(0.03)

    z1, z2 = curve.zero_rate(1.0), curve.zero_rate(3.0)
    assert curve.forward_rate(1.0, 3.0) == pytest.approx((3.0 * z2 - z1) / 2.0)


def test_nelson_siegel_set_params_notifies():
    curve = NelsonSiegelCurve(REF, NSParams(4.0, -1.0, 0.5, 2.0))
    c = Counter()
    c.register_with(curve)
    curve.set_params(NSParams(5.0, -1.0, 0.5, 2.0))
    assert c.calls == 1
    with pytest.raises(ValueError):
        curve.set_params(NSParams(5.0, -1.0, 0.5, 0.0))
