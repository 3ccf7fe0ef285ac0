# examples/live_parameters_demo.py
from datetime import date

from stochvol.core.observer import Observer
from stochvol.market.quote import SimpleQuote
from stochvol.market.term_structure import FlatForward
from stochvol.sde.heston import HestonProcess


class Printer(Observer):
    def update(self):
        print("  -> process inputs changed")


today = date(2025, 1, 2)
rate = SimpleQuote(0.03)
process = HestonProcess(
    FlatForward(today, rate),
    FlatForward(today, 0.0),
    SimpleQuote(100.0),
    v0=0.04,
    kappa=1.0,
    theta=0.04,
    sigma=0.2,
    rho=-0.5,
)

listener = Printer()
listener.register_with(process)

x = [100.0, 0.04]
print("drift:", process.drift(0.0, x))
print("diffusion:\n", process.diffusion(0.0, x))

# -------------------------------
# Bump the rate quote in place
# -------------------------------
print("rate 3% -> 5%")
rate.set_value(0.05)
print("drift:", process.drift(0.0, x))

# -------------------------------
# Rebind vol-of-vol to a new quote
# -------------------------------
print("sigma 0.2 -> 0.5")
vol_of_vol = SimpleQuote(0.5)
process.sigma.link_to(vol_of_vol)
print("diffusion:\n", process.diffusion(0.0, x))

vol_of_vol.set_value(0.3)
print("diffusion:\n", process.diffusion(0.0, x))

process.close()
