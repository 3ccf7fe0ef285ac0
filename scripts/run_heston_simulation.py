# scripts/run_heston_simulation.py
import logging

from stochvol.runner.run import run_from_config

logging.basicConfig(level=logging.INFO)

result = run_from_config("examples/heston_example.yaml", output_path="out/heston_paths.csv")
for key, value in result.summary().items():
    print(f"{key}: {value:.6f}")
