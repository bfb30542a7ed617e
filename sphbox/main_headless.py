#!/usr/bin/env python3
"""
Headless runner for the box fluid simulation.
Runs the simulation for a number of steps, reports performance and can save a
PNG snapshot of the final state.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

import numpy as np

from . import api
from .core.config import SimulationConfig
from .errors import ConfigurationError
from .simulation import FluidSimulation

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Attach a plain message handler to the package logger."""
    package_logger = logging.getLogger("sphbox")
    package_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        package_logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SPH Fluid Box Simulation (Headless)")
    parser.add_argument("--steps", type=int, default=120, help="Number of steps to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Fixed time step")
    parser.add_argument("--backend", choices=["cpu", "numba", "auto"], default="auto")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for jitter")
    parser.add_argument("--config", default=None, help="JSON file with domain/grid settings")

    # Overrides
    parser.add_argument("--particles-per-axis", type=int, default=None)
    parser.add_argument("--spacing", type=float, default=None)
    parser.add_argument("--jitter", type=float, default=None)
    parser.add_argument("--gravity", type=float, default=None)
    parser.add_argument("--restitution", type=float, default=None)
    parser.add_argument("--smoothing-radius", type=float, default=None)
    parser.add_argument("--target-density", type=float, default=None)
    parser.add_argument("--pressure-factor", type=float, default=None)

    parser.add_argument("--report-every", type=int, default=20,
                        help="Print progress every N steps")
    parser.add_argument("--snapshot", default=None, help="Save final state to this PNG")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def load_config(args) -> SimulationConfig:
    """Merge the optional JSON file with command line overrides."""
    config = SimulationConfig.from_json(args.config) if args.config else SimulationConfig()
    data = config.to_dict()

    domain_overrides = {
        "gravity": args.gravity,
        "restitution": args.restitution,
        "smoothing_radius": args.smoothing_radius,
        "target_density": args.target_density,
        "pressure_factor": args.pressure_factor,
    }
    grid_overrides = {
        "particle_count_per_axis": args.particles_per_axis,
        "grid_spacing": args.spacing,
        "jitter_factor": args.jitter,
    }
    data["domain"].update({k: v for k, v in domain_overrides.items() if v is not None})
    data["grid"].update({k: v for k, v in grid_overrides.items() if v is not None})
    return SimulationConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.steps < 0 or args.dt < 0.0:
        print("Error: --steps and --dt must be >= 0", file=sys.stderr)
        return 2

    # Set backend
    n_particles = config.grid.particle_count
    if args.backend == "auto":
        backend = api.auto_select_backend(n_particles)
        print(f"Auto-selected {backend.upper()} backend for {n_particles} particles")
    else:
        api.set_backend(args.backend)
        backend = args.backend

    sim = FluidSimulation(config.domain, backend=backend, seed=args.seed)
    sim.initialize(config.grid)

    # Print info
    api.print_backend_info()
    min_corner, max_corner = sim.bounds
    print(f"\nSimulation info:")
    print(f"  Particles: {sim.n_particles}")
    print(f"  Box: {min_corner.tolist()} .. {max_corner.tolist()}")
    print(f"  Steps: {args.steps} (dt={args.dt:.4f})")

    # Run simulation
    print("\nRunning simulation...")
    step_times = []
    report_every = max(1, args.report_every)

    for step in range(args.steps):
        t0 = time.perf_counter()
        sim.step(args.dt)
        step_times.append(time.perf_counter() - t0)

        # Progress
        if (step + 1) % report_every == 0:
            avg_time = np.mean(step_times[-report_every:])
            stats = sim.diagnostics()
            print(f"  Step {step+1}/{args.steps}: {avg_time*1000:.1f} ms/step, "
                  f"KE={stats.kinetic_energy:.1f}, max|v|={stats.max_speed:.1f}, "
                  f"mean rho={stats.mean_density:.4f}")

    # Summary
    print("\nSimulation complete!")
    if step_times:
        avg_time = np.mean(step_times)
        fps = 1.0 / avg_time if avg_time > 0 else float('inf')
        print(f"Average: {avg_time*1000:.1f} ms/step ({fps:.1f} FPS)")
        print(f"Total time: {sum(step_times):.1f} seconds")

    if args.snapshot:
        from .visualization.snapshot import save_snapshot
        save_snapshot(sim.get_particle_states(), sim.bounds, args.snapshot,
                      title=f"t={sim.time:.2f}s, frame {sim.frame}")
        print(f"Saved snapshot to {args.snapshot}")
        logger.info("Snapshot written to %s", args.snapshot)

    return 0


if __name__ == "__main__":
    sys.exit(main())
