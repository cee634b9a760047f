"""Validate the IMU preintegration covariance by Monte Carlo simulation.

Runs a convergence study for a ground-truth scenario:
    - Integrates noiseless IMU measurements to get the analytic pose covariance
    - Estimates the same covariance from N noisy integrations, for several N
    - Reports the Frobenius error ||Q_N - P||_F and the average NEES
    - Optionally saves convergence and covariance comparison figures

Saves to: results/imu_preintegration/<preset>/

References: Forster et al., IEEE T-RO 2017 (on-manifold preintegration)
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).parent.parent))

from imusim.eval import (
    compute_nees,
    monte_carlo_convergence,
    nees_consistency_bounds,
    plot_covariance_comparison,
    plot_covariance_convergence,
    save_figure,
)
from imusim.geometry import Pose3
from imusim.navigation import AcceleratingScenario, ConstantTwistScenario, Scenario
from imusim.sim import POSE_DIM, ScenarioRunner


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS = {
    'stationary': {
        'description': 'Level device at rest; only gravity is sensed',
        'scenario': 'twist',
        'w': [0.0, 0.0, 0.0],
        'v': [0.0, 0.0, 0.0],
    },
    'spin': {
        'description': 'Spinning in place at 6 deg/s about Z',
        'scenario': 'twist',
        'w': [0.0, 0.0, float(np.deg2rad(6.0))],
        'v': [0.0, 0.0, 0.0],
    },
    'forward': {
        'description': 'Straight line at 2 m/s along body X',
        'scenario': 'twist',
        'w': [0.0, 0.0, 0.0],
        'v': [2.0, 0.0, 0.0],
    },
    'loop': {
        'description': 'Horizontal circle of radius 10 m at 2 m/s',
        'scenario': 'twist',
        'w': [0.0, 0.0, 0.2],
        'v': [2.0, 0.0, 0.0],
    },
    'accelerating': {
        'description': 'Constant 1 m/s^2 forward acceleration while yawing',
        'scenario': 'accelerating',
        'p0': [0.0, 0.0, 0.0],
        'v0': [1.0, 0.0, 0.0],
        'a_n': [1.0, 0.0, 0.0],
        'omega_b': [0.0, 0.0, 0.1],
    },
}

DEFAULT_TRIALS = [10, 100, 1000]


# ============================================================================
# STUDY
# ============================================================================

def build_scenario(config: Dict[str, Any]) -> Scenario:
    """Create the scenario described by a preset dictionary."""
    kind = config['scenario']
    if kind == 'twist':
        return ConstantTwistScenario(
            w=np.array(config['w']),
            v=np.array(config['v']),
            initial_pose=Pose3.identity(),
        )
    if kind == 'accelerating':
        return AcceleratingScenario(
            nRb=np.eye(3),
            p0=np.array(config['p0']),
            v0=np.array(config['v0']),
            a_n=np.array(config['a_n']),
            omega_b=np.array(config['omega_b']),
        )
    raise ValueError(f"Unknown scenario type '{kind}'")


def run_validation(
    preset: str,
    output_dir: str = "results/imu_preintegration",
    seed: int = 42,
    duration: float = 1.0,
    sample_time: float = 0.01,
    gyro_sigma: float = 0.17,
    acc_sigma: float = 0.01,
    trials: Optional[List[int]] = None,
    plot: bool = False,
) -> Dict[str, Any]:
    """Run the Monte Carlo convergence study and save the results.

    Args:
        preset: Name of the scenario preset.
        output_dir: Root output directory; results go to output_dir/preset.
        seed: Base random seed.
        duration: Integration horizon T (seconds).
        sample_time: IMU sample time (seconds).
        gyro_sigma: Gyroscope noise density.
        acc_sigma: Accelerometer noise density.
        trials: Monte Carlo trial counts to evaluate.
        plot: If True, save convergence and covariance figures.

    Returns:
        Summary dictionary (also written to results.json).
    """
    if trials is None:
        trials = DEFAULT_TRIALS

    config = PRESETS[preset]

    print(f"\n{'='*70}")
    print(f"IMU Preintegration Covariance Validation: {preset}")
    print(f"{'='*70}")
    print(f"   {config['description']}")

    output_path = Path(output_dir) / preset
    output_path.mkdir(parents=True, exist_ok=True)

    scenario = build_scenario(config)
    runner = ScenarioRunner(scenario, sample_time, gyro_sigma, acc_sigma)

    # 1. Analytic covariance and nominal prediction
    print(f"\n1. Integrating noiseless measurements...")
    print(f"   Duration: {duration} s")
    print(f"   Sample time: {sample_time} s ({runner.num_steps(duration)} steps)")
    pim = runner.integrate(duration)
    prediction = runner.predict(pim)
    truth = scenario.pose(duration)
    drift = truth.local_coordinates(prediction.pose)
    print(f"   Predicted pose: {prediction.pose}")
    print(f"   Ground truth:   {truth}")
    print(f"   Discretization error: {np.linalg.norm(drift):.3e}")

    # 2. Convergence study
    print(f"\n2. Monte Carlo estimates...")
    study = monte_carlo_convergence(
        runner,
        duration,
        tqdm(trials, desc="Monte Carlo runs", unit="run"),
        seed=seed,
    )
    for n, err, rel in zip(
        study['sample_counts'], study['frobenius_errors'], study['relative_errors']
    ):
        print(f"   N={n:6d}  ||Q_N - P||_F = {err:.4e}  (relative {rel:.3f})")

    # 3. Consistency of the largest run
    print(f"\n3. NEES consistency check...")
    n_last = int(study['sample_counts'][-1])
    deviations = runner.sample_pose_deviations(duration, n_last, seed=seed)
    nees = compute_nees(deviations, study['analytic'])
    avg_nees = float(np.mean(nees))
    lower, upper = nees_consistency_bounds(POSE_DIM, n_last, confidence=0.95)
    consistent = bool(lower <= avg_nees <= upper)
    print(f"   Average NEES: {avg_nees:.3f} (95% bounds [{lower:.3f}, {upper:.3f}])")
    print(f"   Consistent: {consistent}")

    summary = {
        "preset": preset,
        "description": config['description'],
        "seed": seed,
        "duration_sec": duration,
        "imu": {
            "sample_time_sec": sample_time,
            "gyro_sigma": gyro_sigma,
            "acc_sigma": acc_sigma,
            "gravity_n": runner.gravity_n().tolist(),
        },
        "scenario": {k: v for k, v in config.items() if k != 'description'},
        "analytic_pose_covariance": study['analytic'].tolist(),
        "convergence": {
            "sample_counts": study['sample_counts'].tolist(),
            "frobenius_errors": study['frobenius_errors'].tolist(),
            "relative_errors": study['relative_errors'].tolist(),
        },
        "nees": {
            "n_samples": n_last,
            "average": avg_nees,
            "bounds_95": [lower, upper],
            "consistent": consistent,
        },
    }

    with open(output_path / "results.json", "w") as f:
        json.dump(summary, f, indent=2)
    print(f"\n   Saved: {output_path / 'results.json'}")

    if plot:
        fig = plot_covariance_convergence(
            study['sample_counts'], study['frobenius_errors'],
            title=f"Covariance Convergence ({preset})",
        )
        save_figure(fig, output_path, "convergence", close=True)
        fig = plot_covariance_comparison(
            study['estimates'][-1], study['analytic'],
            title=f"Pose Covariance, N={n_last} ({preset})",
        )
        save_figure(fig, output_path, "covariance_comparison", close=True)
        print(f"   Saved: convergence.png, covariance_comparison.png")

    print(f"\n{'='*70}")
    print(f"Validation complete!")
    print(f"{'='*70}")

    return summary


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Validate IMU preintegration covariance by Monte Carlo simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default study (spin scenario)
  python %(prog)s

  # Loop scenario with figures
  python %(prog)s --preset loop --plot

  # Longer horizon, more trials
  python %(prog)s --duration 2.0 --trials 100 1000 10000

Available presets: """ + ", ".join(PRESETS.keys())
    )

    parser.add_argument(
        '--preset',
        type=str,
        choices=PRESETS.keys(),
        default='spin',
        help='Scenario preset (default: spin)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default='results/imu_preintegration',
        help='Output directory (default: results/imu_preintegration)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for reproducibility (default: 42)'
    )
    parser.add_argument(
        '--plot',
        action='store_true',
        help='Save convergence and covariance figures'
    )

    sim_group = parser.add_argument_group('Simulation Parameters')
    sim_group.add_argument(
        '--duration',
        type=float,
        default=1.0,
        help='Integration horizon in seconds (default: 1.0)'
    )
    sim_group.add_argument(
        '--sample-time',
        type=float,
        default=0.01,
        help='IMU sample time in seconds (default: 0.01, i.e., 100 Hz)'
    )
    sim_group.add_argument(
        '--trials',
        type=int,
        nargs='+',
        default=DEFAULT_TRIALS,
        help=f'Monte Carlo trial counts (default: {DEFAULT_TRIALS})'
    )

    imu_group = parser.add_argument_group('IMU Parameters')
    imu_group.add_argument(
        '--gyro-sigma',
        type=float,
        default=0.17,
        help='Gyroscope noise density (default: 0.17)'
    )
    imu_group.add_argument(
        '--acc-sigma',
        type=float,
        default=0.01,
        help='Accelerometer noise density (default: 0.01)'
    )

    args = parser.parse_args()

    if args.duration <= 0:
        parser.error("Duration must be positive")
    if args.sample_time <= 0 or args.sample_time > args.duration:
        parser.error("Sample time must be positive and less than duration")
    if args.gyro_sigma < 0 or args.acc_sigma < 0:
        parser.error("Noise parameters must be non-negative")
    if min(args.trials) < 1:
        parser.error("Trial counts must be positive")

    try:
        run_validation(
            preset=args.preset,
            output_dir=args.output,
            seed=args.seed,
            duration=args.duration,
            sample_time=args.sample_time,
            gyro_sigma=args.gyro_sigma,
            acc_sigma=args.acc_sigma,
            trials=args.trials,
            plot=args.plot,
        )
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    main()
