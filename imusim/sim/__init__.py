"""
Simulation of IMU measurements from ground-truth scenarios.

This package provides the forward model that converts a continuous-time
scenario into ideal or noisy IMU measurements, integrates them into
preintegrated measurements, and reconciles the propagated covariance with a
Monte Carlo estimate.

Modules:
    scenario_runner: ScenarioRunner

The forward model implements the correct physics:
    - Accelerometers measure specific force (acceleration minus gravity)
    - Gyroscopes measure angular velocity in body frame
"""

from .scenario_runner import POSE_DIM, ScenarioRunner

__all__ = [
    "POSE_DIM",
    "ScenarioRunner",
]
