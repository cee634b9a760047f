"""IMU scenario simulation and preintegration covariance validation.

This package contains the building blocks for simulating IMU output along a
known ground-truth motion and checking a preintegrated-measurement covariance
model against Monte Carlo statistics:
- geometry: SO(3) helpers and the SE(3) Pose3 type
- navigation: Scenarios, bias/state types, IMU preintegration
- noise: Isotropic Gaussian noise models and samplers
- sim: ScenarioRunner (sensor model, integration, covariance reconciliation)
- eval: Covariance comparison metrics and plots
"""

__version__ = "0.1.0"
