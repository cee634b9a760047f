"""
Navigation scenarios, state types and IMU preintegration.

Modules:
    types: ConstantBias, NavState, PoseVelocityBias
    params: PreintegrationParams (noise covariances, gravity, integration order)
    scenario: Scenario base class, ConstantTwistScenario, AcceleratingScenario
    preintegration: PreintegratedImuMeasurements (increments, covariance,
                    bias Jacobians, prediction)

Example:
    >>> import numpy as np
    >>> from imusim.navigation import (
    ...     ConstantTwistScenario, PreintegrationParams,
    ...     PreintegratedImuMeasurements,
    ... )
    >>> scenario = ConstantTwistScenario(w=np.array([0.0, 0.0, 0.1]),
    ...                                  v=np.array([1.0, 0.0, 0.0]))
    >>> params = PreintegrationParams(acc_covariance=1e-4 * np.eye(3),
    ...                               gyro_covariance=1e-6 * np.eye(3))
    >>> pim = PreintegratedImuMeasurements(params)
"""

from .types import ConstantBias, NavState, PoseVelocityBias
from .params import PreintegrationParams
from .scenario import (
    AcceleratingScenario,
    ConstantTwistScenario,
    Scenario,
    stationary_scenario,
)
from .preintegration import PreintegratedImuMeasurements

__all__ = [
    # Types
    "ConstantBias",
    "NavState",
    "PoseVelocityBias",
    # Configuration
    "PreintegrationParams",
    # Scenarios
    "Scenario",
    "ConstantTwistScenario",
    "AcceleratingScenario",
    "stationary_scenario",
    # Preintegration
    "PreintegratedImuMeasurements",
]
