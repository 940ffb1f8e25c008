"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Package initialization

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.
"""

__version__ = "0.1.0"
__author__ = "PIERSYNC Development Team"
__description__ = "Counter-weights-down initialization for equatorial mounts"

from .angle_utils import wrapped_difference
from .convergence import ConvergenceChecker, ConvergenceResult, ConvergenceStatus
from .initializer import (
    ConditionMode,
    InitializationConfig,
    InitializationOutcome,
    MountInitializer,
    OutcomeKind,
)
from .mount import Mount, MountSnapshot, PierSide
from .mount_factory import create_mount
from .reference_pose import ReferencePose, compute_reference_pose
from .simulated_mount import SimulatedMount

__all__ = [
    'wrapped_difference',
    'ConvergenceChecker',
    'ConvergenceResult',
    'ConvergenceStatus',
    'ConditionMode',
    'InitializationConfig',
    'InitializationOutcome',
    'MountInitializer',
    'OutcomeKind',
    'Mount',
    'MountSnapshot',
    'PierSide',
    'create_mount',
    'ReferencePose',
    'compute_reference_pose',
    'SimulatedMount',
]
