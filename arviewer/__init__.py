"""AR viewer routing: browser classification, availability and launch targets."""

from .environment import CapabilityVector, Platform, classify_environment
from .availability import AvailabilityResult, UnavailableReason, resolve_availability
from .launch import (
    CallerContractViolation,
    LaunchError,
    LaunchTarget,
    build_launch_target,
    build_scene_viewer_intent,
)

__all__ = [
    "CapabilityVector",
    "Platform",
    "classify_environment",
    "AvailabilityResult",
    "UnavailableReason",
    "resolve_availability",
    "CallerContractViolation",
    "LaunchError",
    "LaunchTarget",
    "build_launch_target",
    "build_scene_viewer_intent",
]
