"""Polling loops for missionbot.

Two independent loops share one session token:
1. MissionPoller claims published missions and stops after repeated 403s
2. TargetPoller signs up for newly listed targets, forever
"""

from .base import BasePoller
from .missions import MissionPoller
from .targets import TargetPoller

__all__ = ["BasePoller", "MissionPoller", "TargetPoller"]
