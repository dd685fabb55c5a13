"""missionbot - Synack mission claimer and target auto-registration."""

__version__ = "0.1.0"
