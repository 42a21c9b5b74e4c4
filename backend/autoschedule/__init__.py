"""Auto-scheduling engine for calendar tasks."""

__version__ = "0.1.0"
