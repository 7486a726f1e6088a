"""shopplan - calendar-aware production scheduling for a manufacturing shop."""

__version__ = "0.1.0"
