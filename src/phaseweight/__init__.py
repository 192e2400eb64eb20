"""Weekly weigh-in tracking with a three-phase weight-loss plan."""

__version__ = "0.1.0"
