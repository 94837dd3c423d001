"""app-controller: desired-state lifecycle controller for remote container apps."""

__version__ = "0.1.0"
