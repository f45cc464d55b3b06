"""HR Console — leave lifecycle and notification fan-out engine."""

__version__ = "1.0.0"
