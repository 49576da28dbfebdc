"""School operations admin tool: schedule lifecycle and assessment-gated status engine."""

__version__ = "0.1.0"
