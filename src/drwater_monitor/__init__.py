"""Dr. Water live monitor: polls the filtration unit and serves its dashboard."""

__version__ = "0.1.0"
