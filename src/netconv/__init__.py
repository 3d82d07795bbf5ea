"""Convergence and flow instrumentation for simulated routing experiments."""

__version__ = "0.1.0"
