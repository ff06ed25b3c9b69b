"""lumen: spectral Monte Carlo path tracer built on Taichi."""

__version__ = "0.1.0"
