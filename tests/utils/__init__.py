"""Shared test utilities for quadtreex."""

from .datasets import (
    bounds_for,
    gaussian_points,
    uniform_points,
)

__all__ = ["bounds_for", "gaussian_points", "uniform_points"]
