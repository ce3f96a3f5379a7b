"""Shared I/O helpers."""

from .lidar_io import load_laz_points, load_points

__all__ = ["load_laz_points", "load_points"]
