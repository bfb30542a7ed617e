"""
Smoothing kernel used for density and pressure-force evaluation.

Quadratic falloff kernel with compact support:

    W(r, h)  = (h - r)² / V          if r < h,   V = π h⁴ / 6
    W'(r, h) = (r - h) · 12 / (π h⁴)  if r < h
    both are 0 for r ≥ h

W is continuous at r = h (value 0 on both sides) and W' ≤ 0 inside the
support, so it can be used directly as the slope of a repulsive force.

All functions accept scalars (returning float) or NumPy arrays (returning
arrays of the same shape).
"""

import numpy as np


def kernel_volume(radius: float) -> float:
    """Normalisation volume V = π h⁴ / 6."""
    return np.pi * radius ** 4 / 6.0


def smoothing_kernel(distance, radius: float):
    """Kernel value W(distance, radius).

    Args:
        distance: Distance(s) between sample point and particle, >= 0
        radius: Smoothing radius h

    Returns:
        Kernel value(s); 0 wherever distance >= radius
    """
    d = np.asarray(distance, dtype=np.float64)
    inside = d < radius

    # Degenerate radius never reaches the division (inside is all False)
    with np.errstate(divide='ignore', invalid='ignore'):
        w = np.where(inside, (radius - d) ** 2 / kernel_volume(radius), 0.0)

    return float(w) if w.ndim == 0 else w


def smoothing_kernel_derivative(distance, radius: float):
    """Derivative dW/dr of the smoothing kernel.

    Args:
        distance: Distance(s) between the two points, >= 0
        radius: Smoothing radius h

    Returns:
        Slope value(s), <= 0 inside the support and 0 outside it
    """
    d = np.asarray(distance, dtype=np.float64)
    inside = d < radius

    with np.errstate(divide='ignore', invalid='ignore'):
        scale = np.float64(12.0) / (np.pi * radius ** 4)
        dw = np.where(inside, (d - radius) * scale, 0.0)

    return float(dw) if dw.ndim == 0 else dw


def kernel_self_value(radius: float) -> float:
    """W(0, h) = 6 / (π h²), the self-contribution of a particle."""
    return smoothing_kernel(0.0, radius)
