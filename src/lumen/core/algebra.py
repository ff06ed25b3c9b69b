"""Vector algebra and scalar solvers shared by kernels and host code.

Kernel-side vectors are ``taichi.math.vec3`` values: addition, subtraction,
scaling (either operand order) and negation are the vector operators, and the
helpers below cover the rest. Host-side twins operate on NumPy arrays and are
used when deriving configuration (camera bases) before upload.

Normalizing a zero vector is a precondition violation. Kernel helpers do not
check it; the host helper raises ValueError.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumen.core.algebra import solve_quadratic
    >>> @ti.kernel
    ... def roots() -> ti.f32:
    ...     found, x1, x2 = solve_quadratic(-1.0, 2.0, 3.0)
    ...     return x1
"""

import numpy as np
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# =============================================================================
# Kernel-side Vector Helpers
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def norm(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def norm_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector (avoids the sqrt)."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Return a unit vector in the direction of v.

    Args:
        v: The input vector. Must not be zero-length.

    Returns:
        v divided by its length.
    """
    return v / tm.length(v)


@ti.func
def rotate_around_axis(v: vec3, k: vec3, theta: ti.f32) -> vec3:
    """Rotate v around the unit axis k by theta radians (Rodrigues' formula).

    The axis is assumed to be unit length and is not validated.
    """
    cos_theta = ti.cos(theta)
    sin_theta = ti.sin(theta)
    return v * cos_theta + tm.cross(k, v) * sin_theta + k * tm.dot(k, v) * (1.0 - cos_theta)


# =============================================================================
# Scalar Solvers
# =============================================================================


@ti.func
def solve_quadratic(a: ti.f32, b: ti.f32, c: ti.f32):
    """Solve a*x^2 + b*x + c = 0 for real roots.

    Degenerates to the linear equation when a == 0. Two distinct roots are
    computed with the cancellation-free form
    (q = -0.5 * (b + sign(b) * sqrt(disc)), roots q/a and c/q).

    Args:
        a: Quadratic coefficient.
        b: Linear coefficient.
        c: Constant coefficient.

    Returns:
        A tuple (found, x1, x2). found is 1 when real roots exist, with
        x1 <= x2; a single root is returned as (x, x). found is 0 otherwise
        and the roots are meaningless.
    """
    found = 0
    x1 = 0.0
    x2 = 0.0

    if a == 0.0:
        if b != 0.0:
            found = 1
            x1 = -c / b
            x2 = x1
    else:
        discriminant = b * b - 4.0 * a * c
        if discriminant == 0.0:
            found = 1
            x1 = -0.5 * b / a
            x2 = x1
        elif discriminant > 0.0:
            found = 1
            sign_b = ti.select(b < 0.0, -1.0, 1.0)
            q = -0.5 * (b + sign_b * ti.sqrt(discriminant))
            r1 = q / a
            r2 = c / q
            x1 = ti.min(r1, r2)
            x2 = ti.max(r1, r2)

    return found, x1, x2


@ti.func
def closest_facing_root(found: ti.i32, t1: ti.f32, t2: ti.f32):
    """Pick the closest non-negative root of an ordered pair.

    Args:
        found: Whether the roots are valid (from solve_quadratic).
        t1: The smaller root.
        t2: The larger root.

    Returns:
        A tuple (hit, t): t1 if t1 >= 0, else t2 if t2 >= 0, else hit == 0.
    """
    hit = 0
    t = 0.0
    if found == 1:
        if t1 >= 0.0:
            hit = 1
            t = t1
        elif t2 >= 0.0:
            hit = 1
            t = t2
    return hit, t


# =============================================================================
# Host-side Helpers (NumPy)
# =============================================================================


def normalize_vector(v) -> np.ndarray:
    """Normalize a 3-vector on the host.

    Args:
        v: Any sequence of three numbers.

    Returns:
        A float64 unit vector.

    Raises:
        ValueError: If v has zero length.
    """
    arr = np.asarray(v, dtype=np.float64)
    length = np.linalg.norm(arr)
    if length == 0.0:
        raise ValueError(f"Cannot normalize zero-length vector {tuple(arr)}")
    return arr / length


def rotate_vector(v, k, theta: float) -> np.ndarray:
    """Host twin of rotate_around_axis (Rodrigues' formula, k assumed unit)."""
    v = np.asarray(v, dtype=np.float64)
    k = np.asarray(k, dtype=np.float64)
    cos_theta = np.cos(theta)
    return v * cos_theta + np.cross(k, v) * np.sin(theta) + k * np.dot(k, v) * (1.0 - cos_theta)
