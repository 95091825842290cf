"""
Mean correction for truncated normal distributions.

Given a lower bound (default 0), an upper bound (default +inf) and the
standard deviation of a normal distribution, find the center of the
distribution such that its expectation after truncation to the bounds equals
a target value lying between them.

Truncation here means clamping: a draw below ``lower`` counts as ``lower``
and a draw above ``upper`` counts as ``upper``, so

    E[T] = integral(t * pdf(t), lower, upper)
           + lower * P(T < lower) + upper * P(T > upper)

The center is found with Newton's method on ``E[T](avg) - x``.
"""

import math
import sys
from typing import Optional

EPSILON = sys.float_info.epsilon
_SQRT_2 = math.sqrt(2.0)
_SQRT_2PI = math.sqrt(2.0 * math.pi)


def integral(x: float, t: float, sigma: float) -> float:
    """Antiderivative of ``t * pdf(t; x, sigma)`` evaluated at ``t``."""
    part1 = x * 0.5 * math.erf((t - x) / sigma / _SQRT_2)
    part2 = -sigma / _SQRT_2PI * math.exp(-(t - x) * (t - x) * 0.5 / sigma / sigma)
    return part1 + part2


def deri_integral(x: float, t: float, sigma: float) -> float:
    """Derivative of ``integral(x, t, sigma)`` with respect to ``x``."""
    part1 = 0.5 * math.erf((t - x) / sigma / _SQRT_2)
    part2 = math.exp(-(t - x) * (t - x) * 0.5 / sigma / sigma) * (-t) / _SQRT_2PI / sigma
    return part1 + part2


def cdf(t: float, x: float, sigma: float) -> float:
    return 0.5 * (1.0 + math.erf((t - x) / sigma / _SQRT_2))


def deri_cdf(t: float, x: float, sigma: float) -> float:
    """Derivative of ``cdf(t, x, sigma)`` with respect to ``x``."""
    return -math.exp(-(t - x) * (t - x) / 2.0 / sigma / sigma) / sigma / _SQRT_2PI


def truncated_bandwidth(
    avg: float, sigma: float, lower: Optional[float], upper: Optional[float]
) -> float:
    """Expectation of N(avg, sigma) clamped to [lower, upper]."""
    if upper is not None:
        upper_integral = integral(avg, upper, sigma)
    else:
        # the antiderivative tends to avg / 2 as t -> +inf
        upper_integral = avg * 0.5

    lower_integral = integral(avg, lower if lower is not None else 0.0, sigma)
    upper_truncate = upper * (1.0 - cdf(upper, avg, sigma)) if upper is not None else 0.0
    lower_truncate = lower * cdf(lower, avg, sigma) if lower is not None else 0.0

    return upper_integral - lower_integral + lower_truncate + upper_truncate


def derivation_truncated_bandwidth(
    avg: float, sigma: float, lower: Optional[float], upper: Optional[float]
) -> float:
    """Derivative of ``truncated_bandwidth`` with respect to ``avg``."""
    upper_integral = deri_integral(avg, upper, sigma) if upper is not None else 0.5
    lower_integral = deri_integral(avg, lower if lower is not None else 0.0, sigma)
    upper_truncate = upper * (-deri_cdf(upper, avg, sigma)) if upper is not None else 0.0
    lower_truncate = lower * deri_cdf(lower, avg, sigma) if lower is not None else 0.0

    return upper_integral - lower_integral + lower_truncate + upper_truncate


def solve(
    x: float,
    sigma: float,
    lower: Optional[float] = None,
    upper: Optional[float] = None,
) -> Optional[float]:
    """
    Find the center whose truncated expectation is ``x``.

    Args:
        x: Target expectation after truncation.
        sigma: Standard deviation of the distribution.
        lower: Lower bound; None or negative means 0.
        upper: Upper bound; None means +inf.

    Returns:
        The center of the distribution before truncation. ``x`` itself when
        sigma is zero, and the violated bound when ``x`` lies outside them.
    """
    if abs(sigma) <= EPSILON:
        return x

    if lower is not None and lower >= x * (1.0 + EPSILON):
        return lower

    if lower is None and x <= EPSILON:
        return 0.0

    if upper is not None and upper * (1.0 + EPSILON) <= x:
        return upper

    if lower is None or lower < 0.0:
        lower = 0.0

    result = x
    last_diff = math.inf
    run_cnt = 10

    while run_cnt > 0:
        f_x = truncated_bandwidth(result, sigma, lower, upper)

        diff = abs(f_x - x)
        if diff < last_diff:
            last_diff = diff
            run_cnt = 100
        else:
            run_cnt -= 1

        slope = derivation_truncated_bandwidth(result, sigma, lower, upper)
        if slope == 0.0:
            # flat far in the tails, no further progress possible
            break
        result = result - (f_x - x) / slope

    return result
