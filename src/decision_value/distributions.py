"""
Prior distributions over the true relative lift L.

Three families are supported: Normal, Student-t (location-scale) and
Uniform. Each exposes density, cumulative probability, mean and a draw
from an injected numpy Generator. All lift values are decimals
(0.05 = 5%).

Student-t location-scale: if Z ~ t(df) then X = location + scale * Z.
`scale` is a general scale parameter, not a standard deviation.
"""

import math
import numbers
from dataclasses import dataclass
from typing import ClassVar, Tuple, Union

import numpy as np
from scipy import stats

from .config import PRIOR_WINDOW_SCALES, Z_95
from .errors import InvalidInputError

# Smallest positive float; a uniform draw of exactly 0 is clamped here before log()
_SMALLEST_POSITIVE = float(np.nextafter(0.0, 1.0))


def sample_standard_normal(rng: np.random.Generator) -> float:
    """
    Box-Muller draw from N(0, 1).

    z = sqrt(-2 ln U1) * cos(2 pi U2). U1 is clamped away from 0 so the
    logarithm stays finite.
    """
    u1 = max(rng.random(), _SMALLEST_POSITIVE)
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def _require_finite(**values):
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number.")


class PriorDistribution:
    """Base class for the prior families. Subclasses are frozen dataclasses."""

    kind: ClassVar[str] = ""

    def density(self, x: float) -> float:
        raise NotImplementedError

    def log_density(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def cumulative(self, x: float) -> float:
        raise NotImplementedError

    def mean(self) -> float:
        raise NotImplementedError

    def draw(self, rng: np.random.Generator) -> float:
        raise NotImplementedError

    def support(self) -> Tuple[float, float]:
        """Interval outside which the density is zero."""
        raise NotImplementedError

    def core_window(self) -> Tuple[float, float]:
        """Interval holding practically all of the prior's mass near its centre."""
        raise NotImplementedError


@dataclass(frozen=True)
class NormalPrior(PriorDistribution):
    """Normal(location, scale). scale == 0 is a point mass at location."""
    location: float
    scale: float

    kind: ClassVar[str] = "normal"

    def __post_init__(self):
        _require_finite(location=self.location, scale=self.scale)
        if self.scale < 0:
            raise InvalidInputError("Normal prior scale must be >= 0.")

    @property
    def is_degenerate(self) -> bool:
        return self.scale == 0

    def density(self, x: float) -> float:
        if self.is_degenerate:
            return math.inf if x == self.location else 0.0
        return float(stats.norm.pdf(x, loc=self.location, scale=self.scale))

    def log_density(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        if self.is_degenerate:
            return np.where(x == self.location, np.inf, -np.inf)
        return stats.norm.logpdf(x, loc=self.location, scale=self.scale)

    def cumulative(self, x: float) -> float:
        if self.is_degenerate:
            return 1.0 if x >= self.location else 0.0
        return float(stats.norm.cdf(x, loc=self.location, scale=self.scale))

    def mean(self) -> float:
        return float(self.location)

    def draw(self, rng: np.random.Generator) -> float:
        return self.location + self.scale * sample_standard_normal(rng)

    def support(self) -> Tuple[float, float]:
        if self.is_degenerate:
            return (self.location, self.location)
        return (-math.inf, math.inf)

    def core_window(self) -> Tuple[float, float]:
        half = PRIOR_WINDOW_SCALES * self.scale
        return (self.location - half, self.location + half)


@dataclass(frozen=True)
class StudentTPrior(PriorDistribution):
    """Location-scale Student-t with `df` degrees of freedom (df >= 1)."""
    location: float
    scale: float
    df: float

    kind: ClassVar[str] = "student-t"

    def __post_init__(self):
        _require_finite(location=self.location, scale=self.scale, df=self.df)
        if self.scale <= 0:
            raise InvalidInputError("Student-t prior scale must be > 0.")
        if self.df < 1:
            raise InvalidInputError("Student-t degrees of freedom must be >= 1.")

    def density(self, x: float) -> float:
        return float(stats.t.pdf(x, self.df, loc=self.location, scale=self.scale))

    def log_density(self, x: np.ndarray) -> np.ndarray:
        return stats.t.logpdf(np.asarray(x, dtype=float), self.df, loc=self.location, scale=self.scale)

    def cumulative(self, x: float) -> float:
        return float(stats.t.cdf(x, self.df, loc=self.location, scale=self.scale))

    def mean(self) -> float:
        # Undefined for df <= 1; the location is the centre used for decisions.
        return float(self.location)

    def draw(self, rng: np.random.Generator) -> float:
        # Inverse CDF. Quantiles near 0 or 1 can be non-finite at low df: redraw.
        while True:
            u = rng.random()
            z = float(stats.t.ppf(u, self.df))
            if math.isfinite(z):
                return self.location + self.scale * z

    def support(self) -> Tuple[float, float]:
        return (-math.inf, math.inf)

    def core_window(self) -> Tuple[float, float]:
        half = PRIOR_WINDOW_SCALES * self.scale
        return (self.location - half, self.location + half)


@dataclass(frozen=True)
class UniformPrior(PriorDistribution):
    """Uniform on [low, high]."""
    low: float
    high: float

    kind: ClassVar[str] = "uniform"

    def __post_init__(self):
        _require_finite(low=self.low, high=self.high)
        if not self.low < self.high:
            raise InvalidInputError("Uniform prior requires low < high.")

    @property
    def width(self) -> float:
        return self.high - self.low

    def density(self, x: float) -> float:
        if x < self.low or x > self.high:
            return 0.0
        return 1.0 / self.width

    def log_density(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        inside = (x >= self.low) & (x <= self.high)
        return np.where(inside, -math.log(self.width), -np.inf)

    def cumulative(self, x: float) -> float:
        if x <= self.low:
            return 0.0
        if x >= self.high:
            return 1.0
        return (x - self.low) / self.width

    def mean(self) -> float:
        return (self.low + self.high) / 2.0

    def draw(self, rng: np.random.Generator) -> float:
        return self.low + rng.random() * self.width

    def support(self) -> Tuple[float, float]:
        return (self.low, self.high)

    def core_window(self) -> Tuple[float, float]:
        return (self.low, self.high)


Prior = Union[NormalPrior, StudentTPrior, UniformPrior]


def prior_from_interval(interval_low_pct: float, interval_high_pct: float) -> NormalPrior:
    """
    Normal prior from a 90% central interval given in percent.

    The bounds are the 5th and 95th percentiles, so
    location = midpoint and scale = width / (2 * z_0.95).

    Example:
        prior_from_interval(-8.22, 8.22) -> NormalPrior(location=0.0, scale~0.05)
    """
    _require_finite(interval_low_pct=interval_low_pct, interval_high_pct=interval_high_pct)
    if interval_high_pct < interval_low_pct:
        raise InvalidInputError("Interval upper bound must be >= lower bound.")
    low = interval_low_pct / 100.0
    high = interval_high_pct / 100.0
    return NormalPrior(location=(low + high) / 2.0, scale=(high - low) / (2.0 * Z_95))
