import copy
import math
from typing import Optional
from typing import Sequence
from typing import Union

import numpy

from welford import logging
from welford.exceptions import EmptyAccumulator
from welford.exceptions import InsufficientData
from welford.exceptions import InvalidValue
from welford.exceptions import InvalidWeight
from welford.exceptions import NumericalOverflow


_logger = logging.get_logger(__name__)

_ArrayLike = Union[Sequence[float], numpy.ndarray]


class Accumulator(object):
    """Online mean and variance of a stream of observations, with optional weights.

    Observations are added one at a time with :meth:`update` and the current statistics can be
    queried at any point of the stream. This implements Welford's single-pass algorithm, with
    weights handled as suggested by West. Weights are treated as frequencies, i.e.
    ``update(x, weight=3)`` is equivalent to calling ``update(x)`` three times, and not as
    reliabilities.

    Accumulators fed from disjoint parts of a stream can be combined with :meth:`merge` (or the
    ``+`` and ``+=`` operators), which yields the statistics of the concatenated stream. This is
    the way to aggregate in parallel: give every worker its own accumulator and merge the partial
    results, in any order.

    Example:

        .. testcode::

            import welford

            acc = welford.Accumulator()
            for x in [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]:
                acc.update(x)

            print(acc.mean(), acc.variance())
            # 5.0 4.0

    .. seealso::

        `Welford, B. P. 1962. Technometrics 4 (3): 419-20.
        <https://doi.org/10.1080/00401706.1962.10490022>`_ and
        `West, D. H. D. 1979. Communications of the ACM 22 (9): 532-35.
        <https://doi.org/10.1145/359146.359153>`_.

    .. note::
        Accumulators are not thread-safe. Do not share one between threads without external
        locking.
    """

    def __init__(self) -> None:
        self._n = 0
        self._sum_of_weights = 0.0
        self._avg = 0.0
        self._sdm = 0.0  # Weighted squared distance from the mean, i.e. M2.

    @classmethod
    def from_values(
        cls, values: _ArrayLike, weights: Optional[Union[float, _ArrayLike]] = None
    ) -> "Accumulator":
        """Create an accumulator from a batch of observations.

        Args:
            values:
                Observations. See :meth:`update_many`.
            weights:
                Weights of the observations. See :meth:`update_many`.

        Returns:
            A new accumulator.
        """

        accumulator = cls()
        accumulator.update_many(values, weights)
        return accumulator

    def update(self, value: float, weight: float = 1.0) -> None:
        """Add an observation.

        Args:
            value:
                The observation. Must be finite.
            weight:
                Frequency of the observation. Must be positive and finite.

        Raises:
            :exc:`~welford.exceptions.InvalidValue`:
                If ``value`` is NaN or infinite.
            :exc:`~welford.exceptions.InvalidWeight`:
                If ``weight`` is zero, negative, NaN or infinite.
            :exc:`~welford.exceptions.NumericalOverflow`:
                If the updated statistics would not be finite.
        """

        value = _check_value(value)
        weight = _check_weight(weight)

        sum_of_weights = self._sum_of_weights + weight
        delta = value - self._avg
        avg = self._avg + delta * weight / sum_of_weights
        # The second factor must use the updated mean.
        sdm = self._sdm + weight * delta * (value - avg)
        _check_state(sum_of_weights, avg, sdm)

        self._sdm = sdm
        self._avg = avg
        self._sum_of_weights = sum_of_weights
        self._n += 1

    def update_many(
        self, values: _ArrayLike, weights: Optional[Union[float, _ArrayLike]] = None
    ) -> None:
        """Add a batch of observations.

        The result is the same as calling :meth:`update` for each observation in order, up to
        floating-point rounding. All observations are validated before any of them is added, so
        an invalid entry leaves the accumulator unchanged.

        Args:
            values:
                One-dimensional sequence or :class:`numpy.ndarray` of observations.
            weights:
                :obj:`None` for unit weights, a single weight shared by all observations, or a
                sequence of the same length as ``values``.

        Raises:
            :exc:`ValueError`:
                If ``values`` is not one-dimensional or ``weights`` does not match its shape.
            :exc:`~welford.exceptions.InvalidValue`:
                If any observation is NaN or infinite.
            :exc:`~welford.exceptions.InvalidWeight`:
                If any weight is zero, negative, NaN or infinite.
            :exc:`~welford.exceptions.NumericalOverflow`:
                If the updated statistics would not be finite.
        """

        values = numpy.asarray(values, dtype=numpy.float64)
        if values.ndim != 1:
            raise ValueError(
                "Observations must be one-dimensional, got shape {}.".format(values.shape)
            )

        if weights is None:
            weights = numpy.ones_like(values)
        elif numpy.ndim(weights) == 0:
            weights = numpy.full_like(values, _check_weight(weights), dtype=numpy.float64)
        else:
            weights = numpy.asarray(weights, dtype=numpy.float64)
            if weights.shape != values.shape:
                raise ValueError(
                    "Weights of shape {} do not match observations of shape {}.".format(
                        weights.shape, values.shape
                    )
                )

        invalid = ~numpy.isfinite(values)
        if invalid.any():
            index = int(numpy.argmax(invalid))
            _logger.debug("Rejected a batch with an invalid observation at {}.".format(index))
            raise InvalidValue(
                "Observations must be finite, got {} at index {}.".format(values[index], index)
            )

        invalid = ~(numpy.isfinite(weights) & (weights > 0.0))
        if invalid.any():
            index = int(numpy.argmax(invalid))
            _logger.debug("Rejected a batch with an invalid weight at index {}.".format(index))
            raise InvalidWeight(
                "Weights must be positive and finite, got {} at index {}.".format(
                    weights[index], index
                )
            )

        if values.size == 0:
            return

        batch = Accumulator()
        batch._n = int(values.size)
        with numpy.errstate(over="ignore", invalid="ignore"):
            batch._sum_of_weights = float(numpy.sum(weights))
            batch._avg = float(numpy.dot(weights, values) / batch._sum_of_weights)
            batch._sdm = float(numpy.dot(weights, (values - batch._avg) ** 2))
        _check_state(batch._sum_of_weights, batch._avg, batch._sdm)

        self += batch

    def merge(self, other: "Accumulator") -> "Accumulator":
        """Combine two accumulators.

        Neither accumulator is modified. The operation is commutative and associative up to
        floating-point rounding.

        Args:
            other:
                An accumulator fed with another part of the stream.

        Returns:
            A new accumulator holding the statistics of both streams concatenated.

        Raises:
            :exc:`~welford.exceptions.NumericalOverflow`:
                If the combined statistics would not be finite.
        """

        if not isinstance(other, Accumulator):
            raise TypeError(
                "Cannot merge {} into {}.".format(type(other).__name__, type(self).__name__)
            )

        if other._sum_of_weights == 0.0:
            _logger.debug("Merged an empty accumulator.")
            return self.copy()
        if self._sum_of_weights == 0.0:
            _logger.debug("Merged into an empty accumulator.")
            return other.copy()

        sum_of_weights = self._sum_of_weights + other._sum_of_weights
        delta = other._avg - self._avg

        merged = Accumulator()
        merged._n = self._n + other._n
        merged._sum_of_weights = sum_of_weights
        merged._avg = self._avg + delta * other._sum_of_weights / sum_of_weights
        merged._sdm = (
            self._sdm
            + other._sdm
            + delta * delta * self._sum_of_weights * other._sum_of_weights / sum_of_weights
        )
        _check_state(merged._sum_of_weights, merged._avg, merged._sdm)
        return merged

    def __add__(self, other: "Accumulator") -> "Accumulator":
        if not isinstance(other, Accumulator):
            return NotImplemented
        return self.merge(other)

    def __iadd__(self, other: "Accumulator") -> "Accumulator":
        if not isinstance(other, Accumulator):
            return NotImplemented

        merged = self.merge(other)
        self._n = merged._n
        self._sum_of_weights = merged._sum_of_weights
        self._avg = merged._avg
        self._sdm = merged._sdm
        return self

    def copy(self) -> "Accumulator":
        return copy.copy(self)

    def count(self) -> int:
        """Return the number of accepted observations, regardless of their weights."""

        return self._n

    def total_weight(self) -> float:
        """Return the sum of the weights of the accepted observations."""

        return self._sum_of_weights

    def is_empty(self) -> bool:
        return self._sum_of_weights == 0.0

    def mean(self) -> float:
        """Return the weighted mean.

        Raises:
            :exc:`~welford.exceptions.EmptyAccumulator`:
                If no observation has been added.
        """

        self._check_not_empty("mean")
        return self._avg

    def variance(self) -> float:
        """Return the population variance, i.e. M2 divided by the total weight.

        Raises:
            :exc:`~welford.exceptions.EmptyAccumulator`:
                If no observation has been added.
        """

        self._check_not_empty("variance")
        return self._sdm / self._sum_of_weights

    def sample_variance(self) -> float:
        """Return the unbiased variance, i.e. M2 divided by the total weight minus one.

        Raises:
            :exc:`~welford.exceptions.EmptyAccumulator`:
                If no observation has been added.
            :exc:`~welford.exceptions.InsufficientData`:
                If the total weight is at most one.
        """

        self._check_not_empty("sample variance")
        if self._sum_of_weights <= 1.0:
            raise InsufficientData(
                "The sample variance requires a total weight greater than 1, got {}.".format(
                    self._sum_of_weights
                )
            )
        return self._sdm / (self._sum_of_weights - 1.0)

    def std_dev(self) -> float:
        """Return the population standard deviation.

        Raises:
            :exc:`~welford.exceptions.EmptyAccumulator`:
                If no observation has been added.
        """

        # Cancellation can leave M2 slightly below zero.
        return math.sqrt(max(0.0, self.variance()))

    def sample_std_dev(self) -> float:
        """Return the square root of :meth:`sample_variance`.

        Raises:
            :exc:`~welford.exceptions.EmptyAccumulator`:
                If no observation has been added.
            :exc:`~welford.exceptions.InsufficientData`:
                If the total weight is at most one.
        """

        return math.sqrt(max(0.0, self.sample_variance()))

    def __len__(self) -> int:
        return self._n

    def __repr__(self) -> str:
        return "{}(count={}, total_weight={!r}, mean={!r}, m2={!r})".format(
            type(self).__name__, self._n, self._sum_of_weights, self._avg, self._sdm
        )

    def _check_not_empty(self, statistic: str) -> None:
        if self._sum_of_weights == 0.0:
            raise EmptyAccumulator("Cannot compute the {} without observations.".format(statistic))


def _check_value(value: float) -> float:

    value = float(value)
    if not math.isfinite(value):
        _logger.debug("Rejected an invalid observation {}.".format(value))
        raise InvalidValue("Observations must be finite, got {}.".format(value))
    return value


def _check_weight(weight: float) -> float:

    weight = float(weight)
    if not (math.isfinite(weight) and weight > 0.0):
        _logger.debug("Rejected an invalid weight {}.".format(weight))
        raise InvalidWeight("Weights must be positive and finite, got {}.".format(weight))
    return weight


def _check_state(sum_of_weights: float, avg: float, sdm: float) -> None:

    if not (math.isfinite(sum_of_weights) and math.isfinite(avg) and math.isfinite(sdm)):
        _logger.debug(
            "Rejected an overflowing result: total_weight={}, mean={}, m2={}.".format(
                sum_of_weights, avg, sdm
            )
        )
        raise NumericalOverflow(
            "The running statistics would overflow: total_weight={}, mean={}, m2={}.".format(
                sum_of_weights, avg, sdm
            )
        )
