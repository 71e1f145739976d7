class WelfordError(Exception):
    """Base class for errors raised by this package.

    Every failure is a deterministic function of the inputs. The accumulator which raised it is
    left exactly as it was before the failing call.
    """

    pass


class InvalidWeight(WelfordError, ValueError):
    """Exception raised when a weight is zero, negative or not finite.

    Weights are frequencies, i.e. repeat counts of the observation they accompany, so only
    strictly positive finite weights are meaningful.
    """

    pass


class InvalidValue(WelfordError, ValueError):
    """Exception raised when an observation is NaN or infinite."""

    pass


class EmptyAccumulator(WelfordError):
    """Exception raised when a statistic is queried before any observation was added."""

    pass


class InsufficientData(WelfordError):
    """Exception raised when the unbiased estimators are queried with a total weight of at most
    one."""

    pass


class NumericalOverflow(WelfordError, OverflowError):
    """Exception raised when finite input would drive the running statistics out of the range
    of floating-point numbers.

    The offending update or merge is rejected so that no infinity or NaN enters the state.
    """

    pass
