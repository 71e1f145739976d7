from welford import exceptions  # NOQA
from welford import logging  # NOQA
from welford._accumulator import Accumulator  # NOQA
from welford.version import __version__  # NOQA
