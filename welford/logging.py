import logging
from logging import CRITICAL  # NOQA
from logging import DEBUG  # NOQA
from logging import ERROR  # NOQA
from logging import FATAL  # NOQA
from logging import INFO  # NOQA
from logging import WARN  # NOQA
from logging import WARNING  # NOQA
import os
import threading
from typing import Optional
import warnings

import colorlog


_lock = threading.Lock()
_default_handler = None  # type: Optional[logging.Handler]

_VERBOSITY_ENV_KEY = "WELFORD_VERBOSITY"


def create_default_formatter() -> colorlog.ColoredFormatter:
    """Create a default formatter of log messages.

    This function is not supposed to be directly accessed by library users.
    """

    return colorlog.ColoredFormatter(
        "%(log_color)s[%(levelname)1.1s %(asctime)s]%(reset)s %(message)s"
    )


def _get_library_name() -> str:

    return __name__.split(".")[0]


def _get_library_root_logger() -> logging.Logger:

    return logging.getLogger(_get_library_name())


def _get_default_verbosity() -> int:

    env_value = os.environ.get(_VERBOSITY_ENV_KEY)
    if env_value is None or env_value.strip() == "":
        return WARNING

    env_value = env_value.strip()
    if env_value.lstrip("-").isdigit():
        return int(env_value)

    level = logging.getLevelName(env_value.upper())
    if not isinstance(level, int):
        warnings.warn(
            "Unknown logging level {!r} in ${}, falling back to WARNING.".format(
                env_value, _VERBOSITY_ENV_KEY
            ),
            UserWarning,
        )
        return WARNING
    return level


def _configure_library_root_logger() -> None:

    global _default_handler

    with _lock:
        if _default_handler:
            # This library has already configured the library root logger.
            return
        verbosity = _get_default_verbosity()
        _default_handler = logging.StreamHandler()  # Set sys.stderr as stream.
        _default_handler.setFormatter(create_default_formatter())

        # Apply our default configuration to the library root logger.
        library_root_logger = _get_library_root_logger()
        library_root_logger.addHandler(_default_handler)
        library_root_logger.setLevel(verbosity)
        library_root_logger.propagate = False


def _reset_library_root_logger() -> None:

    global _default_handler

    with _lock:
        if not _default_handler:
            return

        library_root_logger = _get_library_root_logger()
        library_root_logger.removeHandler(_default_handler)
        library_root_logger.setLevel(logging.NOTSET)
        _default_handler = None


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    This function is not supposed to be directly accessed by library users.
    """

    _configure_library_root_logger()
    return logging.getLogger(name)


def get_verbosity() -> int:
    """Return the current level for the library's root logger.

    Example:

        Get the default verbosity level.

        .. testcode::

            import welford

            # The default verbosity level is `welford.logging.WARNING`.
            print(welford.logging.get_verbosity())
            # 30

    Returns:
        Logging level, e.g., ``welford.logging.DEBUG`` and ``welford.logging.INFO``.

    .. note::
        The default level can be overridden with the ``WELFORD_VERBOSITY`` environment variable,
        which is read once when the library root logger is configured.
    """

    _configure_library_root_logger()
    return _get_library_root_logger().getEffectiveLevel()


def set_verbosity(verbosity: int) -> None:
    """Set the level for the library's root logger.

    Args:
        verbosity:
            Logging level, e.g., ``welford.logging.DEBUG`` and ``welford.logging.INFO``.
    """

    _configure_library_root_logger()
    _get_library_root_logger().setLevel(verbosity)


def disable_default_handler() -> None:
    """Disable the default handler of the library's root logger."""

    _configure_library_root_logger()

    assert _default_handler is not None
    _get_library_root_logger().removeHandler(_default_handler)


def enable_default_handler() -> None:
    """Enable the default handler of the library's root logger."""

    _configure_library_root_logger()

    assert _default_handler is not None
    _get_library_root_logger().addHandler(_default_handler)


def disable_propagation() -> None:
    """Disable propagation of the library log outputs.

    Note that log propagation is disabled by default.
    """

    _configure_library_root_logger()
    _get_library_root_logger().propagate = False


def enable_propagation() -> None:
    """Enable propagation of the library log outputs.

    Please disable the default handler via :func:`~welford.logging.disable_default_handler`
    when attaching a handler to the root logger, or records will be emitted twice.

    Example:

        Propagate all log output to the root logger in order to save them to the file.

        .. testcode::

            import logging

            import welford

            logger = logging.getLogger()

            logger.setLevel(logging.DEBUG)
            logger.addHandler(logging.FileHandler("foo.log"))

            welford.logging.enable_propagation()
            welford.logging.disable_default_handler()
    """

    _configure_library_root_logger()
    _get_library_root_logger().propagate = True
