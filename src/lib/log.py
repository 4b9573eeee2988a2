"""
Verbosity-gated logging on top of Loguru.

The driver connects its ProgramState once; from then on any LOG() call in
the same context, however deep inside the macro pass, is shown only if
the state's verbosity reaches the call's level. With no state connected
(the library used directly through transform()) nothing is printed.

Usage:
    from stylemacro.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)

    LOG("Transformed 3 modules", level=1)
    LOG("component.js: 2 invocation(s) expanded", level=2)
    LOG("component.js:4:12 tagged-template 'css' -> _css([...])", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

# State of the running driver, or None for library use
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{module: <10}</cyan>:<cyan>{function: <20}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make state's verbosity the LOG() threshold for the current context.

    Args:
        state: Anything with a ``verbosity`` attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit message when the connected verbosity is at least level.

    Args:
        message: Text to log
        level: 1 summary, 2 per module, 3 per invocation
        **kwargs: Passed through to loguru
    """
    state = _program_state.get()
    if state is not None and getattr(state, 'verbosity', 0) >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def LOG_error(message: str) -> None:
    """Report a failure regardless of verbosity, as long as a state is connected"""
    if _program_state.get() is not None:
        logger.opt(depth=1).error(message)
