"""Retry helper for idempotent control-plane calls."""
import functools
import logging
import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def retry(max_attempts: int = 3, delay: float = 0.5, backoff: float = 2.0,
          exceptions: Tuple[Type[Exception], ...] = (Exception,),
          when: Optional[Callable[[Exception], bool]] = None,
          logger_name: Optional[str] = None):
    """Call the wrapped function again when it raises one of ``exceptions``.

    ``max_attempts`` counts the first call. The pause starts at ``delay``
    seconds and is multiplied by ``backoff`` after each failed attempt.
    Errors rejected by ``when`` propagate at once, as does the last error
    once the attempts run out.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    log = logging.getLogger(logger_name) if logger_name else logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            pause = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if (when is not None and not when(e)) or attempt == max_attempts:
                        raise
                    log.warning(f"{func.__name__} attempt {attempt} of {max_attempts} failed ({e}), "
                                f"next try in {pause:.1f}s")
                    time.sleep(pause)
                    pause *= backoff

        return cast(F, wrapper)

    return decorator
