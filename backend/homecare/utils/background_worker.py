"""Thread pool for fire-and-forget side effects such as outbound email."""

from __future__ import annotations

import logging
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Deque, Tuple

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="homecare-bg")

# Jobs that exhausted their retries: (function name, args, kwargs, exception)
dead_letters: Deque[Tuple[str, tuple, dict, Exception]] = deque(maxlen=500)


def _attempt(func: Callable[..., Any], args: tuple, kwargs: dict, retries: int, backoff: float) -> Any:
    for attempt in range(1, retries + 1):
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            logger.warning(
                "Background job %s failed (attempt %s/%s): %s",
                func.__name__,
                attempt,
                retries,
                exc,
            )
            if attempt == retries:
                dead_letters.append((func.__name__, args, kwargs, exc))
                logger.error("Background job %s moved to dead letters", func.__name__)
                return None
            time.sleep(backoff * attempt)
    return None


def submit(
    func: Callable[..., Any], *args: Any, retries: int = 3, backoff: float = 1.0, **kwargs: Any
) -> Future:
    """Run ``func`` off the request thread, retrying with linear backoff."""
    return _executor.submit(_attempt, func, args, kwargs, retries, backoff)
