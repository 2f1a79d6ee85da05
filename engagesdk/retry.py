from __future__ import annotations

import logging
from collections.abc import Callable

from engagesdk.domain import HttpResponse
from engagesdk.errors import NetworkFailure


def send_with_retry(
    send: Callable[[], HttpResponse],
    *,
    max_attempts: int,
    delay_s: float,
    sleep_fn: Callable[[float], None],
    logger: logging.Logger,
    what: str,
) -> HttpResponse | None:
    """Call ``send`` until it answers 200 or ``max_attempts`` are used up.

    Every non-200 status and every ``NetworkFailure`` counts as one failed
    attempt. ``delay_s`` is slept between attempts, never after the last one.
    Returns the successful response, or None when all attempts failed.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            resp = send()
        except NetworkFailure as e:
            logger.debug("Error %s (attempt %d/%d): %s", what, attempt, max_attempts, e)
        else:
            if resp.ok:
                return resp
            logger.debug("Error %s (attempt %d/%d), server returned %d", what, attempt, max_attempts, resp.status)
        if attempt < max_attempts and delay_s > 0:
            sleep_fn(delay_s)
    return None
