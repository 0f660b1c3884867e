"""Day-number clock used for key expiration."""

import time

SECONDS_PER_DAY = 86400


def current_day() -> int:
    """Return the number of whole days since the Unix epoch."""
    return int(time.time()) // SECONDS_PER_DAY
