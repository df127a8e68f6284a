"""Randomized pauses between outbound requests."""

import asyncio
import random


async def jittered_delay(min_ms: int = 1000, max_ms: int = 2000) -> None:
    """Sleep for a uniformly random duration in [min_ms, max_ms] milliseconds.

    Used between successive fetches so request timing doesn't form a
    fixed pattern.
    """
    low, high = sorted((max(0, min_ms), max(0, max_ms)))
    ms = random.randint(low, high)
    await asyncio.sleep(ms / 1000)
