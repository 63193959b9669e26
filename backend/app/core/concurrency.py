# backend/app/core/concurrency.py

import asyncio


async def gather_or_cancel(*coros):
    """Like asyncio.gather, but the first failure cancels the siblings."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
