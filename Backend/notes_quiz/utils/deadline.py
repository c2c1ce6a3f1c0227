import asyncio
import logging
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_deadline(
    func: Callable[..., T],
    *args,
    timeout: float,
    on_timeout: Callable[[], Exception],
    **kwargs,
) -> T:
    """Run a blocking call in a worker thread and race it against a timer.

    Whichever finishes first decides the outcome. When the timer wins the
    pending call is cancelled and ``on_timeout()`` is raised instead of a bare
    ``asyncio.TimeoutError``. Worker threads cannot be interrupted, so callers
    should also give the underlying operation its own time limit.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func, *args, **kwargs))
    try:
        return await asyncio.wait_for(task, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{getattr(func, '__name__', func)!s} exceeded {timeout}s deadline")
        raise on_timeout() from None
    finally:
        if not task.done():
            task.cancel()
