from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


class BoundedCaller:
    """
    Runs collaborator calls on a shared worker pool and waits at most `timeout` seconds.
    On expiry the caller gets `on_timeout()` raised; the worker thread is left to finish on its own.
    """

    def __init__(self, max_workers: int = 8, thread_name_prefix: str = "trending-io"):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)

    def call(
        self,
        fn: Callable[..., T],
        *args,
        timeout: Optional[float],
        on_timeout: Callable[[], Exception],
        **kwargs,
    ) -> T:
        if timeout is None:
            return fn(*args, **kwargs)
        future = self._executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            future.cancel()
            raise on_timeout() from None

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
