"""
Fan-out / fan-in for independent API calls on one page.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict

from lapin_ops.api.envelope import ApiResult


def fetch_all(calls: Dict[str, Callable[[], ApiResult]], max_workers: int = 4) -> Dict[str, ApiResult]:
    """
    Run independent calls concurrently and join them.

    No ordering between branches is assumed; the returned dict is only
    available once every call has finished.
    """
    if not calls:
        return {}
    if len(calls) == 1:
        name, call = next(iter(calls.items()))
        return {name: call()}

    with ThreadPoolExecutor(max_workers=min(max_workers, len(calls)), thread_name_prefix="lapin-api") as pool:
        futures = {name: pool.submit(call) for name, call in calls.items()}
        return {name: future.result() for name, future in futures.items()}
