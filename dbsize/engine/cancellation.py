# cancellation.py

import threading
from typing import Optional

from loguru import logger

from .errors import QueryCanceledError


class CancellationToken:
    """
    协作式取消标记。
    长时间的扫描循环在每次迭代时调用 check()；其他线程调用 cancel() 请求中止。
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "canceling statement due to user request") -> None:
        self._reason = reason
        self._event.set()
        logger.debug(f"[CancellationToken] 收到取消请求: {reason}")

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise QueryCanceledError(self._reason)


def check_for_interrupts(token: Optional[CancellationToken]) -> None:
    """token 为 None 时不做任何事"""
    if token is not None:
        token.check()
