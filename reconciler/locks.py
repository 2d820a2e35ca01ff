"""
계정별 락 관리

같은 계정을 건드리는 변경(이체, 상태/한도 변경)을 계정 단위로 직렬화한다.
여러 계정을 잡을 때는 항상 account_id 오름차순으로 획득해 교착을 막는다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from core.errors import LockTimeout

logger = logging.getLogger(__name__)


class AccountLockManager:
    """계정별 asyncio.Lock 관리자

    Args:
        default_timeout: 기본 락 획득 제한 시간(초). None이면 무제한 대기

    사용 예시:
    ```python
    locks = AccountLockManager(default_timeout=5.0)

    async with locks.hold("CASH-1", "BANK-1"):
        # BANK-1 → CASH-1 순서로 획득됨
        ...
    ```
    """

    def __init__(self, default_timeout: float | None = None):
        self.default_timeout = default_timeout
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, account_id: str) -> asyncio.Lock:
        """계정 락 반환 (없으면 생성)"""
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(
        self,
        *account_ids: str,
        timeout: float | None = None,
    ) -> AsyncIterator[list[str]]:
        """여러 계정 락을 오름차순으로 획득

        제한 시간 안에 모두 획득하지 못하면 이미 잡은 락을 풀고
        LockTimeout을 던진다 (부분 상태 없음).

        Args:
            account_ids: 잠글 계정 ID (중복 허용)
            timeout: 전체 획득 제한 시간(초). None이면 default_timeout

        Yields:
            실제 획득 순서의 계정 ID 목록

        Raises:
            LockTimeout: 제한 시간 초과
        """
        ordered = sorted(set(account_ids))
        limit = self.default_timeout if timeout is None else timeout

        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit if limit is not None else None

        acquired: list[asyncio.Lock] = []
        try:
            for account_id in ordered:
                lock = self.lock_for(account_id)

                if deadline is None:
                    await lock.acquire()
                else:
                    remaining = max(deadline - loop.time(), 0.0)
                    try:
                        await asyncio.wait_for(lock.acquire(), timeout=remaining)
                    except asyncio.TimeoutError:
                        logger.warning(
                            "계정 락 획득 시간 초과",
                            extra={"account_id": account_id, "timeout": limit},
                        )
                        raise LockTimeout(
                            f"계정 락 획득 시간 초과: {account_id}",
                            account_id=account_id,
                            timeout=limit,
                        ) from None

                acquired.append(lock)

            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
