"""Канал уведомлений: рассылка обновлённой аналитики подписчикам сессии"""
import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List

from services.analytics import SessionAnalytics

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, SessionAnalytics], Awaitable[None]]


class AnalyticsNotifier:
    """Подписчики по коду сессии (в памяти процесса)"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    @staticmethod
    def _key(session_code: str) -> str:
        return session_code.strip().upper()

    def subscribe(self, session_code: str, callback: Subscriber) -> None:
        subscribers = self._subscribers[self._key(session_code)]
        if callback not in subscribers:
            subscribers.append(callback)

    def unsubscribe(self, session_code: str, callback: Subscriber) -> bool:
        key = self._key(session_code)
        subscribers = self._subscribers.get(key, [])
        if callback not in subscribers:
            return False
        subscribers.remove(callback)
        if not subscribers:
            del self._subscribers[key]
        return True

    def subscriber_count(self, session_code: str) -> int:
        return len(self._subscribers.get(self._key(session_code), []))

    async def publish(self, session_code: str, analytics: SessionAnalytics) -> int:
        """Отправить аналитику всем подписчикам; возвращает число успешных доставок"""
        key = self._key(session_code)
        subscribers = list(self._subscribers.get(key, []))
        if not subscribers:
            return 0

        results = await asyncio.gather(
            *(callback(key, analytics) for callback in subscribers),
            return_exceptions=True,
        )

        delivered = 0
        for callback, result in zip(subscribers, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to deliver analytics for {key} to {callback!r}: {result}")
            else:
                delivered += 1
        return delivered
