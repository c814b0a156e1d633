"""
Состояние локали: пара (локаль, каталог), публикуемая подписчикам.

LocaleStore ведёт себя как writable-store UI-фреймворка:
    subscribe(callback) -> unsubscribe   (callback сразу получает текущее значение)
    set(locale, messages)                (атомарная замена + уведомление)

Снимок LocaleState неизменяем и заменяется одной ссылкой, поэтому
читатель никогда не увидит новую локаль со старым каталогом.
Активации сериализуются блокировкой; асинхронное переключение с
загрузкой каталога - через asyncio.Lock (свой для каждого цикла событий).
"""

import asyncio
import inspect
import logging
import threading
import weakref
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

Subscriber = Callable[[str], Any]
Unsubscriber = Callable[[], None]
CatalogLoader = Callable[[str], Union[Mapping[str, str], Awaitable[Mapping[str, str]]]]


@dataclass(frozen=True)
class LocaleState:
    """Неизменяемый снимок: активная локаль и её каталог."""
    locale: str
    messages: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


class LocaleStore:
    """Наблюдаемая активная локаль с каталогом сообщений."""

    def __init__(self, default_locale: str = DEFAULT_LOCALE,
                 default_messages: Optional[Mapping[str, str]] = None):
        self._state = LocaleState(default_locale, MappingProxyType(dict(default_messages or {})))
        self._subscribers: List[Subscriber] = []
        self._lock = threading.RLock()
        self._switch_locks = weakref.WeakKeyDictionary()  # цикл событий -> asyncio.Lock
        self._default_locale = default_locale

    # ── Чтение ──

    def current(self) -> LocaleState:
        """Текущий согласованный снимок (локаль, каталог)."""
        return self._state

    @property
    def locale(self) -> str:
        return self._state.locale

    @property
    def messages(self) -> Mapping[str, str]:
        return self._state.messages

    @property
    def default_locale(self) -> str:
        return self._default_locale

    # ── Подписка ──

    def subscribe(self, callback: Subscriber) -> Unsubscriber:
        """
        Подписывает callback на смену локали.

        Callback вызывается сразу с текущей локалью и затем после каждой
        активации.

        Returns:
            Функция отписки
        """
        with self._lock:
            self._subscribers.append(callback)
            locale = self._state.locale
        callback(locale)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ── Изменение ──

    def activate(self, locale: str, messages: Optional[Mapping[str, str]] = None) -> LocaleState:
        """
        Атомарно заменяет локаль и каталог и уведомляет подписчиков.

        Замена и уведомление выполняются под одной блокировкой: две
        активации не перемешиваются.
        """
        if not locale:
            raise ValueError("locale must be a non-empty string")
        state = LocaleState(locale, MappingProxyType(dict(messages or {})))
        with self._lock:
            self._state = state
            subscribers = list(self._subscribers)
            logger.debug("Активирована локаль %s (%d сообщений)", locale, len(state.messages))
            for callback in subscribers:
                callback(locale)
        return state

    set = activate

    def reset(self) -> LocaleState:
        """Возвращает локаль по умолчанию с пустым каталогом."""
        return self.activate(self._default_locale, {})

    def _loop_switch_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._lock:
            lock = self._switch_locks.get(loop)
            if lock is None:
                lock = self._switch_locks[loop] = asyncio.Lock()
        return lock

    async def switch(self, locale: str, loader: CatalogLoader) -> LocaleState:
        """
        Загружает каталог через loader и активирует локаль.

        Переключения выполняются строго по очереди: второе дождётся
        завершения первого и перезапишет его результат.

        Args:
            locale: Целевая локаль
            loader: loader(locale) -> messages (синхронный или async)
        """
        async with self._loop_switch_lock():
            messages = loader(locale)
            if inspect.isawaitable(messages):
                messages = await messages
            return self.activate(locale, messages)


class DerivedStore:
    """
    Производный store: значение вычисляется из локали источника.

    Аналог derived(locale, () => fn) - подписчики получают новое значение
    при каждой смене локали.
    """

    def __init__(self, source: LocaleStore, compute: Callable[[LocaleState], Any]):
        self._source = source
        self._compute = compute

    def get(self) -> Any:
        return self._compute(self._source.current())

    def subscribe(self, callback: Callable[[Any], Any]) -> Unsubscriber:
        return self._source.subscribe(lambda _locale: callback(self.get()))
