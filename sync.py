"""Keep an editing session in step with a key-value store holding the outline text."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, Dict, List, Optional, Protocol

from mmd_io import has_content
from node_models import MindNode
from session import EditingSession


logger = logging.getLogger(__name__)

DEFAULT_SYNC_KEY = "mindmap-mermaid"

ValueCallback = Callable[[Optional[str]], None]


class KeyValueStore(Protocol):
    """The slice of a cloud key-value client the sync session relies on."""

    def get_value(self, key: str) -> Optional[str]:
        ...

    def set_value(self, key: str, value: str) -> None:
        ...

    def subscribe(self, key: str, callback: ValueCallback) -> Callable[[], None]:
        ...


class InMemoryStore:
    """Process-local store; notifies subscribers synchronously on every write."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})
        self._subscribers: DefaultDict[str, List[ValueCallback]] = defaultdict(list)

    def get_value(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self._values[key] = value
        for callback in list(self._subscribers[key]):
            callback(value)

    def subscribe(self, key: str, callback: ValueCallback) -> Callable[[], None]:
        self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[key]:
                self._subscribers[key].remove(callback)

        return unsubscribe


class SyncSession:
    """Push local edits to the store and apply remote updates to the session.

    Only one pass touches the live tree at a time: updates that arrive while
    a local push is in flight are dropped, and applying a remote update does
    not trigger a push of the same content back. Store errors propagate.
    """

    def __init__(
        self,
        store: KeyValueStore,
        session: EditingSession,
        key: str = DEFAULT_SYNC_KEY,
    ) -> None:
        self.store = store
        self.session = session
        self.key = key
        self._last_text: Optional[str] = None
        self._pushing = False
        self._applying = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._remove_listener: Optional[Callable[[], None]] = None

    @property
    def is_running(self) -> bool:
        return self._unsubscribe is not None

    def load_initial(self) -> bool:
        value = self.store.get_value(self.key)
        if not has_content(value):
            logger.info("No stored map under %r", self.key)
            return False
        self._apply(value)
        return True

    def start(self) -> None:
        if self.is_running:
            return
        self._unsubscribe = self.store.subscribe(self.key, self._on_remote_value)
        self._remove_listener = self.session.add_listener(self._on_local_change)
        logger.info("Sync started for key %r", self.key)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        logger.info("Sync stopped for key %r", self.key)

    def push(self) -> bool:
        """Write the current tree to the store; False when nothing was sent."""
        if self._applying:
            return False
        text = self.session.export_text()
        if text == self._last_text:
            return False
        self._pushing = True
        try:
            self.store.set_value(self.key, text)
        finally:
            self._pushing = False
        self._last_text = text
        logger.debug("Pushed %d characters under %r", len(text), self.key)
        return True

    def _on_local_change(self, root: MindNode) -> None:
        self.push()

    def _on_remote_value(self, value: Optional[str]) -> None:
        if not has_content(value):
            return
        if self._pushing:
            logger.debug("Dropping remote update received during a local push")
            return
        if value == self._last_text:
            return
        logger.info("Applying remote update under %r", self.key)
        self._apply(value)

    def _apply(self, value: str) -> None:
        self._applying = True
        try:
            self.session.replace_from_text(value)
        finally:
            self._applying = False
        self._last_text = value
