"""
Session gate: decides whether to show a loading placeholder, the sign-in
form or the application, based on an injected session provider.

The gate never owns the session lifecycle. It only holds the subscription
handle returned by the provider and releases it on close().
"""

import enum
import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class SessionProvider(Protocol):
    def get_session(self) -> Optional[Any]: ...

    def subscribe(self, callback: Callable[[str, Optional[Any]], None]) -> Subscription: ...


class SessionGate:
    def __init__(self, provider: SessionProvider):
        self.provider = provider
        self.state = SessionState.LOADING
        self.session = None
        self._subscription = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def start(self) -> SessionState:
        """Fetch the current session once and subscribe to changes."""
        try:
            self._apply(self.provider.get_session())
        except Exception as e:
            # no retry: the gate stays in LOADING until a change notification arrives
            logger.error("Initial session fetch failed: %s", e)
        if self._subscription is None:
            self._subscription = self.provider.subscribe(self._on_change)
        return self.state

    def _on_change(self, event, session):
        logger.debug("Session change: %s", event)
        self._apply(session)

    def _apply(self, session):
        self.session = session
        self.state = SessionState.AUTHENTICATED if session else SessionState.UNAUTHENTICATED

    def render(self, loading: Callable[[], Any], sign_in: Callable[[], Any], content: Callable[[], Any]):
        if self.state is SessionState.LOADING:
            return loading()
        if self.state is SessionState.UNAUTHENTICATED:
            return sign_in()
        return content()

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
