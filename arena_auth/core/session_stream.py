"""Current-session observable relayed from the identity provider."""

from collections.abc import Callable

import structlog

from arena_auth.schemas.identity import Session

logger = structlog.get_logger(__name__)

SessionListener = Callable[[Session | None], None]


class SessionStream:
    """
    Holds exactly one current session value and pushes every replacement.

    Subscribers are called once with the current value when they subscribe
    and again on every publish. Listeners run synchronously on the caller's
    event loop, so they must not block.
    """

    def __init__(self, initial: Session | None = None):
        self._current = initial
        self._listeners: list[SessionListener] = []

    @property
    def current(self) -> Session | None:
        """The latest published session, or None."""
        return self._current

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener and replay the current value to it.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)
        listener(self._current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, session: Session | None) -> None:
        """Replace the current session and notify every listener."""
        self._current = session
        logger.info(
            "session_changed",
            user_id=session.identity.id if session else None,
            listeners=len(self._listeners),
        )
        for listener in list(self._listeners):
            listener(session)
