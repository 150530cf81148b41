"""Session-token coordinator: decides when game tokens are created, replaced or cleared."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

import structlog

from arena_auth.core.exceptions import NoActiveSessionError, SyncError
from arena_auth.core.security import generate_token, mask_token
from arena_auth.schemas.identity import Identity, Session
from arena_auth.schemas.tokens import SyncIntent
from arena_auth.services.token_sync import TokenSynchronizer

logger = structlog.get_logger(__name__)


class CoordinatorPhase(str, Enum):
    """Token lifecycle phases for one client instance."""

    IDLE = "idle"
    PROVISIONING = "provisioning"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class CoordinatorState:
    """Everything the coordinator knows about the client-held token."""

    phase: CoordinatorPhase = CoordinatorPhase.IDLE
    user_id: str | None = None
    token: str | None = None
    # Bumped for every issued sync; completions of older generations are ignored
    generation: int = 0
    in_flight: int | None = None
    synced: bool = False


@dataclass(frozen=True, slots=True)
class SyncCommand:
    """A store call the coordinator wants executed."""

    intent: SyncIntent
    token: str
    user_id: str
    generation: int


@dataclass(frozen=True, slots=True)
class SessionChanged:
    session: Session | None


@dataclass(frozen=True, slots=True)
class LoginSucceeded:
    identity: Identity


@dataclass(frozen=True, slots=True)
class RegenerateRequested:
    pass


@dataclass(frozen=True, slots=True)
class SyncFinished:
    generation: int
    succeeded: bool


CoordinatorEvent = SessionChanged | LoginSucceeded | RegenerateRequested | SyncFinished


@dataclass(frozen=True, slots=True)
class Transition:
    state: CoordinatorState
    command: SyncCommand | None = None


def _issue(
    state: CoordinatorState,
    user_id: str,
    token: str,
    intent: SyncIntent,
    phase: CoordinatorPhase,
) -> Transition:
    generation = state.generation + 1
    next_state = replace(
        state,
        phase=phase,
        user_id=user_id,
        token=token,
        generation=generation,
        in_flight=generation,
        synced=False,
    )
    return Transition(next_state, SyncCommand(intent, token, user_id, generation))


def transition(
    state: CoordinatorState,
    event: CoordinatorEvent,
    new_token: Callable[[], str],
) -> Transition:
    """
    Compute the next state and the store call to make, if any.

    ``new_token`` is called only when a token is provisioned or regenerated.

    Raises:
        NoActiveSessionError: On a regeneration request without a session
    """
    match event:
        case SessionChanged(session=None):
            # Local value only; the store keeps its last record
            return Transition(CoordinatorState(generation=state.generation))

        case SessionChanged(session=session):
            user_id = session.identity.id
            if state.user_id == user_id and state.token is not None:
                return Transition(state)
            return _issue(
                state, user_id, new_token(), SyncIntent.CREATE, CoordinatorPhase.PROVISIONING
            )

        case LoginSucceeded(identity=identity):
            if state.user_id == identity.id and state.token is not None:
                return _issue(state, identity.id, state.token, SyncIntent.UPDATE, state.phase)
            return _issue(
                state, identity.id, new_token(), SyncIntent.CREATE, CoordinatorPhase.PROVISIONING
            )

        case RegenerateRequested():
            if state.user_id is None:
                raise NoActiveSessionError()
            return _issue(state, state.user_id, new_token(), SyncIntent.UPDATE, state.phase)

        case SyncFinished(generation=generation, succeeded=succeeded):
            if generation != state.in_flight:
                return Transition(state)
            if succeeded:
                return Transition(
                    replace(state, phase=CoordinatorPhase.READY, in_flight=None, synced=True)
                )
            return Transition(replace(state, in_flight=None))

    raise TypeError(f"unknown coordinator event: {event!r}")


class SessionTokenCoordinator:
    """
    Owns the client-held token and drives the synchronizer.

    State changes happen synchronously, so concurrent triggers on the event
    loop cannot interleave inside a transition. Each store call waits for the
    previously issued one, so calls run one at a time in trigger order; the
    latest trigger's token is the one kept locally. Nothing is cancelled.
    """

    def __init__(
        self,
        synchronizer: TokenSynchronizer,
        token_factory: Callable[[], str] = generate_token,
    ):
        self.synchronizer = synchronizer
        self.token_factory = token_factory
        self.status: str | None = None
        self._state = CoordinatorState()
        self._tail: asyncio.Task[bool] | None = None
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._state.token

    def _apply(self, event: CoordinatorEvent) -> SyncCommand | None:
        result = transition(self._state, event, self.token_factory)
        self._state = result.state
        return result.command

    def _issue_for(self, event: LoginSucceeded | RegenerateRequested) -> SyncCommand:
        command = self._apply(event)
        if command is None:
            raise RuntimeError(f"{type(event).__name__} produced no store call")
        return command

    def handle_session(self, session: Session | None) -> asyncio.Task[bool] | None:
        """
        Session stream listener.

        Returns:
            The scheduled sync task when the session change provisions a token
        """
        command = self._apply(SessionChanged(session))
        if session is None:
            logger.info("token_cleared")
            return None
        if command is None:
            return None

        return self._enqueue(command)

    async def handle_login(self, identity: Identity) -> bool:
        """
        Provision for a login result that may arrive before or after the session event.

        Returns:
            True if the store accepted the token
        """
        command = self._issue_for(LoginSucceeded(identity))
        return await self._enqueue(command)

    async def regenerate(self) -> str:
        """
        Replace the token with a fresh value and push it as an update.

        Returns:
            The new token, kept locally even if the store call fails

        Raises:
            NoActiveSessionError: If no session is active
        """
        command = self._issue_for(RegenerateRequested())
        self.status = "Token regenerated."
        await self._enqueue(command)
        return command.token

    async def wait_idle(self) -> None:
        """Wait until every scheduled sync has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _enqueue(self, command: SyncCommand) -> asyncio.Task[bool]:
        task = asyncio.create_task(
            self._execute(command, self._tail),
            name=f"token-sync:{command.generation}",
        )
        self._tail = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _execute(self, command: SyncCommand, previous: asyncio.Task[bool] | None) -> bool:
        if previous is not None:
            await asyncio.wait([previous])

        logger.info(
            "token_sync_started",
            intent=command.intent.value,
            user_id=command.user_id,
            generation=command.generation,
            token=mask_token(command.token),
        )
        try:
            await self.synchronizer.sync(command.intent, command.token, command.user_id)
        except SyncError as e:
            if command.generation == self._state.in_flight:
                self.status = e.message
            self._apply(SyncFinished(command.generation, succeeded=False))
            return False

        self._apply(SyncFinished(command.generation, succeeded=True))
        return True