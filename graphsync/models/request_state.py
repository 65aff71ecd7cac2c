"""Save / run / stop request lifecycle.

The editor holds exactly one ``RequestState``. Every change goes through
``transition``, a pure function of (current state, event), so the whole
lifecycle can be exercised without a backend.

    none/none --SaveRequested--> save|run / saving
    save/saving --SaveCompleted--> none/none
    run/saving --ValidationFailed--> none/none
    run/saving --ValidationPassed--> run/running
    run/running --RunStarted(id)--> run/running(id)
    run/running --StopRequested--> stop/stopping
    stop/stopping --RunStarted(id)--> stop/stopping(id), if no id yet
    */saving|running|stopping --RequestFailed--> */error
    */error --ErrorReported--> none/none
    */running|stopping --GraphExecutionFinished--> none/none
    none/none --ExecutionResumed(id)--> run/running(id)

Events that do not apply to the current state leave it unchanged.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel


class RequestKind(str, Enum):
    NONE = "none"
    SAVE = "save"
    RUN = "run"
    STOP = "stop"


class RequestPhase(str, Enum):
    NONE = "none"
    SAVING = "saving"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


class RequestState(BaseModel):
    """The single in-flight user request and where it stands."""

    model_config = {"frozen": True}

    request: RequestKind = RequestKind.NONE
    state: RequestPhase = RequestPhase.NONE
    active_execution_id: str | None = None

    @property
    def is_idle(self) -> bool:
        return self.state == RequestPhase.NONE

    @property
    def is_saving(self) -> bool:
        return self.state == RequestPhase.SAVING

    @property
    def is_running(self) -> bool:
        return self.state == RequestPhase.RUNNING

    @property
    def is_stopping(self) -> bool:
        return self.state == RequestPhase.STOPPING


IDLE = RequestState()


@dataclass(frozen=True)
class SaveRequested:
    run: bool = False


@dataclass(frozen=True)
class SaveCompleted:
    """The save finished and node identifiers are synced."""


@dataclass(frozen=True)
class ValidationFailed:
    message: str


@dataclass(frozen=True)
class ValidationPassed:
    pass


@dataclass(frozen=True)
class RunStarted:
    execution_id: str


@dataclass(frozen=True)
class RequestFailed:
    reason: str = ""


@dataclass(frozen=True)
class ErrorReported:
    """The single user-visible notice for an error has been issued."""


@dataclass(frozen=True)
class StopRequested:
    pass


@dataclass(frozen=True)
class GraphExecutionFinished:
    execution_id: str


@dataclass(frozen=True)
class ExecutionResumed:
    execution_id: str


RequestEvent = (
    SaveRequested
    | SaveCompleted
    | ValidationFailed
    | ValidationPassed
    | RunStarted
    | RequestFailed
    | ErrorReported
    | StopRequested
    | GraphExecutionFinished
    | ExecutionResumed
)

_IN_FLIGHT = (RequestPhase.SAVING, RequestPhase.RUNNING, RequestPhase.STOPPING)


def transition(current: RequestState, event: RequestEvent) -> RequestState:
    """Return the state that follows ``current`` after ``event``."""
    if isinstance(event, SaveRequested):
        if not current.is_idle:
            return current
        kind = RequestKind.RUN if event.run else RequestKind.SAVE
        return RequestState(request=kind, state=RequestPhase.SAVING)

    if isinstance(event, SaveCompleted):
        if current.is_saving and current.request == RequestKind.SAVE:
            return IDLE
        # a run request stays in saving until validation decides
        return current

    if isinstance(event, ValidationFailed):
        if current.is_saving and current.request == RequestKind.RUN:
            return IDLE
        return current

    if isinstance(event, ValidationPassed):
        if current.is_saving and current.request == RequestKind.RUN:
            return RequestState(request=RequestKind.RUN, state=RequestPhase.RUNNING)
        return current

    if isinstance(event, RunStarted):
        if current.request == RequestKind.RUN and current.is_running:
            return RequestState(
                request=RequestKind.RUN,
                state=RequestPhase.RUNNING,
                active_execution_id=event.execution_id,
            )
        if current.is_stopping and current.active_execution_id is None:
            # stop was requested while the run was starting
            return RequestState(
                request=RequestKind.STOP,
                state=RequestPhase.STOPPING,
                active_execution_id=event.execution_id,
            )
        return current

    if isinstance(event, RequestFailed):
        if current.state not in _IN_FLIGHT:
            return current
        return RequestState(
            request=current.request,
            state=RequestPhase.ERROR,
            active_execution_id=current.active_execution_id,
        )

    if isinstance(event, ErrorReported):
        return IDLE if current.state == RequestPhase.ERROR else current

    if isinstance(event, StopRequested):
        if not current.is_running:
            return current
        return RequestState(
            request=RequestKind.STOP,
            state=RequestPhase.STOPPING,
            active_execution_id=current.active_execution_id,
        )

    if isinstance(event, GraphExecutionFinished):
        if current.state in (RequestPhase.RUNNING, RequestPhase.STOPPING):
            return IDLE
        return current

    if isinstance(event, ExecutionResumed):
        if not current.is_idle:
            return current
        return RequestState(
            request=RequestKind.RUN,
            state=RequestPhase.RUNNING,
            active_execution_id=event.execution_id,
        )

    raise TypeError(f"unknown request event: {event!r}")
