from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class ReplayState:
    is_replaying: bool = False


def mark_replay_started(state: ReplayState) -> None:
    state.is_replaying = True


def mark_replay_ended(state: ReplayState) -> None:
    state.is_replaying = False


@runtime_checkable
class ReplayAware(Protocol):
    """Object that needs to know when recorded actions are being replayed.

    Implementations hold a `ReplayState` and forward to the free functions:

      class CounterStore:
          def __init__(self) -> None:
              self.replay_state = ReplayState()

          def note_replay_started(self) -> None:
              mark_replay_started(self.replay_state)

          def note_replay_ended(self) -> None:
              mark_replay_ended(self.replay_state)

    """

    replay_state: ReplayState

    def note_replay_started(self) -> None: ...

    def note_replay_ended(self) -> None: ...
