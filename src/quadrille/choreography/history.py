"""
Bounded undo/redo history.

A linear list of reversible commands with a cursor at the last applied one.
Pushing after an undo drops the redo branch; the oldest commands are
evicted once the list grows past ``max_size``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

DEFAULT_MAX_SIZE = 100


@dataclass(frozen=True)
class Command:
    """One reversible change to the drill."""
    description: str
    undo: Callable[[], None]
    redo: Callable[[], None]


class History:
    """Undo/redo stack of :class:`Command` objects."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError(f"History max_size must be at least 1 (got {max_size})")
        self.max_size = max_size
        self._commands: List[Command] = []
        self._cursor = -1  # index of the last applied command, -1 = none

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def cursor(self) -> int:
        return self._cursor

    def push(self, command: Command) -> None:
        """Record an already-applied command."""
        del self._commands[self._cursor + 1:]
        self._commands.append(command)
        self._cursor = len(self._commands) - 1

        overflow = len(self._commands) - self.max_size
        if overflow > 0:
            del self._commands[:overflow]
            self._cursor -= overflow

    def can_undo(self) -> bool:
        return self._cursor >= 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._commands) - 1

    def undo(self) -> Optional[Command]:
        """Revert the current command; returns it, or None when there is nothing to undo."""
        if not self.can_undo():
            return None
        command = self._commands[self._cursor]
        command.undo()
        self._cursor -= 1
        return command

    def redo(self) -> Optional[Command]:
        """Re-apply the next command; returns it, or None at the end of the list."""
        if not self.can_redo():
            return None
        self._cursor += 1
        command = self._commands[self._cursor]
        command.redo()
        return command

    @property
    def undo_description(self) -> Optional[str]:
        return self._commands[self._cursor].description if self.can_undo() else None

    @property
    def redo_description(self) -> Optional[str]:
        return self._commands[self._cursor + 1].description if self.can_redo() else None

    def clear(self) -> None:
        self._commands.clear()
        self._cursor = -1
