"""
Directive Board — confirmation lifecycle for the directives of one message.

States per directive:
  PENDING → EXECUTING → EXECUTED      (success, terminal)
  PENDING → EXECUTING → PENDING       (failure, confirmable again)
  PENDING → DISMISSED                 (cancel, terminal, no write)

At most one execution per directive is in flight: a confirm that arrives
while the directive is executing is ignored.
"""

import asyncio
import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel

from nova_dream.directives.actions import render_card
from nova_dream.directives.executor import (
    ActionExecutor,
    ExecutionError,
    NotAuthenticatedError,
)
from nova_dream.directives.parser import (
    parse_directives,
    render_id_for,
    strip_directives,
)
from nova_dream.models.directive import (
    ActionCard,
    ActionDirective,
    DirectiveKey,
    DirectiveState,
)

logger = logging.getLogger(__name__)


class ConfirmStatus(str, Enum):
    EXECUTED = "executed"
    FAILED = "failed"
    IGNORED = "ignored"     # Not pending: executing, executed or dismissed


class ConfirmOutcome(BaseModel):
    key: DirectiveKey
    status: ConfirmStatus
    state: DirectiveState
    message: str
    record: Optional[dict] = None


class DirectiveBoard:
    """Parsed directives of one rendered message plus their UI state."""

    def __init__(
        self,
        content: str,
        executor: ActionExecutor,
        render_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ):
        self.content = content
        self.executor = executor
        self.owner_id = owner_id
        self.render_id = render_id or render_id_for(content)
        self.directives: List[ActionDirective] = parse_directives(content, self.render_id)
        self.text = strip_directives(content)
        self._by_key: Dict[DirectiveKey, ActionDirective] = {
            d.key: d for d in self.directives
        }
        self._executing: Set[DirectiveKey] = set()
        self._executed: Set[DirectiveKey] = set()
        self._dismissed: Set[DirectiveKey] = set()

    def get(self, key: DirectiveKey) -> ActionDirective:
        """Get a directive by key. Raises KeyError for unknown keys."""
        return self._by_key[key]

    def state(self, key: DirectiveKey) -> DirectiveState:
        self.get(key)
        if key in self._dismissed:
            return DirectiveState.DISMISSED
        if key in self._executed:
            return DirectiveState.EXECUTED
        if key in self._executing:
            return DirectiveState.EXECUTING
        return DirectiveState.PENDING

    def cards(self, include_dismissed: bool = False) -> List[ActionCard]:
        """Cards to display, in text order. Dismissed cards are hidden."""
        cards = []
        for directive in self.directives:
            state = self.state(directive.key)
            if state == DirectiveState.DISMISSED and not include_dismissed:
                continue
            cards.append(render_card(directive, state))
        return cards

    async def confirm(self, key: DirectiveKey, owner_id: Optional[str]) -> ConfirmOutcome:
        """Execute a pending directive once."""
        directive = self.get(key)
        state = self.state(key)
        if state != DirectiveState.PENDING:
            return ConfirmOutcome(
                key=key,
                status=ConfirmStatus.IGNORED,
                state=state,
                message=f"Action is {state.value}",
            )

        if not owner_id:
            return ConfirmOutcome(
                key=key,
                status=ConfirmStatus.FAILED,
                state=state,
                message="You must be signed in to run this action",
            )

        if self.owner_id is not None and owner_id != self.owner_id:
            return ConfirmOutcome(
                key=key,
                status=ConfirmStatus.FAILED,
                state=state,
                message="This action belongs to another user",
            )

        self._executing.add(key)
        try:
            result = await asyncio.to_thread(self.executor.execute, directive, owner_id)
        except (ExecutionError, NotAuthenticatedError) as e:
            logger.warning("Directive %s failed: %s", key, e)
            return ConfirmOutcome(
                key=key,
                status=ConfirmStatus.FAILED,
                state=DirectiveState.PENDING,
                message=f"Error while running the action: {e}",
            )
        finally:
            self._executing.discard(key)

        self._executed.add(key)
        return ConfirmOutcome(
            key=key,
            status=ConfirmStatus.EXECUTED,
            state=DirectiveState.EXECUTED,
            message=result.message,
            record=result.record,
        )

    def cancel(self, key: DirectiveKey) -> DirectiveState:
        """Dismiss a pending directive. Other states are left unchanged."""
        state = self.state(key)
        if state == DirectiveState.PENDING:
            self._dismissed.add(key)
            return DirectiveState.DISMISSED
        return state


class BoardRegistry:
    """
    Boards of the messages currently on screen, per owner.

    Bounded: registering past max_boards evicts the least recently used
    board. A board is only visible to the owner it was registered for.
    """

    def __init__(self, max_boards: int = 1000):
        self.max_boards = max_boards
        self._boards: "OrderedDict[str, DirectiveBoard]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._boards)

    def register(self, board: DirectiveBoard) -> DirectiveBoard:
        with self._lock:
            self._boards[board.render_id] = board
            self._boards.move_to_end(board.render_id)
            while len(self._boards) > self.max_boards:
                evicted, _ = self._boards.popitem(last=False)
                logger.debug("Board %s evicted", evicted)
        return board

    def get(self, render_id: str, owner_id: Optional[str]) -> DirectiveBoard:
        """Board for a render id. Raises KeyError if absent or owned by someone else."""
        with self._lock:
            board = self._boards.get(render_id)
            if board is None or board.owner_id != owner_id:
                raise KeyError(render_id)
            self._boards.move_to_end(render_id)
            return board
