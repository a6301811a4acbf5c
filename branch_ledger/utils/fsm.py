"""Simple finite state machine utility for enforcing allowed status transitions.

Used by the payable/receivable engines.
Usage:
    from branch_ledger.utils.fsm import TransitionValidator
    AP_FSM = TransitionValidator({
        'PENDING': {'PAID', 'CANCELLED'},
        'PAID': set(),
        'CANCELLED': set(),
    }, messages={('PAID', 'PAID'): 'already paid'})
    AP_FSM.assert_can_transition(current_status, target_status)

Raises InvalidState if invalid. ``messages`` maps ``(current, target)`` or just
``current`` to the domain reason reported to the caller.
"""
from __future__ import annotations
from typing import Dict, Optional, Set, Tuple, Union
from branch_ledger.errors import InvalidState

MessageKey = Union[str, Tuple[str, str]]


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status',
                 messages: Optional[Dict[MessageKey, str]] = None):
        self.graph = graph
        self.field_name = field_name
        self.messages = messages or {}

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            detail = (self.messages.get((current, target))
                      or self.messages.get(current)
                      or f"Invalid {self.field_name} transition {current} -> {target}")
            raise InvalidState(detail)
        return True

    def is_terminal(self, status: str) -> bool:
        return not self.graph.get(status)

__all__ = ['TransitionValidator']
