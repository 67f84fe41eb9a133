from __future__ import annotations
"""Finite state machine helper for optional transition-graph enforcement.

Usage:
    from servicedesk.utils.fsm import TransitionValidator
    fsm = TransitionValidator(REPAIR.transitions)
    fsm.assert_can_transition(ticket.status, target)

Re-submitting the current status is always allowed (field-only edits).
Raises InvalidTransition (409) otherwise.
"""
from typing import Dict, Set
from servicedesk.errors import InvalidTransition


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def allowed_targets(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def can_transition(self, current: str, target: str) -> bool:
        return current == target or target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransition(description=f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']
