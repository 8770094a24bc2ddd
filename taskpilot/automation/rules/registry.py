"""
Rule Registry

Provides:
- Rule storage keyed by ID
- Enable/disable without removing definitions
- Consistent snapshots for concurrent dispatch
"""

import dataclasses
import logging
import threading
from typing import Dict, List, Optional, Tuple

from .models import Rule, TriggerType

logger = logging.getLogger("RuleRegistry")


class RuleRegistry:
    """
    Addressable, mutable set of rules.

    Writers take a lock and swap in a new dict (copy-on-write). Readers grab
    the current dict without locking, so a snapshot taken before a write is
    never affected by it.
    """

    def __init__(self):
        self._rules: Dict[str, Rule] = {}
        self._lock = threading.Lock()

    def add(self, rule: Rule) -> None:
        """Insert a rule, replacing any rule with the same ID"""
        with self._lock:
            rules = dict(self._rules)
            if rule.id in rules:
                logger.debug(f"Replacing rule {rule.id}")
            rules[rule.id] = rule
            self._rules = rules

    def remove(self, rule_id: str) -> bool:
        """Remove a rule; no-op when absent"""
        with self._lock:
            if rule_id not in self._rules:
                return False
            rules = dict(self._rules)
            del rules[rule_id]
            self._rules = rules
            return True

    def enable(self, rule_id: str) -> bool:
        """Enable a rule"""
        return self._set_enabled(rule_id, True)

    def disable(self, rule_id: str) -> bool:
        """Disable a rule"""
        return self._set_enabled(rule_id, False)

    def _set_enabled(self, rule_id: str, enabled: bool) -> bool:
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                return False
            if rule.enabled != enabled:
                rules = dict(self._rules)
                rules[rule_id] = dataclasses.replace(rule, enabled=enabled)
                self._rules = rules
            return True

    def get(self, rule_id: str) -> Optional[Rule]:
        """Get rule by ID, None when not found"""
        return self._rules.get(rule_id)

    def list(self) -> List[Rule]:
        """Get all rules"""
        return list(self._rules.values())

    def snapshot(self) -> Tuple[Rule, ...]:
        """Get all rules as one consistent, immutable view"""
        return tuple(self._rules.values())

    def matching(self, trigger_type: TriggerType) -> List[Rule]:
        """Get enabled rules for a trigger type from one snapshot"""
        return [
            rule for rule in self.snapshot()
            if rule.enabled and rule.trigger.type == trigger_type
        ]

    def clear(self) -> None:
        """Remove all rules"""
        with self._lock:
            self._rules = {}

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules
