"""
Automation Engine

Provides:
- Trigger dispatch (match, evaluate, execute)
- Rule management surface for the host
- Event-source entry points
- Daily scheduler wiring
"""

import asyncio
import contextvars
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Callable, Union
from datetime import datetime
from enum import Enum

from .collaborators import NotificationSink, DocumentStore, ItemRegistry
from .config import AutomationSettings
from .errors import AutomationError, ErrorLog, ErrorType, ErrorSeverity
from .rules.actions import ActionExecutor, ActionResult, ActionStatus
from .rules.conditions import evaluate_conditions
from .rules.defaults import get_default_rules
from .rules.loader import RuleLoadReport, load_rules_from_directory
from .rules.models import Rule, TriggerType, parse_trigger_type
from .rules.registry import RuleRegistry
from .scheduler import Clock, DailyScheduler

logger = logging.getLogger("AutomationEngine")

DONE_STATUSES = ("done", "completed")
ACTIVE_STATUSES = ("active", "in_progress")

# Rules running in the current call chain, used to stop a rule re-triggering itself
_running_rules: contextvars.ContextVar = contextvars.ContextVar("running_rules", default=frozenset())


class RuleStatus(Enum):
    """Outcome of one rule within a dispatch"""
    NOT_MATCHED = "not_matched"
    SKIPPED = "skipped"
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass
class RuleResult:
    """Result of running one rule"""

    rule_id: str
    status: RuleStatus
    action_results: List[ActionResult] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "status": self.status.value,
            "action_results": [r.to_dict() for r in self.action_results],
            "error": self.error
        }


@dataclass
class DispatchResult:
    """Diagnostics for one dispatch; callers are free to ignore it"""

    trigger_type: str
    rule_results: List[RuleResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    duration_ms: float = 0.0

    @property
    def matched_rule_ids(self) -> List[str]:
        return [r.rule_id for r in self.rule_results]

    @property
    def executed_rule_ids(self) -> List[str]:
        return [r.rule_id for r in self.rule_results if r.status == RuleStatus.EXECUTED]

    def to_dict(self) -> dict:
        return {
            "trigger_type": self.trigger_type,
            "matched_rule_ids": self.matched_rule_ids,
            "executed_rule_ids": self.executed_rule_ids,
            "rule_results": [r.to_dict() for r in self.rule_results],
            "started_at": self.started_at.isoformat(),
            "duration_ms": self.duration_ms
        }


class AutomationEngine:
    """
    Reacts to domain events by running matching automation rules.

    dispatch() is the single entry point for every event source, the daily
    scheduler included. It never raises: condition errors count as false and
    action errors are isolated per action.
    """

    def __init__(
        self,
        settings: Optional[AutomationSettings] = None,
        notifications: Optional[NotificationSink] = None,
        documents: Optional[DocumentStore] = None,
        items: Optional[ItemRegistry] = None,
        error_log: Optional[ErrorLog] = None,
        registry: Optional[RuleRegistry] = None,
        clock: Optional[Clock] = None,
        daily_context_factory: Optional[Callable[[], Dict[str, Any]]] = None
    ):
        self.settings = settings or AutomationSettings()
        self.error_log = error_log if error_log is not None else ErrorLog(max_size=self.settings.error_log_size)
        self.registry = registry if registry is not None else RuleRegistry()
        self.executor = ActionExecutor(
            notifications=notifications,
            documents=documents,
            items=items,
            error_log=self.error_log,
            timeout_seconds=self.settings.action_timeout_seconds,
            notify_on_failure=self.settings.notify_on_failure
        )
        self.scheduler = DailyScheduler(
            self.dispatch,
            hour=self.settings.daily_hour,
            minute=self.settings.daily_minute,
            clock=clock,
            context_factory=daily_context_factory
        )

        self._enabled = self.settings.enable_automation
        self._rule_locks: Dict[str, asyncio.Lock] = {}

        # Statistics
        self.dispatch_count = 0
        self.match_count = 0
        self.execution_count = 0
        self.failure_count = 0

    # Lifecycle

    async def initialize(
        self,
        load_defaults: bool = True,
        rules_folder: Optional[str] = None,
        start_scheduler: bool = True
    ) -> RuleLoadReport:
        """Install default rules, load external rules and start the scheduler"""
        report = RuleLoadReport()
        if not self._enabled:
            logger.info("Automation disabled; skipping initialization")
            return report

        if load_defaults:
            for rule in get_default_rules():
                self.registry.add(rule)

        report = load_rules_from_directory(
            rules_folder or self.settings.rules_folder,
            error_log=self.error_log
        )
        for rule in report.rules:
            self.registry.add(rule)

        if start_scheduler:
            self.scheduler.start()

        logger.info(f"Automation engine initialized with {len(self.registry)} rule(s)")
        return report

    async def shutdown(self) -> None:
        """Stop the daily scheduler"""
        await self.scheduler.stop()

    # Rule management

    def add_rule(self, rule: Rule) -> None:
        """Add or replace a rule"""
        self.registry.add(rule)

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule; its lock is kept for invocations still in flight or re-added later"""
        return self.registry.remove(rule_id)

    def enable_rule(self, rule_id: str) -> bool:
        """Enable a rule"""
        return self.registry.enable(rule_id)

    def disable_rule(self, rule_id: str) -> bool:
        """Disable a rule; dispatches already running it are not interrupted"""
        return self.registry.disable(rule_id)

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by ID"""
        return self.registry.get(rule_id)

    def list_rules(self) -> List[Rule]:
        """Get all rules"""
        return self.registry.list()

    def set_engine_enabled(self, enabled: bool) -> None:
        """Globally enable or disable dispatch"""
        self._enabled = bool(enabled)
        logger.info(f"Automation {'enabled' if self._enabled else 'disabled'}")

    def is_engine_enabled(self) -> bool:
        return self._enabled

    # Dispatch

    async def dispatch(
        self,
        trigger_type: Union[TriggerType, str],
        context: Optional[Dict[str, Any]] = None
    ) -> DispatchResult:
        """Run every enabled rule for trigger_type against context"""
        started_at = datetime.now()
        context = context if context is not None else {}

        try:
            resolved = parse_trigger_type(trigger_type)
        except ValueError:
            logger.warning(f"Ignoring unknown trigger type: {trigger_type}")
            return DispatchResult(trigger_type=str(trigger_type), started_at=started_at)

        result = DispatchResult(trigger_type=resolved.value, started_at=started_at)
        if not self._enabled:
            return result

        self.dispatch_count += 1
        try:
            for rule in self.registry.matching(resolved):
                result.rule_results.append(await self._run_rule(rule, context))
        except Exception as e:
            self.error_log.record(e, {"trigger_type": resolved.value})

        result.duration_ms = (datetime.now() - started_at).total_seconds() * 1000
        logger.debug(
            f"Dispatched {resolved.value}: {len(result.matched_rule_ids)} matched, "
            f"{len(result.executed_rule_ids)} executed"
        )
        return result

    async def _run_rule(self, rule: Rule, context: Dict[str, Any]) -> RuleResult:
        """Evaluate one rule and run its actions, holding the rule's lock"""
        running = _running_rules.get()
        if rule.id in running:
            logger.warning(f"Rule {rule.id} re-triggered by its own actions; skipping")
            return RuleResult(rule_id=rule.id, status=RuleStatus.SKIPPED, error="Recursive trigger")

        lock = self._rule_locks.setdefault(rule.id, asyncio.Lock())
        async with lock:
            self.match_count += 1
            token = _running_rules.set(running | {rule.id})
            try:
                if not evaluate_conditions(rule.conditions, context):
                    return RuleResult(rule_id=rule.id, status=RuleStatus.NOT_MATCHED)

                action_context = self._action_context(rule, context)
                action_results = await self.executor.execute_all(rule.actions, action_context)
                self.execution_count += 1

                failed = [r for r in action_results if r.status in (ActionStatus.FAILED, ActionStatus.TIMEOUT)]
                if failed:
                    self.failure_count += 1
                    logger.warning(f"Rule {rule.name}: {len(failed)} action(s) failed")
                else:
                    logger.info(f"Rule triggered: {rule.name}")

                return RuleResult(
                    rule_id=rule.id,
                    status=RuleStatus.FAILED if failed else RuleStatus.EXECUTED,
                    action_results=action_results
                )

            except Exception as e:
                self.failure_count += 1
                self.error_log.record(
                    AutomationError(
                        f"Rule {rule.id} failed: {e}",
                        error_type=ErrorType.AUTOMATION,
                        severity=ErrorSeverity.HIGH,
                        context={"rule_id": rule.id}
                    )
                )
                return RuleResult(rule_id=rule.id, status=RuleStatus.FAILED, error=str(e))

            finally:
                _running_rules.reset(token)

    @staticmethod
    def _action_context(rule: Rule, context: Dict[str, Any]) -> Dict[str, Any]:
        """Context seen by actions; exposes the trigger parameters"""
        if "trigger" in context:
            return context
        return {
            **context,
            "trigger": {
                "type": rule.trigger.type.value,
                "parameters": dict(rule.trigger.parameters)
            }
        }

    # Event sources

    async def on_item_created(self, item: Dict[str, Any], kind: str = "task") -> DispatchResult:
        """Dispatch item_created for a new task or project"""
        return await self.dispatch(TriggerType.ITEM_CREATED, {kind: dict(item), "kind": kind})

    async def on_item_modified(
        self,
        item: Dict[str, Any],
        previous: Optional[Dict[str, Any]] = None,
        kind: str = "task"
    ) -> List[DispatchResult]:
        """Dispatch triggers implied by a status change of an item"""
        previous = previous or {}
        status = str(item.get("status") or "").lower()
        previous_status = str(previous.get("status") or "").lower()
        context = {kind: dict(item), "kind": kind, "previous": dict(previous)}

        results = []
        if status != previous_status:
            if status in DONE_STATUSES and previous_status not in DONE_STATUSES:
                results.append(await self.dispatch(TriggerType.ITEM_COMPLETED, context))
            if kind == "project" and status in ACTIVE_STATUSES and previous_status not in ACTIVE_STATUSES:
                results.append(await self.dispatch(TriggerType.PROJECT_STARTED, context))
        return results

    def get_statistics(self) -> dict:
        """Get engine statistics"""
        rules = self.registry.snapshot()
        by_trigger: Dict[str, int] = {}
        for rule in rules:
            by_trigger[rule.trigger.type.value] = by_trigger.get(rule.trigger.type.value, 0) + 1

        return {
            "engine_enabled": self._enabled,
            "total_rules": len(rules),
            "enabled_rules": len([r for r in rules if r.enabled]),
            "by_trigger": by_trigger,
            "total_dispatches": self.dispatch_count,
            "total_matches": self.match_count,
            "total_executions": self.execution_count,
            "total_failures": self.failure_count,
            "action_stats": self.executor.get_statistics(),
            "scheduler": self.scheduler.get_status(),
            "errors": self.error_log.get_statistics()
        }
