"""
Rule Actions

Provides:
- Action execution against collaborators
- Per-action failure isolation
- Action results and statistics
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Callable, Iterable
from datetime import datetime
from enum import Enum

from ..collaborators import NotificationSink, DocumentStore, ItemRegistry
from ..errors import ActionExecutionError, ErrorLog
from .context import MISSING, get_field_value
from .models import Action, ActionType, parse_action_type
from .templates import interpolate

logger = logging.getLogger("RuleActions")


class ActionStatus(str, Enum):
    """Action execution status"""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"


@dataclass
class ActionResult:
    """Result of action execution"""

    action_type: str
    status: ActionStatus
    output: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "action_type": self.action_type,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms
        }


class ActionSkipped(Exception):
    """Raised by a handler when the action cannot apply to this context"""


def _type_name(action_type: Any) -> str:
    return action_type.value if isinstance(action_type, Enum) else str(action_type)


def _interpolate_fields(parameters: Dict[str, Any], context: Dict[str, Any]) -> Dict[str, Any]:
    """Interpolate string parameters, pass other values through"""
    return {
        key: interpolate(value, context) if isinstance(value, str) else value
        for key, value in parameters.items()
    }


def _context_id(context: Dict[str, Any], *paths: str) -> Optional[str]:
    """First non-empty identifier found at the given context paths"""
    for path in paths:
        value = get_field_value(context, path)
        if value is not MISSING and value is not None and value != "":
            return str(value)
    return None


class ActionExecutor:
    """
    Executes rule actions.

    Computes what each action should do from its parameters and the event
    context, then delegates the effect to a collaborator. Errors never
    propagate out of execute(); they are logged, recorded and returned as a
    failed result.
    """

    def __init__(
        self,
        notifications: Optional[NotificationSink] = None,
        documents: Optional[DocumentStore] = None,
        items: Optional[ItemRegistry] = None,
        error_log: Optional[ErrorLog] = None,
        timeout_seconds: float = 30.0,
        notify_on_failure: bool = True
    ):
        self.notifications = notifications
        self.documents = documents
        self.items = items
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.timeout_seconds = timeout_seconds
        self.notify_on_failure = notify_on_failure

        self._handlers: Dict[ActionType, Callable] = {
            ActionType.SEND_NOTIFICATION: self._send_notification,
            ActionType.CREATE_ITEM: self._create_item,
            ActionType.UPDATE_ITEM: self._update_item,
            ActionType.UPDATE_STATUS: self._update_status,
            ActionType.CREATE_NOTE: self._create_note,
            ActionType.SEND_EMAIL: self._send_email,
        }

        # Statistics
        self.execution_count = 0
        self.success_count = 0
        self.failure_count = 0
        self.skip_count = 0

    async def execute(self, action: Action, context: Dict[str, Any]) -> ActionResult:
        """Execute one action; never raises"""
        type_name = _type_name(action.type)
        started_at = datetime.now()
        self.execution_count += 1

        action_type = parse_action_type(action.type)
        handler = self._handlers.get(action_type) if isinstance(action_type, ActionType) else None
        if handler is None:
            logger.warning(f"Unknown automation action type: {type_name}")
            return self._finish(type_name, ActionStatus.SKIPPED, started_at, error="Unknown action type")

        try:
            output = await asyncio.wait_for(
                handler(dict(action.parameters or {}), context),
                timeout=self.timeout_seconds
            )
            self.success_count += 1
            return self._finish(type_name, ActionStatus.COMPLETED, started_at, output=output)

        except ActionSkipped as e:
            logger.warning(f"Skipped {type_name} action: {e}")
            return self._finish(type_name, ActionStatus.SKIPPED, started_at, error=str(e))

        except asyncio.TimeoutError:
            error = ActionExecutionError(
                f"Action {type_name} timed out after {self.timeout_seconds}s",
                context=self._diagnostic_context(type_name, context)
            )
            self.error_log.record(error)
            self.failure_count += 1
            return self._finish(type_name, ActionStatus.TIMEOUT, started_at, error=str(error))

        except Exception as e:
            logger.error(f"Error executing automation action {type_name}: {e}")
            details = self.error_log.record(e, self._diagnostic_context(type_name, context))
            self.failure_count += 1
            if action_type == ActionType.SEND_NOTIFICATION:
                await self._notify_failure(details.user_message)
            return self._finish(type_name, ActionStatus.FAILED, started_at, error=str(e))

    async def execute_all(
        self,
        actions: Iterable[Action],
        context: Dict[str, Any]
    ) -> List[ActionResult]:
        """Execute actions sequentially in declared order"""
        results = []
        for action in actions:
            results.append(await self.execute(action, context))
        return results

    def _finish(
        self,
        type_name: str,
        status: ActionStatus,
        started_at: datetime,
        output: Any = None,
        error: Optional[str] = None
    ) -> ActionResult:
        if status == ActionStatus.SKIPPED:
            self.skip_count += 1
        completed_at = datetime.now()
        return ActionResult(
            action_type=type_name,
            status=status,
            output=output,
            error=error,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=(completed_at - started_at).total_seconds() * 1000
        )

    @staticmethod
    def _diagnostic_context(type_name: str, context: Dict[str, Any]) -> Dict[str, Any]:
        return {"action_type": type_name, "context_keys": sorted(str(k) for k in context)}

    async def _call(self, func: Callable, *args) -> Any:
        """Call a collaborator method, awaiting it when it is async"""
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _notify_failure(self, message: str) -> None:
        if not self.notify_on_failure or self.notifications is None:
            return
        try:
            await self._call(self.notifications.show, message)
        except Exception as e:
            logger.error(f"Failure notification could not be shown: {e}")

    # Handlers

    async def _send_notification(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        if self.notifications is None:
            raise ActionSkipped("no notification sink configured")
        message = interpolate(parameters.get("message"), context)
        await self._call(self.notifications.show, message)
        return {"message": message}

    async def _create_item(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        if self.items is None:
            raise ActionSkipped("no item registry configured")
        fields = _interpolate_fields(parameters, context)
        fields.setdefault("kind", "task")
        if not fields.get("title"):
            raise ActionSkipped("create_item requires a title")
        item_id = await self._call(self.items.create_item, fields)
        logger.info(f"Automation: created {fields['kind']} \"{fields['title']}\"")
        return {"item_id": item_id, "fields": fields}

    async def _update_item(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        if self.items is None:
            raise ActionSkipped("no item registry configured")
        fields = _interpolate_fields(parameters, context)
        kind = str(fields.pop("kind", "task"))
        item_id = fields.pop("item_id", None) or fields.pop("taskId", None)
        fields.pop("taskId", None)
        item_id = item_id or _context_id(context, f"{kind}.id")
        if not item_id:
            raise ActionSkipped(f"no {kind} id in parameters or context")
        if not fields:
            raise ActionSkipped("update_item has no fields to update")
        await self._call(self.items.update_item, item_id, fields)
        logger.info(f"Automation: updated {kind} {item_id}")
        return {"item_id": item_id, "fields": fields}

    async def _update_status(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        if self.items is None:
            raise ActionSkipped("no item registry configured")
        params = _interpolate_fields(parameters, context)
        target = str(params.get("target") or params.get("type") or "task")
        status = params.get("status")

        if target == "milestone":
            item_id = params.get("item_id") or _context_id(context, "project.id", "task.project")
            if not item_id:
                raise ActionSkipped("no project to check milestones for")
            fields: Dict[str, Any] = {"milestone_check": True}
            if params.get("milestone"):
                fields["milestone"] = params["milestone"]
            if status:
                fields["milestone_status"] = status
            logger.info(f"Automation: checking milestone completion for {item_id}")
        else:
            item_id = params.get("item_id") or _context_id(context, f"{target}.id")
            if not item_id:
                raise ActionSkipped(f"no {target} id in parameters or context")
            if not status:
                raise ActionSkipped("update_status requires a status")
            fields = {"status": status}
            logger.info(f"Automation: setting {target} {item_id} status to {status}")

        await self._call(self.items.update_item, str(item_id), fields)
        return {"item_id": str(item_id), "target": target, "fields": fields}

    async def _create_note(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        if self.documents is None:
            raise ActionSkipped("no document store configured")
        path = interpolate(parameters.get("path"), context)
        content = interpolate(parameters.get("content"), context)
        if not path:
            raise ActionSkipped("create_note requires a path")
        await self._call(self.documents.create, path, content)
        return {"path": path}

    async def _send_email(self, parameters: Dict[str, Any], context: Dict[str, Any]) -> dict:
        raise ActionSkipped("send_email is not implemented")

    def get_statistics(self) -> dict:
        """Get action statistics"""
        return {
            "total_executions": self.execution_count,
            "total_successes": self.success_count,
            "total_failures": self.failure_count,
            "total_skipped": self.skip_count,
            "success_rate": self.success_count / self.execution_count if self.execution_count > 0 else 1.0,
            "registered_handlers": len(self._handlers)
        }
