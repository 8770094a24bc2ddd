"""Tests for trigger dispatch and the engine management surface"""

import asyncio
import json
from collections.abc import Mapping

import pytest
from automation import AutomationEngine, AutomationSettings, RuleStatus
from automation.collaborators import NotificationSink
from automation.errors import ErrorLog
from automation.rules import (
    Rule, Trigger, TriggerType, Condition, ConditionOperator, Action, ActionType, RuleRegistry
)


class RecordingMapping(Mapping):
    """Mapping that records every key looked up in it"""

    def __init__(self, data=None):
        self._data = dict(data or {})
        self.lookups = []

    def __getitem__(self, key):
        self.lookups.append(key)
        return self._data[key]

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)


class GatedSink(NotificationSink):
    """Sink that blocks inside show() until released"""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.messages = []

    async def show(self, message: str) -> None:
        self.entered.set()
        await self.release.wait()
        self.messages.append(message)


class TracingSink(NotificationSink):
    """Sink that records when each call starts and ends"""

    def __init__(self):
        self.events = []

    async def show(self, message: str) -> None:
        self.events.append(f"start:{message}")
        for _ in range(3):
            await asyncio.sleep(0)
        self.events.append(f"end:{message}")


class GatedTracingSink(NotificationSink):
    """Sink that records start/end of each call and blocks until released"""

    def __init__(self):
        self.events = []
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def show(self, message: str) -> None:
        self.events.append(f"start:{message}")
        self.entered.set()
        await self.release.wait()
        self.events.append(f"end:{message}")


def notify_rule(rule_id, message, trigger=TriggerType.ITEM_CREATED, conditions=(), enabled=True):
    return Rule(
        id=rule_id,
        name=rule_id,
        trigger=Trigger(trigger),
        conditions=list(conditions),
        actions=[Action(ActionType.SEND_NOTIFICATION, {"message": message})],
        enabled=enabled
    )


@pytest.fixture
def engine(notifications, documents, items, error_log):
    return AutomationEngine(
        notifications=notifications,
        documents=documents,
        items=items,
        error_log=error_log
    )


class TestDispatch:
    """Tests for AutomationEngine.dispatch"""

    @pytest.mark.asyncio
    async def test_high_priority_scenario(self, engine, notifications):
        """Test high priority scenario"""
        engine.add_rule(notify_rule(
            "high",
            "High priority task created: {{task.title}}",
            conditions=[Condition("task.priority", ConditionOperator.EQUALS, "high")]
        ))

        result = await engine.dispatch(TriggerType.ITEM_CREATED, {"task": {"priority": "high"}})

        assert notifications.messages == ["High priority task created: {{task.title}}"]
        assert result.executed_rule_ids == ["high"]

    @pytest.mark.asyncio
    async def test_conditions_not_met(self, engine, notifications):
        """Test conditions not met"""
        engine.add_rule(notify_rule(
            "high", "x", conditions=[Condition("task.priority", ConditionOperator.EQUALS, "high")]
        ))

        result = await engine.dispatch("item_created", {"task": {"priority": "low"}})

        assert notifications.messages == []
        assert result.rule_results[0].status == RuleStatus.NOT_MATCHED

    @pytest.mark.asyncio
    async def test_disabled_rule_is_never_evaluated(self, engine, notifications):
        """Test disabled rule is never evaluated"""
        engine.add_rule(notify_rule(
            "off", "should not show",
            conditions=[Condition("watched.flag", ConditionOperator.IS_NOT_EMPTY)],
            enabled=False
        ))
        recorded = RecordingMapping({"flag": True})

        result = await engine.dispatch(TriggerType.ITEM_CREATED, {"watched": recorded})

        assert recorded.lookups == []
        assert notifications.messages == []
        assert result.matched_rule_ids == []

    @pytest.mark.asyncio
    async def test_only_matching_trigger_runs(self, engine, notifications):
        """Test only matching trigger runs"""
        engine.add_rule(notify_rule("created", "created"))
        engine.add_rule(notify_rule("completed", "completed", trigger=TriggerType.ITEM_COMPLETED))

        await engine.dispatch(TriggerType.ITEM_COMPLETED, {})
        assert notifications.messages == ["completed"]

    @pytest.mark.asyncio
    async def test_failing_rule_does_not_stop_others(self, engine, notifications, documents, error_log):
        """Test failing rule does not stop others"""
        documents.documents["Inbox.md"] = "existing"
        engine.add_rule(Rule(
            id="first",
            name="first",
            trigger=Trigger(TriggerType.ITEM_CREATED),
            actions=[Action(ActionType.CREATE_NOTE, {"path": "Inbox.md", "content": "new"})]
        ))
        engine.add_rule(notify_rule("second", "second ran"))

        result = await engine.dispatch(TriggerType.ITEM_CREATED, {})

        assert notifications.messages == ["second ran"]
        statuses = {r.rule_id: r.status for r in result.rule_results}
        assert statuses == {"first": RuleStatus.FAILED, "second": RuleStatus.EXECUTED}
        assert len(error_log) == 1

    @pytest.mark.asyncio
    async def test_unknown_trigger_is_ignored(self, engine):
        """Test unknown trigger is ignored"""
        result = await engine.dispatch("task_deleted", {})
        assert result.rule_results == []

    @pytest.mark.asyncio
    async def test_engine_disabled_is_noop(self, engine, notifications):
        """Test engine disabled is noop"""
        engine.add_rule(notify_rule("a", "a"))
        engine.set_engine_enabled(False)

        result = await engine.dispatch(TriggerType.ITEM_CREATED, {})

        assert not engine.is_engine_enabled()
        assert result.rule_results == []
        assert notifications.messages == []

    @pytest.mark.asyncio
    async def test_actions_see_trigger_parameters(self, engine, notifications):
        """Test actions see trigger parameters"""
        engine.add_rule(Rule(
            id="p",
            name="p",
            trigger=Trigger(TriggerType.ITEM_CREATED, {"channel": "inbox"}),
            actions=[Action(ActionType.SEND_NOTIFICATION, {"message": "to {{trigger.parameters.channel}}"})]
        ))

        await engine.dispatch(TriggerType.ITEM_CREATED, {})
        assert notifications.messages == ["to inbox"]


class TestConcurrency:
    """Tests for concurrent dispatch"""

    @pytest.mark.asyncio
    async def test_disable_during_in_flight_dispatch(self, items):
        """Test disable during in flight dispatch"""
        sink = GatedSink()
        engine = AutomationEngine(notifications=sink, items=items)
        engine.add_rule(notify_rule("gated", "done"))

        in_flight = asyncio.create_task(engine.dispatch(TriggerType.ITEM_CREATED, {}))
        await sink.entered.wait()
        engine.disable_rule("gated")
        sink.release.set()
        result = await in_flight

        assert sink.messages == ["done"]
        assert result.executed_rule_ids == ["gated"]

        later = await engine.dispatch(TriggerType.ITEM_CREATED, {})
        assert later.matched_rule_ids == []
        assert sink.messages == ["done"]

    @pytest.mark.asyncio
    async def test_rule_invocations_do_not_interleave(self):
        """Test rule invocations do not interleave"""
        sink = TracingSink()
        engine = AutomationEngine(notifications=sink)
        engine.add_rule(notify_rule("traced", "{{n}}"))

        await asyncio.gather(
            engine.dispatch(TriggerType.ITEM_CREATED, {"n": 1}),
            engine.dispatch(TriggerType.ITEM_CREATED, {"n": 2}),
        )

        assert sink.events == ["start:1", "end:1", "start:2", "end:2"]

    @pytest.mark.asyncio
    async def test_rule_retriggering_itself_is_skipped(self):
        """Test rule retriggering itself is skipped"""
        nested = []

        class RedispatchingSink(NotificationSink):
            async def show(self, message: str) -> None:
                nested.append(await engine.dispatch(TriggerType.ITEM_CREATED, {}))

        engine = AutomationEngine(notifications=RedispatchingSink())
        engine.add_rule(notify_rule("loop", "again"))

        result = await engine.dispatch(TriggerType.ITEM_CREATED, {})

        assert result.rule_results[0].status == RuleStatus.EXECUTED
        assert nested[0].rule_results[0].status == RuleStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_remove_and_re_add_keeps_invocations_sequential(self):
        """Test a rule replaced mid-dispatch still never runs interleaved"""
        sink = GatedTracingSink()
        engine = AutomationEngine(notifications=sink)
        rule = notify_rule("traced", "{{n}}")
        engine.add_rule(rule)

        first = asyncio.create_task(engine.dispatch(TriggerType.ITEM_CREATED, {"n": 1}))
        await sink.entered.wait()

        engine.remove_rule("traced")
        engine.add_rule(rule)
        second = asyncio.create_task(engine.dispatch(TriggerType.ITEM_CREATED, {"n": 2}))
        for _ in range(5):
            await asyncio.sleep(0)
        assert sink.events == ["start:1"]

        sink.release.set()
        await asyncio.gather(first, second)

        assert sink.events == ["start:1", "end:1", "start:2", "end:2"]


class TestManagement:
    """Tests for the rule management surface"""

    def test_add_get_remove(self, engine):
        """Test add get remove"""
        rule = notify_rule("r1", "hello")
        engine.add_rule(rule)

        assert engine.get_rule("r1") == rule
        assert engine.list_rules() == [rule]
        assert engine.remove_rule("r1")
        assert engine.get_rule("r1") is None

    def test_enable_disable(self, engine):
        """Test enable disable"""
        engine.add_rule(notify_rule("r1", "hello"))

        assert engine.disable_rule("r1")
        assert not engine.get_rule("r1").enabled
        assert engine.enable_rule("r1")
        assert engine.get_rule("r1").enabled
        assert not engine.enable_rule("missing")

    def test_statistics(self, engine):
        """Test statistics"""
        engine.add_rule(notify_rule("r1", "hello"))
        stats = engine.get_statistics()

        assert stats["total_rules"] == 1
        assert stats["by_trigger"] == {"item_created": 1}
        assert stats["scheduler"]["state"] == "idle"


class TestCollaboratorWiring:
    """Tests for host-supplied registry and error log"""

    def test_empty_host_objects_are_kept(self):
        """Test empty registry and error log passed in are used as given"""
        error_log = ErrorLog()
        registry = RuleRegistry()
        engine = AutomationEngine(error_log=error_log, registry=registry)

        assert engine.error_log is error_log
        assert engine.registry is registry
        assert engine.executor.error_log is error_log

    @pytest.mark.asyncio
    async def test_host_registry_rules_are_dispatched(self, notifications):
        """Test rules added straight to the host registry are seen by dispatch"""
        registry = RuleRegistry()
        engine = AutomationEngine(notifications=notifications, registry=registry)
        registry.add(notify_rule("hosted", "from host registry"))

        await engine.dispatch(TriggerType.ITEM_CREATED, {})

        assert notifications.messages == ["from host registry"]

    @pytest.mark.asyncio
    async def test_action_failures_reach_host_error_log(self, documents):
        """Test an action failure is recorded in the error log the host passed in"""
        error_log = ErrorLog()
        documents.documents["Inbox.md"] = "existing"
        engine = AutomationEngine(documents=documents, error_log=error_log)
        engine.add_rule(Rule(
            id="note",
            name="note",
            trigger=Trigger(TriggerType.ITEM_CREATED),
            actions=[Action(ActionType.CREATE_NOTE, {"path": "Inbox.md"})]
        ))

        await engine.dispatch(TriggerType.ITEM_CREATED, {})

        assert len(error_log) == 1
        assert error_log.get_recent(1)[0].context["path"] == "Inbox.md"


class TestInitialize:
    """Tests for engine start-up"""

    @pytest.mark.asyncio
    async def test_defaults_and_rule_folder(self, tmp_path, notifications):
        """Test defaults and rule folder"""
        (tmp_path / "custom.json").write_text(json.dumps({
            "id": "custom",
            "trigger": {"type": "project_started"},
            "actions": [{"type": "send_notification", "parameters": {"message": "Started {{project.name}}"}}]
        }))
        (tmp_path / "broken.yaml").write_text("id: broken\n")

        engine = AutomationEngine(
            settings=AutomationSettings(automation_folder=str(tmp_path)),
            notifications=notifications
        )
        report = await engine.initialize(start_scheduler=False)

        ids = {r.id for r in engine.list_rules()}
        assert ids == {
            "overdue-task-notification",
            "task-completion-milestone",
            "high-priority-notification",
            "custom",
        }
        assert len(report.errors) == 1

    @pytest.mark.asyncio
    async def test_disabled_settings_skip_initialization(self):
        """Test disabled settings skip initialization"""
        engine = AutomationEngine(settings=AutomationSettings(enable_automation=False))
        await engine.initialize()

        assert engine.list_rules() == []
        assert not engine.scheduler.is_running

    @pytest.mark.asyncio
    async def test_scheduler_start_and_shutdown(self):
        """Test scheduler start and shutdown"""
        engine = AutomationEngine()
        await engine.initialize(load_defaults=False)
        assert engine.scheduler.is_running

        await engine.shutdown()
        assert not engine.scheduler.is_running


class TestEventSources:
    """Tests for the item event entry points"""

    @pytest.mark.asyncio
    async def test_item_created(self, engine, notifications):
        """Test item created"""
        await engine.initialize(start_scheduler=False)
        await engine.on_item_created({"title": "Call bank", "priority": "high"})
        assert notifications.messages == ["High priority task created: Call bank"]

    @pytest.mark.asyncio
    async def test_item_completed_checks_milestones(self, engine, items):
        """Test item completed checks milestones"""
        await engine.initialize(start_scheduler=False)
        results = await engine.on_item_modified(
            {"id": "t1", "status": "done", "project": "p1"},
            previous={"id": "t1", "status": "todo"}
        )

        assert [r.trigger_type for r in results] == ["item_completed"]
        assert items.updates == [("p1", {"milestone_check": True})]

    @pytest.mark.asyncio
    async def test_unchanged_status_dispatches_nothing(self, engine, items):
        """Test unchanged status dispatches nothing"""
        await engine.initialize(start_scheduler=False)
        results = await engine.on_item_modified({"status": "done"}, previous={"status": "done"})
        assert results == []

    @pytest.mark.asyncio
    async def test_project_started(self, engine):
        """Test project started"""
        results = await engine.on_item_modified(
            {"id": "p1", "status": "active"},
            previous={"status": "planning"},
            kind="project"
        )
        assert [r.trigger_type for r in results] == ["project_started"]

    @pytest.mark.asyncio
    async def test_overdue_daily_rule(self, engine, notifications):
        """Test overdue daily rule"""
        await engine.initialize(start_scheduler=False)

        await engine.dispatch(TriggerType.DAILY_SCHEDULE, {"overdue_count": 0})
        await engine.dispatch(TriggerType.DAILY_SCHEDULE, {"overdue_count": 2})

        assert notifications.messages == ["You have 2 overdue tasks!"]
