"""
Built-in rules installed when the engine initializes.
"""

from typing import List

from .models import (
    Rule,
    Trigger,
    TriggerType,
    Condition,
    ConditionOperator,
    Action,
    ActionType
)


def get_default_rules() -> List[Rule]:
    """Get fresh copies of the built-in rules"""
    return [
        Rule(
            id="overdue-task-notification",
            name="Overdue Task Notification",
            description="Send notification when tasks become overdue",
            trigger=Trigger(type=TriggerType.DAILY_SCHEDULE),
            conditions=[
                Condition(field="overdue_count", operator=ConditionOperator.GREATER_THAN, value=0)
            ],
            actions=[
                Action(
                    type=ActionType.SEND_NOTIFICATION,
                    parameters={"message": "You have {{overdue_count}} overdue tasks!"}
                )
            ]
        ),
        Rule(
            id="task-completion-milestone",
            name="Check Milestones on Task Completion",
            description="Check if milestones are reached when tasks are completed",
            trigger=Trigger(type=TriggerType.ITEM_COMPLETED),
            actions=[
                Action(type=ActionType.UPDATE_STATUS, parameters={"type": "milestone"})
            ]
        ),
        Rule(
            id="high-priority-notification",
            name="High Priority Task Alert",
            description="Send immediate notification for high priority tasks",
            trigger=Trigger(type=TriggerType.ITEM_CREATED),
            conditions=[
                Condition(field="task.priority", operator=ConditionOperator.EQUALS, value="high")
            ],
            actions=[
                Action(
                    type=ActionType.SEND_NOTIFICATION,
                    parameters={"message": "High priority task created: {{task.title}}"}
                )
            ]
        ),
    ]
