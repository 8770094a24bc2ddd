"""
Rule Loader

Provides:
- Rule definition schema
- Loading rules from YAML/JSON files and folders
- Per-rule validation; malformed rules are skipped
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ConfigurationError, ErrorDetails, ErrorLog
from .models import (
    Rule,
    Trigger,
    Condition,
    Action,
    ActionType,
    ConditionOperator,
    parse_trigger_type,
    parse_operator,
    parse_action_type
)

logger = logging.getLogger("RuleLoader")

RULE_FILE_SUFFIXES = (".yaml", ".yml", ".json")


class TriggerDefinition(BaseModel):
    type: str
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def known_trigger(cls, value: str) -> str:
        parse_trigger_type(value)
        return value


class ConditionDefinition(BaseModel):
    field: str = Field(min_length=1)
    operator: str
    value: Any = None


class ActionDefinition(BaseModel):
    type: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class RuleDefinition(BaseModel):
    id: str = Field(min_length=1)
    name: Optional[str] = None
    description: str = ""
    trigger: TriggerDefinition
    conditions: List[ConditionDefinition] = Field(default_factory=list)
    actions: List[ActionDefinition] = Field(default_factory=list)
    enabled: bool = True

    def to_rule(self) -> Rule:
        conditions = []
        for c in self.conditions:
            operator = parse_operator(c.operator)
            if not isinstance(operator, ConditionOperator):
                logger.warning(f"Rule {self.id}: unknown operator '{c.operator}' always evaluates false")
            conditions.append(Condition(field=c.field, operator=operator, value=c.value))

        actions = []
        for a in self.actions:
            action_type = parse_action_type(a.type)
            if not isinstance(action_type, ActionType):
                logger.warning(f"Rule {self.id}: unknown action type '{a.type}' will be skipped")
            actions.append(Action(type=action_type, parameters=dict(a.parameters)))

        return Rule(
            id=self.id,
            name=self.name or self.id,
            description=self.description,
            trigger=Trigger(
                type=parse_trigger_type(self.trigger.type),
                parameters=dict(self.trigger.parameters)
            ),
            conditions=conditions,
            actions=actions,
            enabled=self.enabled
        )


@dataclass
class RuleLoadReport:
    """Rules loaded from external sources and the errors met on the way"""

    rules: List[Rule] = field(default_factory=list)
    errors: List[ErrorDetails] = field(default_factory=list)

    def extend(self, other: "RuleLoadReport") -> None:
        self.rules.extend(other.rules)
        self.errors.extend(other.errors)

    def to_dict(self) -> dict:
        return {
            "rules": [r.to_dict() for r in self.rules],
            "errors": [e.to_dict() for e in self.errors],
            "loaded_count": len(self.rules),
            "error_count": len(self.errors)
        }


def parse_rule(data: Any) -> Rule:
    """Validate one rule definition, raising ConfigurationError"""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Rule definition must be a mapping, got {type(data).__name__}")
    try:
        return RuleDefinition.model_validate(data).to_rule()
    except ValidationError as e:
        rule_id = data.get("id", "<unknown>")
        raise ConfigurationError(
            f"Invalid rule {rule_id}: {e.error_count()} validation error(s)",
            context={"rule_id": rule_id, "errors": e.errors(include_url=False)}
        ) from e


def _rule_entries(document: Any) -> List[Any]:
    """Accept a list of rules, a {"rules": [...]} mapping, or a single rule"""
    if document is None:
        return []
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        if "rules" in document:
            rules = document["rules"]
            return rules if isinstance(rules, list) else [rules]
        return [document]
    raise ConfigurationError(f"Unsupported rule document of type {type(document).__name__}")


def parse_rules(
    entries: List[Any],
    source: str = "<memory>",
    error_log: Optional[ErrorLog] = None
) -> RuleLoadReport:
    """Parse rule definitions one by one, skipping malformed ones"""
    report = RuleLoadReport()
    for index, entry in enumerate(entries):
        try:
            report.rules.append(parse_rule(entry))
        except ConfigurationError as e:
            e.details.context = {**e.details.context, "source": source, "index": index}
            report.errors.append(_record(e, error_log))
    return report


def load_rules_from_file(path: str, error_log: Optional[ErrorLog] = None) -> RuleLoadReport:
    """Load rules from one YAML or JSON file"""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
        entries = _rule_entries(document)
    except (OSError, ValueError, yaml.YAMLError, ConfigurationError) as e:
        error = e if isinstance(e, ConfigurationError) else ConfigurationError(
            f"Cannot load rule file {file_path}: {e}"
        )
        error.details.context = {**error.details.context, "source": str(file_path)}
        return RuleLoadReport(errors=[_record(error, error_log)])

    report = parse_rules(entries, source=str(file_path), error_log=error_log)
    logger.info(f"Loaded {len(report.rules)} rule(s) from {file_path} ({len(report.errors)} skipped)")
    return report


def load_rules_from_directory(path: str, error_log: Optional[ErrorLog] = None) -> RuleLoadReport:
    """Load rules from every rule file in a folder, in name order"""
    folder = Path(path)
    report = RuleLoadReport()
    if not folder.is_dir():
        logger.debug(f"Rule folder {folder} does not exist")
        return report

    for file_path in sorted(folder.iterdir()):
        if file_path.is_file() and file_path.suffix.lower() in RULE_FILE_SUFFIXES:
            report.extend(load_rules_from_file(str(file_path), error_log=error_log))

    return report


def _record(error: ConfigurationError, error_log: Optional[ErrorLog]) -> ErrorDetails:
    if error_log is not None:
        return error_log.record(error)
    logger.warning(f"Skipping rule definition: {error}")
    return error.details
