"""Domain model for laboratory validation algorithms and workflows.

The persisted shape is a small tree::

    Algorithm
    ├── global_parameters: [GlobalParameterValue]   patient context (age, gender…)
    └── parameters: [Parameter]                     one per lab measurement
        └── sub_parameters: [SubParameter]          one per check on it
            └── config: ParameterConfig              range/exact/contains/…

    Workflow
    └── algorithm_order: [algorithm id, ...]

``to_dict()`` produces the snake_case document stored in the document store
and returned by the API.  ``from_dict()`` also accepts the camelCase keys
used by the original browser client (``subParameters``, ``lastModified``…)
so exported documents load unchanged.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from labrules.core.errors import RuleConfigError, ValidationError
from labrules.core.timestamps import from_iso8601, to_iso8601


class ValidationType(str, Enum):
    """Rule shapes a SubParameter can be checked against."""

    RANGE = "range"
    EXACT = "exact"
    CONTAINS = "contains"
    BOOLEAN = "boolean"
    LIST = "list"
    DATE = "date"


class AlgorithmAction(str, Enum):
    """Terminal action taken once an algorithm's checks have run."""

    VALIDATE = "validate"
    EXPERT = "expert"
    CONDITIONAL = "conditional"


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


def _pick(data: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    """Read *snake* from *data*, falling back to the camelCase spelling."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def _coerce_bound(name: str, raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise RuleConfigError(f"'{name}' must be a number", field=name, value=raw)
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise RuleConfigError(f"'{name}' must be a number", field=name, value=raw, cause=exc) from exc
    if math.isnan(value):
        raise RuleConfigError(f"'{name}' must be a number", field=name, value=raw)
    return value


def _coerce_flag(name: str, raw: Any) -> bool:
    """Boolean from JSON or form input; the string ``"false"`` is False."""
    if raw is None or isinstance(raw, bool):
        return bool(raw)
    if isinstance(raw, int | float):
        return raw != 0
    text = str(raw).strip().lower()
    if text in ("true", "yes", "1", "on"):
        return True
    if text in ("false", "no", "0", "off", ""):
        return False
    raise RuleConfigError(f"'{name}' must be true or false", field=name, value=raw)


def _enum_value(enum_cls: type[Enum], raw: Any, field_name: str) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)  # type: ignore[attr-defined]
        raise RuleConfigError(
            f"Invalid {field_name} '{raw}' (expected one of: {allowed})",
            field=field_name,
            value=raw,
        ) from exc


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass
class ParameterConfig:
    """Validation rule applied to a single sub-parameter value."""

    type: ValidationType = ValidationType.EXACT
    min: float | None = None
    max: float | None = None
    value: str | float | bool | None = None
    options: list[str] | None = None
    required: bool = False
    unit: str | None = None

    def validate(self) -> None:
        """Raise :class:`RuleConfigError` when the rule cannot be applied."""
        if not isinstance(self.type, ValidationType):
            raise RuleConfigError(f"Invalid validation type '{self.type}'", field="type", value=self.type)
        if self.options is not None and not isinstance(self.options, list):
            raise RuleConfigError("'options' must be a list", field="options", value=self.options)
        if (
            self.type in (ValidationType.RANGE, ValidationType.DATE)
            and self.min is not None
            and self.max is not None
            and self.min > self.max
        ):
            raise RuleConfigError(
                f"'min' ({self.min:g}) is greater than 'max' ({self.max:g})",
                field="min",
                value=self.min,
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "required": self.required}
        for key in ("min", "max", "value", "options", "unit"):
            value = getattr(self, key)
            if value is not None:
                data[key] = list(value) if key == "options" else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParameterConfig:
        if not isinstance(data, dict):
            raise RuleConfigError("Parameter config must be an object", value=data)
        options = data.get("options")
        if options is not None:
            if not isinstance(options, list):
                raise RuleConfigError("'options' must be a list", field="options", value=options)
            options = [str(o) for o in options]
        config = cls(
            type=_enum_value(ValidationType, data.get("type", "exact"), "type"),
            min=_coerce_bound("min", data.get("min")),
            max=_coerce_bound("max", data.get("max")),
            value=data.get("value"),
            options=options,
            required=_coerce_flag("required", data.get("required", False)),
            unit=data.get("unit") or None,
        )
        config.validate()
        return config


@dataclass
class SubParameter:
    """A single check on a measurement, e.g. ``result`` within a range."""

    param: str
    config: ParameterConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"param": self.param}
        if self.config is not None:
            data["config"] = self.config.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubParameter:
        raw_config = data.get("config")
        return cls(
            param=str(data.get("param") or ""),
            config=ParameterConfig.from_dict(raw_config) if raw_config else None,
        )


@dataclass
class Parameter:
    """A named lab measurement and the checks applied to it."""

    name: str
    label: str = ""
    sub_parameters: list[SubParameter] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "sub_parameters": [sp.to_dict() for sp in self.sub_parameters],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Parameter:
        subs = _pick(data, "sub_parameters", "subParameters", []) or []
        return cls(
            name=str(data.get("name") or ""),
            label=str(data.get("label") or ""),
            sub_parameters=[SubParameter.from_dict(sp) for sp in subs],
        )


@dataclass
class GlobalParameterValue:
    """Context value attached to an algorithm (patient age bounds, gender…)."""

    name: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": copy.deepcopy(self.value)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlobalParameterValue:
        return cls(name=str(data.get("name") or ""), value=data.get("value"))


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@dataclass
class Algorithm:
    """A named collection of validation parameters plus a terminal action."""

    name: str
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    action: AlgorithmAction = AlgorithmAction.VALIDATE
    global_parameters: list[GlobalParameterValue] = field(default_factory=list)
    id: str | None = None
    created: datetime | None = None
    last_modified: datetime | None = None

    def parameter(self, name: str) -> Parameter | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def global_value(self, name: str, default: Any = None) -> Any:
        for gp in self.global_parameters:
            if gp.name == name:
                return gp.value
        return default

    def cleaned(self) -> Algorithm:
        """Return the save-time form of this algorithm.

        Blank parameters and blank sub-parameters are dropped; the name is
        stripped and must not be empty.
        """
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("Algorithm name is required", field="name")
        parameters = [
            Parameter(
                name=p.name.strip(),
                label=p.label.strip(),
                sub_parameters=[copy.deepcopy(sp) for sp in p.sub_parameters if sp.param.strip()],
            )
            for p in self.parameters
            if p.name.strip()
        ]
        for param in parameters:
            for sp in param.sub_parameters:
                sp.param = sp.param.strip()
                if sp.config is not None:
                    sp.config.validate()
        return Algorithm(
            name=name,
            description=(self.description or "").strip(),
            parameters=parameters,
            action=self.action,
            global_parameters=[copy.deepcopy(g) for g in self.global_parameters if g.name],
            id=self.id,
            created=self.created,
            last_modified=self.last_modified,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "action": self.action.value,
            "global_parameters": [g.to_dict() for g in self.global_parameters],
            "created": to_iso8601(self.created),
            "last_modified": to_iso8601(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Algorithm:
        raw_id = data.get("id", data.get("_id"))
        globals_ = _pick(data, "global_parameters", "globalParameters", []) or []
        return cls(
            id=str(raw_id) if raw_id not in (None, "", 0) else None,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            parameters=[Parameter.from_dict(p) for p in data.get("parameters") or []],
            action=_enum_value(AlgorithmAction, data.get("action") or "validate", "action"),
            global_parameters=[GlobalParameterValue.from_dict(g) for g in globals_],
            created=from_iso8601(data.get("created")),
            last_modified=from_iso8601(_pick(data, "last_modified", "lastModified")),
        )


@dataclass
class Workflow:
    """An ordered chain of algorithm references."""

    name: str
    algorithm_order: list[str] = field(default_factory=list)
    id: str | None = None
    created: datetime | None = None
    last_modified: datetime | None = None

    def cleaned(self) -> Workflow:
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("Workflow name is required", field="name")
        order = [str(a).strip() for a in self.algorithm_order if str(a).strip()]
        if not order:
            raise ValidationError("Select at least one algorithm", field="algorithm_order")
        return Workflow(
            name=name,
            algorithm_order=order,
            id=self.id,
            created=self.created,
            last_modified=self.last_modified,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "algorithm_order": list(self.algorithm_order),
            "created": to_iso8601(self.created),
            "last_modified": to_iso8601(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workflow:
        raw_id = data.get("id", data.get("_id"))
        order = _pick(data, "algorithm_order", "algorithmOrder", []) or []
        return cls(
            id=str(raw_id) if raw_id not in (None, "", 0) else None,
            name=str(data.get("name") or ""),
            algorithm_order=[str(a) for a in order if a not in (None, "")],
            created=from_iso8601(data.get("created")),
            last_modified=from_iso8601(_pick(data, "last_modified", "lastModified")),
        )


# ---------------------------------------------------------------------------
# Catalog and execution value objects
# ---------------------------------------------------------------------------


@dataclass
class ParameterDefinition:
    """Catalog entry describing a check that can be added to a parameter."""

    name: str
    label: str
    type: ValidationType
    default_config: ParameterConfig
    is_global: bool = False
    category: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "type": self.type.value,
            "default_config": self.default_config.to_dict(),
            "is_global": self.is_global,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParameterDefinition:
        return cls(
            name=str(data["name"]),
            label=str(data.get("label") or data["name"]),
            type=_enum_value(ValidationType, data.get("type", "exact"), "type"),
            default_config=ParameterConfig.from_dict(
                _pick(data, "default_config", "defaultConfig", {}) or {}
            ),
            is_global=bool(_pick(data, "is_global", "isGlobal", False)),
            category=str(data.get("category") or ""),
        )


@dataclass
class GlobalParameter:
    """Catalog entry for a context value attached to every algorithm."""

    name: str
    label: str
    type: str  # range | list | text
    default_value: Any = None
    options: list[str] | None = None
    min: float | None = None
    max: float | None = None
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "default_value": self.default_value,
            "options": list(self.options) if self.options is not None else None,
            "min": self.min,
            "max": self.max,
            "unit": self.unit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GlobalParameter:
        options = data.get("options")
        return cls(
            name=str(data["name"]),
            label=str(data.get("label") or data["name"]),
            type=str(data.get("type") or "text"),
            default_value=_pick(data, "default_value", "defaultValue"),
            options=[str(o) for o in options] if options is not None else None,
            min=_coerce_bound("min", data.get("min")),
            max=_coerce_bound("max", data.get("max")),
            unit=data.get("unit") or None,
        )


@dataclass
class Mapping:
    """Scraper mapping from a parameter name to a CSS selector."""

    param: str
    selector: str


@dataclass
class ExecutionLog:
    timestamp: str
    message: str
    level: LogLevel = LogLevel.INFO

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "message": self.message, "level": self.level.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionLog:
        return cls(
            timestamp=str(data.get("timestamp") or ""),
            message=str(data.get("message") or ""),
            level=LogLevel(data.get("level") or "info"),
        )
