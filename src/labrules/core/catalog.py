"""Parameter catalog and algorithm templates.

The catalog is the static vocabulary the algorithm builder works with:

- ``PARAMETER_DEFINITIONS``: checks that can be attached to a measurement
  (``result``, ``qc``, ``unity``…) plus the two patient-level globals.
- ``GLOBAL_PARAMETERS``: context values stored on every algorithm.
- ``SCOPE_*``: names of the optional globals that limit an algorithm to an
  age range or a gender.
- ``ALGORITHM_TEMPLATES``: ready-made parameter sets for the four standard
  analyses (blood, urine, biochemistry, hematology).

Catalog objects are module-level singletons.  Everything handed to callers
is a deep copy, so editing an instantiated template never leaks back into
the catalog.

Tags:
    catalog, templates, parameters, labrules-core
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from labrules.core.errors import TemplateNotFoundError
from labrules.core.models import (
    Algorithm,
    AlgorithmAction,
    GlobalParameter,
    GlobalParameterValue,
    Parameter,
    ParameterConfig,
    ParameterDefinition,
    SubParameter,
    ValidationType,
)

INTERPARAMETER = "interparameter"

# Optional globals that restrict which patients an algorithm may validate.
# The context globals (patient_age, patient_gender) are builder defaults and
# never restrict anything.
SCOPE_AGE_MIN = "patient_age_min"
SCOPE_AGE_MAX = "patient_age_max"
SCOPE_GENDER = "patient_gender_scope"


def _cfg(type_: str, **kwargs: Any) -> ParameterConfig:
    return ParameterConfig(type=ValidationType(type_), **kwargs)


# ── Parameter definitions ────────────────────────────────────────────────

PARAMETER_DEFINITIONS: tuple[ParameterDefinition, ...] = (
    # Patient info (global)
    ParameterDefinition(
        name="patient_age",
        label="Patient Age",
        type=ValidationType.RANGE,
        default_config=_cfg("range", min=0, max=120, unit="years", required=True),
        is_global=True,
        category="Patient Info",
    ),
    ParameterDefinition(
        name="patient_gender",
        label="Patient Gender",
        type=ValidationType.LIST,
        default_config=_cfg("list", options=["Male", "Female", "Other"], required=True),
        is_global=True,
        category="Patient Info",
    ),
    # Results
    ParameterDefinition(
        name="result",
        label="Test Result",
        type=ValidationType.RANGE,
        default_config=_cfg("range", min=0, max=100, required=True),
        category="Results",
    ),
    ParameterDefinition(
        name="qc",
        label="Quality Control",
        type=ValidationType.CONTAINS,
        default_config=_cfg("contains", value="normal", required=True),
        category="Quality",
    ),
    ParameterDefinition(
        name="unity",
        label="Unit of Measurement",
        type=ValidationType.LIST,
        default_config=_cfg(
            "list", options=["g/L", "mg/dL", "mmol/L", "µmol/L", "IU/L"], required=True
        ),
        category="Results",
    ),
    # Medical history
    ParameterDefinition(
        name="entecedent",
        label="Previous Value",
        type=ValidationType.LIST,
        default_config=_cfg("list", options=["LOW", "HIGH"]),
        category="Medical History",
    ),
    ParameterDefinition(
        name="entecedent_date",
        label="Days Since Previous Test",
        type=ValidationType.RANGE,
        default_config=_cfg("range", min=0, max=365, unit="days"),
        category="Medical History",
    ),
    ParameterDefinition(
        name=INTERPARAMETER,
        label="Linked Parameter",
        type=ValidationType.LIST,
        default_config=_cfg("list", options=[]),
        category="Relationships",
    ),
    ParameterDefinition(
        name="comments",
        label="Comments",
        type=ValidationType.CONTAINS,
        default_config=_cfg("contains"),
        category="Notes",
    ),
)


GLOBAL_PARAMETERS: tuple[GlobalParameter, ...] = (
    GlobalParameter(
        name="patient_age", label="Patient Age", type="range",
        default_value=30, min=0, max=120, unit="years",
    ),
    GlobalParameter(
        name="patient_gender", label="Patient Gender", type="list",
        default_value="M", options=["M", "F"],
    ),
    GlobalParameter(
        name="questionnaire", label="Questionnaire", type="text", default_value="",
    ),
)


# ── Templates ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AlgorithmTemplate:
    """A named preset of parameters for a standard analysis."""

    key: str
    name: str
    parameters: tuple[Parameter, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "parameters": [p.to_dict() for p in self.parameters],
        }


def _param(name: str, label: str, *checks: tuple[str, ParameterConfig]) -> Parameter:
    return Parameter(
        name=name,
        label=label,
        sub_parameters=[SubParameter(param=p, config=c) for p, c in checks],
    )


ALGORITHM_TEMPLATES: dict[str, AlgorithmTemplate] = {
    "blood": AlgorithmTemplate(
        key="blood",
        name="Blood Analysis (FNS)",
        parameters=(
            _param(
                "globule_rouge", "Globule Rouge",
                ("result", _cfg("range", min=5, max=15, unit="M/µL", required=True)),
                ("result_type", _cfg("list", options=["normal", "supra", "infra"], required=True)),
                ("qc", _cfg("contains", value="abnormal", required=True)),
            ),
            _param(
                "hemoglobine", "Hémoglobine",
                ("result", _cfg("range", min=12, max=16, unit="g/dL", required=True)),
                ("qc", _cfg("contains", value="normal", required=True)),
            ),
            _param(
                "plaquettes", "Plaquettes",
                ("result", _cfg("range", min=150, max=450, unit="K/µL", required=True)),
            ),
        ),
    ),
    "urine": AlgorithmTemplate(
        key="urine",
        name="Urine Analysis",
        parameters=(
            _param(
                "proteine", "Protéine",
                ("result", _cfg("range", min=0, max=0.15, unit="g/L", required=True)),
                ("sample_type", _cfg("list", options=["urine"], required=True)),
            ),
            _param(
                "glucose", "Glucose",
                ("result", _cfg("exact", value="0", required=True)),
                ("qc", _cfg("contains", value="normal", required=True)),
            ),
        ),
    ),
    "biochemistry": AlgorithmTemplate(
        key="biochemistry",
        name="Biochemistry Analysis",
        parameters=(
            _param(
                "cholesterol", "Cholestérol Total",
                ("result", _cfg("range", min=0, max=2.0, unit="g/L", required=True)),
                ("result_type", _cfg("list", options=["normal", "elevated", "low"], required=True)),
            ),
            _param(
                "glucose_sanguin", "Glucose Sanguin",
                ("result", _cfg("range", min=0.7, max=1.1, unit="g/L", required=True)),
                ("unity", _cfg("list", options=["g/L", "mg/dL", "mmol/L"], required=True)),
            ),
        ),
    ),
    "hematology": AlgorithmTemplate(
        key="hematology",
        name="Hematology Analysis",
        parameters=(
            _param(
                "leucocytes", "Leucocytes",
                ("result", _cfg("range", min=4, max=10, unit="10^9/L", required=True)),
                ("sample_type", _cfg("list", options=["blood", "plasma"], required=True)),
            ),
            _param(
                "neutrophiles", "Neutrophiles",
                ("result", _cfg("range", min=50, max=70, unit="%", required=True)),
                ("qc", _cfg("contains", value="normal", required=True)),
            ),
        ),
    ),
}


# ── Lookups ──────────────────────────────────────────────────────────────


def specific_parameters() -> list[ParameterDefinition]:
    """Definitions that can be attached to a measurement."""
    return [copy.deepcopy(d) for d in PARAMETER_DEFINITIONS if not d.is_global]


def global_definitions() -> list[ParameterDefinition]:
    """Patient-level definitions (age, gender)."""
    return [copy.deepcopy(d) for d in PARAMETER_DEFINITIONS if d.is_global]


def get_definition(name: str) -> ParameterDefinition | None:
    for definition in PARAMETER_DEFINITIONS:
        if definition.name == name:
            return copy.deepcopy(definition)
    return None


def default_global_values() -> list[GlobalParameterValue]:
    """One value per catalog global parameter, set to its default."""
    return [
        GlobalParameterValue(name=g.name, value=copy.deepcopy(g.default_value))
        for g in GLOBAL_PARAMETERS
    ]


def get_template(key: str) -> AlgorithmTemplate:
    """Look up a template by key, raising :class:`TemplateNotFoundError`."""
    try:
        return ALGORITHM_TEMPLATES[key]
    except KeyError:
        raise TemplateNotFoundError(key) from None


def instantiate_template(key: str) -> list[Parameter]:
    """Return an independent copy of a template's parameters."""
    return copy.deepcopy(list(get_template(key).parameters))


def build_algorithm_from_template(
    key: str,
    name: str | None = None,
    description: str = "",
    action: AlgorithmAction = AlgorithmAction.VALIDATE,
) -> Algorithm:
    """Build a new, unsaved algorithm seeded from template *key*."""
    template = get_template(key)
    return Algorithm(
        name=name or template.name,
        description=description,
        parameters=instantiate_template(key),
        action=action,
        global_parameters=default_global_values(),
    )


def linked_parameter_options(algorithm: Algorithm, parameter_name: str) -> list[str]:
    """Names of the algorithm's other parameters, for an interparameter link."""
    return [p.name for p in algorithm.parameters if p.name and p.name != parameter_name]


def default_config_for(
    param: str,
    algorithm: Algorithm | None = None,
    parameter_name: str = "",
) -> ParameterConfig | None:
    """Default config for catalog check *param*.

    ``interparameter`` links are exact matches on another parameter's name;
    given an *algorithm* the first sibling parameter is preselected and the
    siblings are offered as options.
    """
    if param == INTERPARAMETER:
        options = linked_parameter_options(algorithm, parameter_name) if algorithm else []
        return ParameterConfig(
            type=ValidationType.EXACT,
            value=options[0] if options else "",
            options=options,
            required=False,
        )
    definition = get_definition(param)
    return definition.default_config if definition else None


__all__ = [
    "ALGORITHM_TEMPLATES",
    "AlgorithmTemplate",
    "GLOBAL_PARAMETERS",
    "INTERPARAMETER",
    "PARAMETER_DEFINITIONS",
    "SCOPE_AGE_MAX",
    "SCOPE_AGE_MIN",
    "SCOPE_GENDER",
    "build_algorithm_from_template",
    "default_config_for",
    "default_global_values",
    "get_definition",
    "get_template",
    "global_definitions",
    "instantiate_template",
    "linked_parameter_options",
    "specific_parameters",
]
