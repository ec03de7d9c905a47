"""
Integrity alert models and the rule catalogue
"""

import hashlib
from pydantic import BaseModel, Field, computed_field
from typing import Dict, List, Optional
from enum import Enum


class Severity(str, Enum):
    """Alert severity; errors block saving"""
    WARNING = "warning"
    ERROR = "error"


class EntityKind(str, Enum):
    """Entity an alert is about"""
    GLOBAL = "global"
    MEAL_GROUP = "meal_group"
    REQUEST_DEADLINE = "request_deadline"
    MEAL_TIME = "meal_time"
    ALTERNATIVE_DEFINITION = "alternative_definition"
    ALTERNATIVE_CONFIG = "alternative_config"


class RuleInfo(BaseModel):
    code: str
    severity: Severity
    description: str

    model_config = {"use_enum_values": True}


RULE_CATALOG: Dict[str, RuleInfo] = {
    info.code: info
    for info in [
        RuleInfo(code="GENERAL", severity=Severity.WARNING,
                 description="No schedule entity is active; the configuration is empty."),
        RuleInfo(code="HSC_DIA", severity=Severity.WARNING,
                 description="A weekday has no active request deadline."),
        RuleInfo(code="HSC_PRI_DIA", severity=Severity.WARNING,
                 description="A weekday has no active primary request deadline, or more than one."),
        RuleInfo(code="TC_DIAxGR", severity=Severity.WARNING,
                 description="A meal group has no active meal time on a weekday, or more than one."),
        RuleInfo(code="CFALT_TC", severity=Severity.WARNING,
                 description="An active meal time has no active alternative config."),
        RuleInfo(code="CFALT_TCxCOM", severity=Severity.WARNING,
                 description="An active meal time has no active dine-in alternative."),
        RuleInfo(code="HSC_REP", severity=Severity.WARNING,
                 description="Two or more active request deadlines share a name."),
        RuleInfo(code="TC_REP", severity=Severity.WARNING,
                 description="Two or more active meal times share a name."),
        RuleInfo(code="DFALT_REP", severity=Severity.WARNING,
                 description="Two or more active alternative definitions share a name."),
        RuleInfo(code="CFALT_REP", severity=Severity.WARNING,
                 description="Two or more active alternative configs share a name."),
        RuleInfo(code="CFALT_CONC", severity=Severity.WARNING,
                 description="Two or more alternative configs have the same service window on the same weekday."),
        RuleInfo(code="CFALT_CONC_COM", severity=Severity.WARNING,
                 description="Two or more alternative configs overlap in time in the same dining hall."),
        RuleInfo(code="CFALT_TIEM_NEG", severity=Severity.WARNING,
                 description="An active alternative config has a normal window that starts after it ends."),
        RuleInfo(code="HSC_INACT_ASOC", severity=Severity.ERROR,
                 description="An archived request deadline is used by an active alternative config."),
        RuleInfo(code="TC_INACT_ASOC", severity=Severity.ERROR,
                 description="An archived meal time is used by an active alternative config."),
        RuleInfo(code="GC_DESOR", severity=Severity.ERROR,
                 description="The order of the active meal groups is not consecutive."),
        RuleInfo(code="GC_REP", severity=Severity.ERROR,
                 description="Two or more active meal groups share a name."),
    ]
}


class Alert(BaseModel):
    """One integrity finding"""
    rule_code: str
    entity_kind: EntityKind
    ids: Optional[str] = Field(None, description="Comma separated ids of the entities involved")
    message: str

    model_config = {"use_enum_values": True}

    @computed_field
    @property
    def severity(self) -> str:
        return RULE_CATALOG[self.rule_code].severity

    @computed_field
    @property
    def key(self) -> str:
        """Stable identifier, used to ignore an alert"""
        raw = f"{self.rule_code}|{self.entity_kind}|{self.message}"
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:12]

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


class AlertSummary(BaseModel):
    errors: int = 0
    warnings: int = 0
    has_blocking_errors: bool = False


def summarize_alerts(alerts: List[Alert]) -> AlertSummary:
    """Count alerts by severity"""
    errors = sum(1 for alert in alerts if alert.is_error)
    return AlertSummary(
        errors=errors,
        warnings=len(alerts) - errors,
        has_blocking_errors=errors > 0,
    )
