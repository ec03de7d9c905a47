"""
Schedule configuration data models
The five entity collections that make up a residence's weekly meal schedule.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from enum import Enum
from .base import BaseEntity

# "HH:MM", zero padded
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class DayOfWeek(str, Enum):
    """Weekday keys"""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# Canonical display order, Monday first
WEEKDAYS: List[str] = [day.value for day in DayOfWeek]

# Monday=0 .. Sunday=6
DAY_INDEX: Dict[str, int] = {day: index for index, day in enumerate(WEEKDAYS)}


class AlternativeKind(str, Enum):
    """Kind of service an alternative offers"""
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    NO_MEAL_AT_HOME = "no_meal_at_home"
    FASTING = "fasting"


class WindowKind(str, Enum):
    """How a service window relates to its meal day"""
    NORMAL = "normal"
    STARTS_PREVIOUS_DAY = "starts_previous_day"
    ENDS_NEXT_DAY = "ends_next_day"


class MealGroupBase(BaseModel):
    """Meal group fields"""
    name: str = Field(..., min_length=1, max_length=50, description="Group name")
    order: int = Field(..., ge=0, description="Display order")
    is_active: bool = True


class MealGroup(MealGroupBase, BaseEntity):
    """Meal category (breakfast, lunch...) shown as a matrix column"""
    pass


class RequestDeadlineBase(BaseModel):
    """Request deadline fields"""
    name: str = Field(..., min_length=1, max_length=50)
    day: DayOfWeek
    request_time: str = Field(..., pattern=TIME_PATTERN, description="Cutoff time HH:MM")
    is_primary: bool = False
    is_active: bool = True


class RequestDeadline(RequestDeadlineBase, BaseEntity):
    """Cutoff by which a choice must be requested"""
    pass


class MealTimeAlternatives(BaseModel):
    """Principal and secondary alternative configs of a meal time"""
    principal: Optional[str] = None
    secondary: List[str] = Field(default_factory=list)


class MealTimeBase(BaseModel):
    """Meal time fields"""
    name: str = Field(..., min_length=1, max_length=100)
    day: DayOfWeek
    group_id: str = Field(..., description="MealGroup id")
    reference_time: str = Field(..., pattern=TIME_PATTERN)
    alternatives: MealTimeAlternatives = Field(default_factory=MealTimeAlternatives)
    is_active: bool = True


class MealTime(MealTimeBase, BaseEntity):
    """One scheduled meal slot for a weekday and meal group"""
    pass


class AlternativeDefinitionBase(BaseModel):
    """Alternative definition fields"""
    name: str = Field(..., min_length=1, max_length=100)
    group_id: str = Field(..., description="MealGroup id")
    kind: AlternativeKind
    description: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class AlternativeDefinition(AlternativeDefinitionBase, BaseEntity):
    """Reusable alternative kind, assignable across meal times"""
    pass


class ServiceWindow(BaseModel):
    """Service window of an alternative config"""
    start: str = Field(..., pattern=TIME_PATTERN)
    end: str = Field(..., pattern=TIME_PATTERN)
    kind: WindowKind = WindowKind.NORMAL

    model_config = {"use_enum_values": True}


class AlternativeConfigBase(BaseModel):
    """Alternative config fields"""
    name: str = Field(..., min_length=1, max_length=100)
    meal_time_id: str
    definition_id: str
    deadline_id: str
    dining_hall_id: Optional[str] = None
    window: ServiceWindow
    requires_approval: bool = False
    is_active: bool = True


class AlternativeConfig(AlternativeConfigBase, BaseEntity):
    """Binding of a definition to a meal time, with its window and deadline"""
    pass


class ScheduleGraph(BaseModel):
    """
    Raw schedule data of one residence

    Every collection is keyed by entity id and keeps insertion order;
    the principal promotion rule depends on it.
    """
    meal_groups: Dict[str, MealGroup] = Field(default_factory=dict)
    request_deadlines: Dict[str, RequestDeadline] = Field(default_factory=dict)
    meal_times: Dict[str, MealTime] = Field(default_factory=dict)
    alternative_definitions: Dict[str, AlternativeDefinition] = Field(default_factory=dict)
    alternative_configs: Dict[str, AlternativeConfig] = Field(default_factory=dict)

    def has_active_entities(self) -> bool:
        """Whether any collection holds at least one active entity"""
        for collection in (
            self.meal_groups,
            self.request_deadlines,
            self.meal_times,
            self.alternative_definitions,
            self.alternative_configs,
        ):
            if any(entity.is_active for entity in collection.values()):
                return True
        return False


def time_to_minutes(value: str) -> int:
    """Minutes since midnight of an "HH:MM" string"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)
