"""
Schedule matrix view models
Day x meal-group grid derived from a ScheduleGraph; recomputed, never stored.
"""

from pydantic import BaseModel, Field
from typing import List
from .schedule import (
    AlternativeConfig,
    AlternativeDefinition,
    MealGroup,
    MealTime,
    RequestDeadline,
)


class EnrichedAlternative(BaseModel):
    """Alternative config joined to its definition and deadline"""
    config: AlternativeConfig
    definition: AlternativeDefinition
    deadline: RequestDeadline
    lead_time_hours: float = Field(..., description="Hours between the deadline and the service start")
    is_inactive: bool = Field(..., description="Definition or deadline archived")


class EnrichedMealTime(BaseModel):
    """Meal time with the alternatives that could be joined"""
    meal_time: MealTime
    alternatives: List[EnrichedAlternative] = Field(default_factory=list)


class MatrixCell(BaseModel):
    """Cell for one meal group on one day; may hold zero, one or many meal times"""
    group_id: str
    meal_times: List[EnrichedMealTime] = Field(default_factory=list)


class MatrixRow(BaseModel):
    """One weekday"""
    day: str
    deadlines: List[RequestDeadline] = Field(default_factory=list)
    cells: List[MatrixCell] = Field(default_factory=list)


class ScheduleMatrix(BaseModel):
    """Full matrix: active meal groups as columns, weekdays as rows"""
    columns: List[MealGroup] = Field(default_factory=list)
    rows: List[MatrixRow] = Field(default_factory=list)
