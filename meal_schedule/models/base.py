"""
Base data models
Shared model base classes
"""

from pydantic import BaseModel


class BaseEntity(BaseModel):
    """Base schedule entity, keyed by a string id"""

    id: str

    model_config = {"from_attributes": True, "use_enum_values": True}
