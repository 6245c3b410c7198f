"""
Dashboard filter and tab schemas.
"""
from enum import Enum
from pydantic import BaseModel

ALL_CLIENTS = "All Clients"
ALL_MANAGERS = "All Managers"
ALL_EQUIPMENT = "All Equipment"


class ProjectTab(str, Enum):
    ALL = "all"
    OVERDUE = "overdue"
    ACTIVE = "active"
    COMPLETED = "completed"


class ProjectFilters(BaseModel):
    """Filter bar state; the defaults select everything."""
    client: str = ALL_CLIENTS
    manager: str = ALL_MANAGERS
    equipment_type: str = ALL_EQUIPMENT
    search_query: str = ""

    @property
    def is_default(self) -> bool:
        return (
            self.client == ALL_CLIENTS
            and self.manager == ALL_MANAGERS
            and self.equipment_type == ALL_EQUIPMENT
            and not self.search_query
        )
