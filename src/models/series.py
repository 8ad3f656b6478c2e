"""Series models - ordinal filters over the members of a recurring series."""

from enum import Enum
from pydantic import BaseModel, Field


class OrdinalComparison(str, Enum):
    """Comparison applied to a member's ordinal."""
    GT = "gt"
    GTE = "gte"


class OrdinalPredicate(BaseModel):
    """Selects series members by ordinal, e.g. ``ordinal >= 3``."""
    comparison: OrdinalComparison = Field(..., description="gt or gte")
    ordinal: int = Field(..., ge=1, description="Boundary ordinal")

    @classmethod
    def after(cls, ordinal: int) -> "OrdinalPredicate":
        """Members strictly after ``ordinal``."""
        return cls(comparison=OrdinalComparison.GT, ordinal=ordinal)

    @classmethod
    def from_(cls, ordinal: int) -> "OrdinalPredicate":
        """Members at or after ``ordinal``."""
        return cls(comparison=OrdinalComparison.GTE, ordinal=ordinal)

    def matches(self, ordinal: int) -> bool:
        if self.comparison == OrdinalComparison.GT:
            return ordinal > self.ordinal
        return ordinal >= self.ordinal
