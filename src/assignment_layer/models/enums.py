"""
Enumerations for the assignment layer data models.
"""

from enum import Enum


class LabelSpace(str, Enum):
    """
    Independent classification axis, each with its own closed vocabulary.

    The two label spaces differ only in naming and in how an empty model
    answer is treated:
    - BUDGET: empty means "no budget fits" and is a valid answer
    - CATEGORY: every transaction must get a category, empty is invalid
    """

    CATEGORY = "category"
    BUDGET = "budget"

    @property
    def field_name(self) -> str:
        """Key of the label array in the tool input ("categories" / "budgets")."""
        return "categories" if self is LabelSpace.CATEGORY else "budgets"

    @property
    def tool_name(self) -> str:
        return f"assign_{self.field_name}"

    @property
    def allows_empty(self) -> bool:
        return self is LabelSpace.BUDGET


class CircuitState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    @classmethod
    def get_ordinal(cls, state: "CircuitState") -> int:
        """Gauge value for the state (0=closed, 1=half_open, 2=open)."""
        order = [cls.CLOSED, cls.HALF_OPEN, cls.OPEN]
        return order.index(state)
