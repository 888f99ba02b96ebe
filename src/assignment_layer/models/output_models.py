"""
Output data models for the assignment layer.

The orchestrator returns a plain mapping so callers need no dependency on
pydantic to consume it.
"""

from typing import TypedDict


class RecordAssignment(TypedDict, total=False):
    """Labels assigned to one record; absent keys mean "not assigned"."""

    category: str
    budget: str


AssignmentMap = dict[str, RecordAssignment]
"""Record id -> assigned labels. Sparse: unassigned records are omitted."""
