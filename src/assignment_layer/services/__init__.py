"""
Assignment services.

- AssignmentService: one label space (category or budget)
- AssignmentOrchestrator: both label spaces, merged into an AssignmentMap
"""

from assignment_layer.services.assignment_service import AssignmentService
from assignment_layer.services.orchestrator import AssignmentOrchestrator, merge_assignments

__all__ = ["AssignmentService", "AssignmentOrchestrator", "merge_assignments"]
