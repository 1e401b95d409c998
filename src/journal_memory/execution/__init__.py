"""
Consolidation decision execution.

Provides the executor that applies validated decisions to the record
store and the audit log.
"""

from journal_memory.execution.executor import MemoryDecisionExecutor, append_content
from journal_memory.execution.models import ExecutionContext, ExecutionResult

__all__ = [
    "MemoryDecisionExecutor",
    "ExecutionContext",
    "ExecutionResult",
    "append_content",
]
