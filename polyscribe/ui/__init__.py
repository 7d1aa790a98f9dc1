"""Terminal user interface for Polyscribe."""

from .workflow_screen import WorkflowScreen

__all__ = ["WorkflowScreen"]
