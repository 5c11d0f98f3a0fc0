"""Core orchestration module"""

from .config import Config
from .context import RunContext
from .orchestrator import OperationOutcome, Orchestrator

__all__ = ["Config", "OperationOutcome", "Orchestrator", "RunContext"]
