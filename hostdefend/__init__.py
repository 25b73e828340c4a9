"""
hostdefend — quick host defense for time-boxed cyber-defense exercises:
baseline monitoring, persistence hunting and optional auto-remediation.

CLI entry: hostdefend (see pyproject.toml)
"""

from .models import Category, Finding, Outcome, ProcessRecord, Severity
from .monitor import BaselineMonitor
from .persistence import PersistenceScanner
from .remediation import RemediationPolicy

__all__ = [
    "Category",
    "Finding",
    "Outcome",
    "ProcessRecord",
    "Severity",
    "BaselineMonitor",
    "PersistenceScanner",
    "RemediationPolicy",
]

__version__ = "0.1.0"
