"""
Jira Ticket Cloner

Clones one Jira issue into several target projects, adapting the summary and
fields per target, cleaning the description and copying the attachments.
"""

from __future__ import annotations

from .cli import main

# Import main classes for use as a library
from .adf import sanitize_document
from .exceptions import CloneError, ConfigError, IssueLookupError
from .jira_utils import JiraTracker
from .models import CloneReport, SourceTicket, TargetSpec
from .orchestrator import CloneOrchestrator
from .summary import transform_summary
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

# Public API
__all__ = [
    "CloneError",
    "CloneOrchestrator",
    "CloneReport",
    "ConfigError",
    "IssueLookupError",
    "JiraTracker",
    "SourceTicket",
    "TargetSpec",
    "main",
    "sanitize_document",
    "setup_logging",
    "transform_summary",
]
