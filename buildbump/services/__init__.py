"""
Service layer for buildbump.

Contains the logic that orchestrates domain objects and infrastructure:
- BuildSupervisor: submits builds and polls them to a terminal outcome
- Orchestrator: turns one change event into Skipped or Built

Services are the primary API for the CLI to use.
"""

from .build_supervisor import BuildSupervisor, BuildJob
from .orchestrator import Orchestrator, application_for

__all__ = [
    'BuildSupervisor',
    'BuildJob',
    'Orchestrator',
    'application_for',
]
