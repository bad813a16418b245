"""
Infrastructure layer for buildbump.

Contains abstractions for external systems:
- RegistryClient: image tag listing over the Docker Registry HTTP API
- KubernetesJobClient: build jobs through kubectl

These provide clean interfaces that can be mocked for testing.
"""

from .registry_client import RegistryClient
from .job_client import KubernetesJobClient, parse_job_status, job_name_for

__all__ = [
    'RegistryClient',
    'KubernetesJobClient',
    'parse_job_status',
    'job_name_for',
]
