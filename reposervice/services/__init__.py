"""
Service layer for reposervice.

Services compose the infrastructure pieces into the operations exposed to
orchestration code.
"""

from .repos_service import ReposService, ResultCallback

__all__ = [
    'ReposService',
    'ResultCallback',
]
