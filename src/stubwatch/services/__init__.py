"""
Service Layer - GenerationPass, WatchService, and ServicesContainer.
"""

from stubwatch.services.container import ServicesContainer, create_services
from stubwatch.services.generation_pass import GenerationPass, PassResult
from stubwatch.services.watch_service import (
    PathValidationError,
    WatchService,
    WatchServiceError,
    WatchStats,
)

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Generation pass
    "GenerationPass",
    "PassResult",
    # Watch service
    "WatchService",
    "WatchServiceError",
    "PathValidationError",
    "WatchStats",
]
