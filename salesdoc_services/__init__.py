"""
salesdoc_services -- Package init and public API.

Responsibility:
    Orchestration over the kernel: wires kernel services from the active
    configuration and bootstraps logging and the database engine.

Architecture position:
    Dependency direction:
        salesdoc_services/ -> salesdoc_kernel/, salesdoc_config/  (allowed)
        salesdoc_kernel/   -> salesdoc_services/                  (FORBIDDEN)
"""

from salesdoc_services.bootstrap import bootstrap
from salesdoc_services.lifecycle import DocumentLifecycleService

__all__ = ["DocumentLifecycleService", "bootstrap"]
