"""
Shared FastAPI dependencies.
"""

from trekadmin.services.batch_lifecycle import BatchLifecycleManager
from trekadmin.services.notifier_factory import get_notifier


def get_lifecycle_manager() -> BatchLifecycleManager:
    """Lifecycle manager wired to the process-wide notification sink."""
    return BatchLifecycleManager(get_notifier())
