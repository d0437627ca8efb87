"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, ApplicationFactory, ...
"""

from tests.factories.base import BaseFactory, utc_now
from tests.factories.project import ApplicationFactory, ProjectFactory, TaskFactory

__all__ = [
    # Base
    "BaseFactory",
    "utc_now",
    # Domain
    "ApplicationFactory",
    "ProjectFactory",
    "TaskFactory",
]
