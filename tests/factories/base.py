"""Base factory configuration for polyfactory."""

from uuid import uuid4

from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from src.nexus_projects.models.base import utc_now

__all__ = ["BaseFactory", "utc_now", "uuid4"]


class BaseFactory(SQLAlchemyFactory):
    """Base factory with common configuration for all models.

    Relationships and foreign keys are never generated; tests set them.
    """

    __is_base_factory__ = True
    __set_relationships__ = False
    __set_foreign_keys__ = False
