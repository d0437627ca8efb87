"""Shared enums for models."""

from enum import Enum


class Role(str, Enum):
    """Roles carried in identity-provider tokens."""

    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    HEAD_ADMIN = "HEAD_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class ProjectType(str, Enum):
    PROJECT = "PROJECT"
    RESEARCH = "RESEARCH"
    PAPER_PUBLISH = "PAPER_PUBLISH"
    OTHER = "OTHER"


class ModerationStatus(str, Enum):
    """Admin-controlled approval gate, separate from work progress."""

    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ProgressStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _PROGRESS_ORDER.index(self)


_PROGRESS_ORDER = [ProgressStatus.OPEN, ProgressStatus.IN_PROGRESS, ProgressStatus.COMPLETED]


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ModerationAction(str, Enum):
    """Admin actions on a project's moderation state."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ARCHIVE = "ARCHIVE"
    REOPEN = "REOPEN"
