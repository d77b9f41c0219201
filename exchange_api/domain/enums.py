"""
Shared enumerations.

Values are persisted as integers, so existing numbers must never change.
"""

import enum


class Status(enum.IntEnum):
    """Lifecycle status shared by applications, exchange programs and documents"""
    ACTIVE = 1
    PENDING = 2
    APPROVED = 3
    REJECTED = 4
    CANCELLED = 5
    CLOSED = 6
    DELETED = 7  # Soft delete - rows are never removed


class Role(enum.IntEnum):
    """User roles. Anything that is not ADMINISTRATOR or ORGANIZATION is student-like."""
    ADMINISTRATOR = 1
    ORGANIZATION = 2
    STUDENT = 3


class DocumentType(enum.IntEnum):
    """Discriminator between the two document sub-lists of an application"""
    APPLICATION = 1  # Submitted by the applicant
    REQUIRED = 2  # Requested by the institution
