"""
SQLAlchemy ORM models for database tables.

Domain entities live in exchange_api.domain.entities; repositories convert
between the two.
"""
from sqlalchemy import Column, String, Text, DateTime, Date, Index, ForeignKey, Boolean, Integer
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


# ============================================
# Exchange Programs
# ============================================

class ExchangeProgramModel(Base):
    """
    Exchange programs offered by organizations.

    Never physically deleted - closing sets status_id to Deleted.
    """
    __tablename__ = "exchange_programs"

    id = Column(Integer, primary_key=True, autoincrement=False)  # From "ExchangePrograms" sequence
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    limit_application_date = Column(Date, nullable=False)
    start_date = Column(Date, nullable=False)
    finish_date = Column(Date, nullable=False)
    application_documents = Column(Text, nullable=False, default="")  # Free-text spec of applicant documents
    required_documents = Column(Text, nullable=False, default="")  # Free-text spec of institution documents
    images_url = Column(Text, nullable=False, default="")
    organization_id = Column(Integer, nullable=False)
    country_id = Column(Integer, nullable=False)
    state_id = Column(Integer, nullable=False)
    status_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_exchange_programs_organization', 'organization_id'),
        Index('idx_exchange_programs_status', 'status_id'),
    )


# ============================================
# Applications
# ============================================

class ApplicationModel(Base):
    """
    Student applications to exchange programs.

    Never physically deleted - status transitions to Deleted instead.
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=False)  # From "Applications" sequence
    program_id = Column(Integer, ForeignKey('exchange_programs.id'), nullable=False)
    student_id = Column(Integer, nullable=False)  # users.id of the applicant
    reason = Column(Text, nullable=False, default="")
    status_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_applications_program', 'program_id'),
        Index('idx_applications_student', 'student_id'),
    )

    # Relationships
    documents = relationship(
        "ApplicationDocumentModel",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationDocumentModel.position",
    )


class ApplicationDocumentModel(Base):
    """
    Documents attached to an application.

    Application documents and required documents share one table and one
    id space per application; document_type is the discriminator.
    position keeps the order documents were received in.
    """
    __tablename__ = "application_documents"

    application_id = Column(Integer, ForeignKey('applications.id', ondelete='CASCADE'), primary_key=True)
    id = Column(Integer, primary_key=True, autoincrement=False)  # Unique within the application
    document_type = Column(Integer, nullable=False)  # 1 = application, 2 = required
    position = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=False)
    url = Column(Text, nullable=False, default="")
    status_id = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_application_documents_type', 'application_id', 'document_type'),
    )

    # Relationships
    application = relationship("ApplicationModel", back_populates="documents")


# ============================================
# Authentication Models
# ============================================

class User(Base):
    """
    Users of the API.

    role_id / organization_id drive what a caller may see.
    organization_id = 0 means no organization affiliation.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # bcrypt hash
    role_id = Column(Integer, nullable=False)
    organization_id = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_users_is_active', 'is_active'),
    )
