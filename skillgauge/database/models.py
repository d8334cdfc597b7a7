"""
SQLAlchemy ORM models for the SkillGauge platform.

This module defines the database models for:
- User, Role, UserRoleLink: accounts, the closed role catalogue and memberships
- Question, QuestionOption: the question bank with ordered options
- Assessment, AssessmentAnswer: scored attempts and their answers
- AssessmentSettings: the singleton settings row
- Worker, WorkerProfileOverlay: the worker table core columns and the JSON overlay

The ``workers`` table may carry more columns than declared here; the worker
profile store discovers them at runtime against its schema descriptor.
"""

import uuid
from typing import Any, Dict

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, Numeric,
    ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from skillgauge.common.utils import utcnow, serialize_datetime
from skillgauge.database.base import ModelBase


def generate_id() -> str:
    return str(uuid.uuid4())


class User(ModelBase):
    """Account of a person who can log in; workers, foremen and admins alike."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_id)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False, unique=True)
    email = Column(String(255), nullable=True, unique=True)
    password_hash = Column(String(128), nullable=False)
    password_salt = Column(String(64), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime, nullable=True)

    role_links = relationship(
        "UserRoleLink", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def role_names(self):
        return sorted(link.role.name for link in self.role_links)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "roles": self.role_names,
            "created_at": serialize_datetime(self.created_at),
            "updated_at": serialize_datetime(self.updated_at),
            "last_login": serialize_datetime(self.last_login),
        }

    def __repr__(self):
        return f"<User(id='{self.id}', phone='{self.phone}')>"


class Role(ModelBase):
    __tablename__ = 'roles'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)


class UserRoleLink(ModelBase):
    __tablename__ = 'user_roles'

    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    role_id = Column(Integer, ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)

    user = relationship("User", back_populates="role_links")
    role = relationship("Role", lazy="joined")


class Question(ModelBase):
    """A multiple-choice question; options are replaced wholesale on edit."""
    __tablename__ = 'questions'

    id = Column(String(36), primary_key=True, default=generate_id)
    text = Column(Text, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    difficulty = Column(String(50), nullable=True)
    version = Column(String(50), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    options = relationship(
        "QuestionOption", back_populates="question",
        order_by="QuestionOption.position",
        cascade="all, delete-orphan", passive_deletes=True
    )

    def to_dict(self, include_correct: bool = True) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "difficulty": self.difficulty,
            "version": self.version,
            "active": bool(self.active),
            "options": [option.to_dict(include_correct) for option in self.options],
        }


class QuestionOption(ModelBase):
    __tablename__ = 'question_options'

    id = Column(String(36), primary_key=True, default=generate_id)
    question_id = Column(
        String(36), ForeignKey('questions.id', ondelete='CASCADE'), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    question = relationship("Question", back_populates="options")

    def to_dict(self, include_correct: bool = True) -> Dict[str, Any]:
        data = {"id": self.id, "text": self.text}
        if include_correct:
            data["is_correct"] = bool(self.is_correct)
        return data


class Assessment(ModelBase):
    """One scored submission of answers by a worker."""
    __tablename__ = 'assessments'

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    finished_at = Column(DateTime, nullable=True)
    score = Column(Numeric(5, 2), nullable=False)
    passed = Column(Boolean, nullable=False)

    answers = relationship(
        "AssessmentAnswer", back_populates="assessment",
        order_by="AssessmentAnswer.id",
        cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index('idx_assessments_user_finished', user_id, finished_at),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "started_at": serialize_datetime(self.started_at),
            "finished_at": serialize_datetime(self.finished_at),
            "score": float(self.score) if self.score is not None else None,
            "passed": bool(self.passed),
        }


class AssessmentAnswer(ModelBase):
    """
    One answer within an attempt.

    ``is_correct`` is captured at submission time; question and option ids are
    kept without foreign keys so history survives question edits.
    """
    __tablename__ = 'assessment_answers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    assessment_id = Column(
        String(36), ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False
    )
    question_id = Column(String(36), nullable=False)
    chosen_option_id = Column(String(36), nullable=False)
    is_correct = Column(Boolean, nullable=False)

    assessment = relationship("Assessment", back_populates="answers")

    __table_args__ = (
        UniqueConstraint('assessment_id', 'question_id', name='uq_assessment_answers_question'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "chosen_option_id": self.chosen_option_id,
            "is_correct": bool(self.is_correct),
        }


class AssessmentSettings(ModelBase):
    """Singleton row (id=1) governing the assessment paper and window."""
    __tablename__ = 'assessment_settings'

    SINGLETON_ID = 1
    DEFAULT_QUESTION_COUNT = 10

    id = Column(Integer, primary_key=True)
    question_count = Column(Integer, nullable=False, default=DEFAULT_QUESTION_COUNT)
    start_at = Column(DateTime, nullable=True)
    end_at = Column(DateTime, nullable=True)
    frequency_months = Column(Integer, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionCount": self.question_count,
            "startAt": serialize_datetime(self.start_at),
            "endAt": serialize_datetime(self.end_at),
            "frequencyMonths": self.frequency_months,
            "updatedAt": serialize_datetime(self.updated_at),
        }


class Worker(ModelBase):
    """Core columns of the ``workers`` table."""
    __tablename__ = 'workers'

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    national_id = Column(String(13), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class WorkerProfileOverlay(ModelBase):
    """JSON document holding profile fields the ``workers`` table has no column for."""
    __tablename__ = 'worker_profile_overlays'

    worker_id = Column(String(36), primary_key=True)
    profile = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
