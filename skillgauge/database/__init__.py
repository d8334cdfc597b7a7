"""
Database Module

This module provides the declarative base, ORM models and schema
initialization for the SkillGauge backend.
"""

from skillgauge.database.base import Base, ModelBase, metadata

__all__ = ['Base', 'ModelBase', 'metadata']
