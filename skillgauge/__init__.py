"""
SkillGauge Workforce Assessment Platform

This package provides the backend for the SkillGauge platform, where
construction workers register, administrators curate a question bank and
workers take scored multiple-choice assessments.

The platform features:
1. Atomic submission and scoring of assessment attempts
2. A question bank with option integrity checks
3. Assessment settings (question count, window, re-take frequency)
4. A schema-tolerant worker profile store with a JSON overlay
5. JWT-based role authorization
"""

__version__ = "0.1.0"
