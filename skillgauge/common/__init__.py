"""
Common utilities shared across SkillGauge components: logging, the error
taxonomy, input validation, authorization and database session handling.
"""
