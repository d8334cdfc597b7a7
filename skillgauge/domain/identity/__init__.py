"""
Identity & Role Store

User accounts, password verifiers and role memberships.
"""

from skillgauge.domain.identity.repository import IdentityRepository, GRANTABLE_ROLES

__all__ = ['IdentityRepository', 'GRANTABLE_ROLES']
