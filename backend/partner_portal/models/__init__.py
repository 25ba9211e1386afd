"""
SQLAlchemy models
"""

from partner_portal.models.user import User, Session
from partner_portal.models.dealer import Dealer

__all__ = [
    "User",
    "Session",
    "Dealer",
]
