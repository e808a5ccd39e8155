"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from bankcards.models directly
"""

from bankcards.models.role import Role, RoleName, user_roles  # noqa: F401
from bankcards.models.user import User  # noqa: F401
from bankcards.models.card import Card, CardStatus, effective_status  # noqa: F401
from bankcards.models.card_transaction import CardTransaction  # noqa: F401
