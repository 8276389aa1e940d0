"""
Custom SQLAlchemy column types.
"""

import enum
from typing import Type

from sqlalchemy import Enum as SAEnum


def enum_column_type(enum_cls: Type[enum.Enum], length: int = 20) -> SAEnum:
    """
    Portable enum column that stores the member *value*.

    Partial indexes compare against literal values (e.g. status = 'active'),
    so the stored text must be the value rather than the member name.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
        create_constraint=False,
    )
