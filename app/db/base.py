"""
Declarative base shared by all models.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models keep plain Column() assignments with loose annotations
    __allow_unmapped__ = True
