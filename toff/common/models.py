"""Shared ORM column helpers."""

from __future__ import annotations

import enum

import sqlalchemy as sa


def enum_column(enum_cls: type[enum.Enum], name: str) -> sa.Enum:
    """Portable enum column storing member values as VARCHAR + CHECK.

    Works unchanged on SQLite and PostgreSQL (no native ENUM type to create).
    """
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )
