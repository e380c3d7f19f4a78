"""
Imperatively mapped classes, loaded by the harness as a legacy mapping descriptor.
"""

from sqlalchemy import Column, Integer, String, Table
from sqlalchemy.orm import registry

mapper_registry = registry()

publishers = Table(
    "publishers",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
)


class Publisher:
    def __init__(self, name: str):
        self.name = name


mapper_registry.map_imperatively(Publisher, publishers)
