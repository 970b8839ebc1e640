"""SQLAlchemy ORM models for scenario storage."""
from sqlalchemy import Column, String, Text, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ScenarioModel(Base):
    """Database model for test scenarios."""
    __tablename__ = "scenarios"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    group_id = Column(String(100), nullable=True)

    # ISO-8601 strings, kept exactly as authored/exported
    created_at = Column(String(40), nullable=False)
    updated_at = Column(String(40), nullable=False)

    tags = Column(JSON, nullable=False, default=list)

    # Full scenario document (camelCase wire format)
    payload = Column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_scenarios_group_id", "group_id"),
        Index("ix_scenarios_created_at", "created_at"),
    )

    def to_dict(self) -> dict:
        """Return the stored scenario document."""
        return dict(self.payload)


class ScenarioGroupModel(Base):
    """Database model for scenario groups."""
    __tablename__ = "scenario_groups"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(String(40), nullable=False)
    updated_at = Column(String(40), nullable=False)

    def to_dict(self) -> dict:
        """Convert to the camelCase wire format."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
