"""
SecGate - CI/CD Gate Policy Model

Persists weighted threshold policies that turn finding counts into a
PASS / WARN / BLOCK verdict.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, DateTime, Text, JSON, Float
from sqlalchemy.orm import Mapped, mapped_column
from secgate.db.database import Base
import uuid


class GatePolicyRecord(Base):
    """Persisted gate policy"""
    __tablename__ = "gate_policies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    # Percentage weights applied to each finding origin
    weight_test: Mapped[float] = mapped_column(Float, default=100)
    weight_workflow: Mapped[float] = mapped_column(Float, default=0)
    combine_operator: Mapped[str] = mapped_column(String(3), default="OR")  # OR, AND

    # Ordered [{operator, threshold, action}], first match wins
    rules_test: Mapped[list] = mapped_column(JSON, default=list)
    rules_workflow: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_enabled": self.is_enabled,
            "weight_test": self.weight_test,
            "weight_workflow": self.weight_workflow,
            "combine_operator": self.combine_operator,
            "rules_test": self.rules_test or [],
            "rules_workflow": self.rules_workflow or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
