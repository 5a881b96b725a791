"""
SecGate - Security Suite Model

A named, reusable gate configuration (P0, P1, ...) that CI pipelines run by name.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from secgate.db.database import Base
import uuid


class SecuritySuite(Base):
    """Named set of templates, workflows and accounts plus an optional policy"""
    __tablename__ = "security_suites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    environment_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    environment_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    template_ids: Mapped[list] = mapped_column(JSON, default=list)
    workflow_ids: Mapped[list] = mapped_column(JSON, default=list)
    account_ids: Mapped[list] = mapped_column(JSON, default=list)

    policy_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "environment_id": self.environment_id,
            "environment_name": self.environment_name,
            "template_ids": self.template_ids or [],
            "workflow_ids": self.workflow_ids or [],
            "account_ids": self.account_ids or [],
            "policy_id": self.policy_id,
            "is_enabled": self.is_enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
