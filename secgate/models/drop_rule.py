"""
SecGate - Finding Drop Rule Model
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from secgate.db.database import Base
import uuid


class DropRuleRecord(Base):
    """Operator-authored rule that keeps matching findings out of the counts"""
    __tablename__ = "finding_drop_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    priority: Mapped[int] = mapped_column(Integer, default=100)  # lower is evaluated first

    applies_to: Mapped[str] = mapped_column(String(20), default="both")  # test_run, workflow, both
    match_method: Mapped[str] = mapped_column(String(10), default="ANY")
    match_type: Mapped[str] = mapped_column(String(10), default="contains")  # exact, prefix, contains, regex
    match_path: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    match_service_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    match_template_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    match_workflow_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_enabled": self.is_enabled,
            "priority": self.priority,
            "applies_to": self.applies_to,
            "match_method": self.match_method,
            "match_type": self.match_type,
            "match_path": self.match_path,
            "match_service_id": self.match_service_id,
            "match_template_id": self.match_template_id,
            "match_workflow_id": self.match_workflow_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
