"""
SecGate - Security Run Model

One row per gate invocation. Created as "running" before any execution
starts and written once more when the verdict is known (or the run fails).
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from secgate.db.database import Base
import uuid


class SecurityRun(Base):
    """Persisted gate run record"""
    __tablename__ = "security_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    status: Mapped[str] = mapped_column(String(30), default="running")  # running, completed, completed_with_errors, failed
    policy_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Verdict
    exit_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gate_result: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # PASS, WARN, BLOCK
    gate_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Finding counts
    test_findings_count: Mapped[int] = mapped_column(Integer, default=0)
    workflow_findings_count: Mapped[int] = mapped_column(Integer, default=0)

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Request snapshot + gate calculation details
    run_metadata: Mapped[dict] = mapped_column("metadata", JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "policy_id": self.policy_id,
            "exit_code": self.exit_code,
            "gate_result": self.gate_result,
            "gate_score": self.gate_score,
            "test_findings_count": self.test_findings_count,
            "workflow_findings_count": self.workflow_findings_count,
            "error_message": self.error_message,
            "metadata": self.run_metadata or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
