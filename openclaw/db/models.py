"""
Database models for runs and their artifacts.

Schema matches the persisted contract exactly: check constraints on the
enumerated columns, cascade delete from runs to artifacts, and one index per
lookup column.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DDL,
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Text,
    Uuid,
    event,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# jsonb on postgres, plain JSON everywhere else (tests run on sqlite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class RunType(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"


class RunStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ArtifactKind(str, enum.Enum):
    IMAGE = "image"
    TEXT = "text"
    MODEL = "model"
    OTHER = "other"


def utcnow() -> datetime:
    # microsecond clock; server now() is per-second on sqlite and per-transaction on postgres
    return datetime.now(timezone.utc)


def _in_clause(column: str, enum_cls: type[enum.Enum]) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Base(DeclarativeBase):
    pass


class Run(Base):
    """One unit of requested work."""

    __tablename__ = "runs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    project: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=RunStatus.QUEUED.value, server_default=text("'queued'")
    )
    params: Mapped[dict] = mapped_column(JSONType, default=dict, server_default=text("'{}'"))
    b2_prefix: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[dict] = mapped_column(JSONType, default=dict, server_default=text("'{}'"))
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(_in_clause("type", RunType), name="runs_type_check"),
        CheckConstraint(_in_clause("status", RunStatus), name="runs_status_check"),
        Index("idx_runs_project", "project"),
        Index("idx_runs_type", "type"),
        Index("idx_runs_status", "status"),
    )


class Artifact(Base):
    """One output object of a run, pointing at a key in object storage."""

    __tablename__ = "artifacts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("runs.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict] = mapped_column(
        "metadata", JSONType, default=dict, server_default=text("'{}'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(_in_clause("kind", ArtifactKind), name="artifacts_kind_check"),
        Index("idx_artifacts_run_id", "run_id"),
        Index("idx_artifacts_kind", "kind"),
    )


# Rows are normally inserted through the ORM (which supplies uuid4), but raw
# inserts on postgres still get a random id from the server.
for _table in (Run.__table__, Artifact.__table__):
    event.listen(
        _table,
        "after_create",
        DDL(f"ALTER TABLE {_table.name} ALTER COLUMN id SET DEFAULT gen_random_uuid()").execute_if(
            dialect="postgresql"
        ),
    )
