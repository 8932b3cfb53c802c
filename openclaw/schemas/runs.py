"""
Request and response schemas for runs and artifacts.

Enumerated fields are plain strings here; the store validates them so every
bad value surfaces as the same validation_error.
"""

from typing import Optional

from pydantic import BaseModel, Field


class RunCreateRequest(BaseModel):
    type: str = Field(..., examples=["text", "image"])
    project: str = Field(..., min_length=1, examples=["juniper-hollow"])
    params: dict = Field(default_factory=dict, examples=[{"note": "x"}])
    b2_prefix: Optional[str] = Field(None, examples=["images/jh/run1"])


class TransitionRequest(BaseModel):
    from_status: str = Field(..., alias="from", examples=["queued"])
    to_status: str = Field(..., alias="to", examples=["running"])
    result: Optional[dict] = None
    error: Optional[str] = None

    model_config = {"populate_by_name": True}


class ArtifactCreateRequest(BaseModel):
    kind: str = Field(..., examples=["image", "text", "model", "other"])
    path: str = Field(..., min_length=1, examples=["images/jh/run1/page-01.png"])
    metadata: dict = Field(default_factory=dict)


def _iso(value) -> str:
    return value.isoformat() if value else ""


class RunResponse(BaseModel):
    id: str
    type: str
    project: str
    status: str
    params: dict
    b2_prefix: Optional[str]
    result: dict
    error: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_run(cls, run) -> "RunResponse":
        return cls(
            id=str(run.id),
            type=run.type,
            project=run.project,
            status=run.status,
            params=run.params or {},
            b2_prefix=run.b2_prefix,
            result=run.result or {},
            error=run.error,
            created_at=_iso(run.created_at),
            updated_at=_iso(run.updated_at),
        )


class ArtifactResponse(BaseModel):
    id: str
    run_id: str
    kind: str
    path: str
    metadata: dict
    created_at: str

    @classmethod
    def from_artifact(cls, artifact) -> "ArtifactResponse":
        return cls(
            id=str(artifact.id),
            run_id=str(artifact.run_id),
            kind=artifact.kind,
            path=artifact.path,
            metadata=artifact.metadata_ or {},
            created_at=_iso(artifact.created_at),
        )


class RunListResponse(BaseModel):
    runs: list[RunResponse]
    limit: int
    offset: int


class ArtifactListResponse(BaseModel):
    run_id: str
    artifacts: list[ArtifactResponse]
