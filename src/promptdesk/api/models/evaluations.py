"""
API models for evaluation endpoints.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .common import CamelModel, PageInfo


# Request Models
class CreateEvaluationRequest(BaseModel):
    """Request to start an evaluation of up to three prompt versions over a dataset."""
    name: Optional[Any] = Field(None, description="Evaluation name, unique within the project")
    type: Optional[Any] = Field(None, description="'run' or 'comparison'; anything else means 'run'")
    dataset_id: Optional[Any] = Field(None, alias="datasetId", description="Dataset to evaluate against")
    prompts: Optional[Any] = Field(None, description="List of {promptId, versionId}")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Triage v2 vs v3",
                "type": "comparison",
                "datasetId": 4,
                "prompts": [{"promptId": 7, "versionId": 12}, {"promptId": 7, "versionId": 15}],
            }
        }
    }


# Response Models
class EvaluationOut(CamelModel):
    id: int
    tenant_id: int
    project_id: int
    dataset_id: Optional[int] = None
    name: str
    slug: str
    type: str
    state: str
    workflow_id: Optional[str] = None
    duration_ms: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EvaluationPromptOut(CamelModel):
    prompt_id: int
    version_id: int
    prompt_name: str
    version: int
    response_format: Optional[str] = None


class EvaluationSummaryOut(EvaluationOut):
    dataset_name: Optional[str] = None
    prompts: List[EvaluationPromptOut] = Field(default_factory=list)


class EvaluationOutputOut(CamelModel):
    prompt_id: int
    version_id: int
    result: str
    duration_ms: Optional[int] = None


class EvaluationRecordResultOut(CamelModel):
    record_id: int
    variables: str = Field("{}", description="Record variables as stored JSON text")
    outputs: List[EvaluationOutputOut] = Field(default_factory=list)


class EvaluationPage(PageInfo):
    evaluations: List[EvaluationSummaryOut]


class EvaluationResponse(BaseModel):
    evaluation: EvaluationOut


class EvaluationDetailsResponse(BaseModel):
    evaluation: EvaluationOut
    prompts: List[EvaluationPromptOut]
    results: List[EvaluationRecordResultOut]
