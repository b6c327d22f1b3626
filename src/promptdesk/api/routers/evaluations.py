"""
Evaluation endpoints.

Creating an evaluation records it in the "pending" state together with the
prompt versions it compares; running it is left to a separate worker.
"""

from typing import List, Tuple

from fastapi import APIRouter, Depends

from ...context import EvaluationScope, ProjectScope
from ...errors import InvalidParameter, NotFound
from ...services import EvaluationService
from ...services.evaluations import MAX_EVALUATION_PROMPTS, EvaluationSummary
from ..dependencies.params import Pagination, coerce_positive_int, evaluation_scope, pagination, project_scope
from ..dependencies.services import get_evaluation_service
from ..errors import internal_error
from ..models.common import SuccessResponse
from ..models.evaluations import (
    CreateEvaluationRequest,
    EvaluationDetailsResponse,
    EvaluationOut,
    EvaluationPage,
    EvaluationPromptOut,
    EvaluationRecordResultOut,
    EvaluationResponse,
    EvaluationSummaryOut,
)

router = APIRouter()


def summary_out(summary: EvaluationSummary) -> EvaluationSummaryOut:
    evaluation = EvaluationOut.model_validate(summary.evaluation)
    return EvaluationSummaryOut(
        **evaluation.model_dump(),
        dataset_name=summary.dataset_name,
        prompts=[EvaluationPromptOut.model_validate(p) for p in summary.prompts],
    )


def parse_evaluation_prompts(value) -> List[Tuple[int, int]]:
    """Keep the {promptId, versionId} entries whose ids are both usable."""
    if not isinstance(value, list):
        return []
    prompts = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        prompt_id = coerce_positive_int(entry.get("promptId"))
        version_id = coerce_positive_int(entry.get("versionId"))
        if prompt_id is not None and version_id is not None:
            prompts.append((prompt_id, version_id))
    return prompts


@router.get("/{project_id}/evaluations", response_model=EvaluationPage)
def list_evaluations(
    scope: ProjectScope = Depends(project_scope),
    paging: Pagination = Depends(pagination),
    service: EvaluationService = Depends(get_evaluation_service),
):
    """List evaluations of a project, newest first, with their dataset and prompts."""
    with internal_error("Failed to list evaluations"):
        page = service.get_evaluations_paginated(scope, paging.page, paging.page_size)
    return EvaluationPage(
        evaluations=[summary_out(s) for s in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.post("/{project_id}/evaluations", response_model=EvaluationResponse, status_code=201)
def create_evaluation(
    request: CreateEvaluationRequest,
    scope: ProjectScope = Depends(project_scope),
    service: EvaluationService = Depends(get_evaluation_service),
):
    name = request.name
    if not isinstance(name, str) or not name.strip():
        raise InvalidParameter("Name is required")

    dataset_id = coerce_positive_int(request.dataset_id)
    if dataset_id is None:
        raise InvalidParameter("Valid dataset ID is required")

    prompts = parse_evaluation_prompts(request.prompts)
    if not prompts:
        raise InvalidParameter("At least one prompt is required")
    if len(prompts) > MAX_EVALUATION_PROMPTS:
        raise InvalidParameter(f"Maximum of {MAX_EVALUATION_PROMPTS} prompts allowed")

    evaluation_type = "comparison" if request.type == "comparison" else "run"

    with internal_error("Failed to create evaluation"):
        evaluation = service.create_evaluation(
            scope, name=name.strip(), type=evaluation_type, dataset_id=dataset_id, prompts=prompts
        )
    return EvaluationResponse(evaluation=EvaluationOut.model_validate(evaluation))


@router.get("/{project_id}/evaluations/{evaluation_id}", response_model=EvaluationDetailsResponse)
def get_evaluation(
    scope: EvaluationScope = Depends(evaluation_scope),
    service: EvaluationService = Depends(get_evaluation_service),
):
    """Evaluation with its prompts and the outputs grouped per dataset record."""
    with internal_error("Failed to fetch evaluation details"):
        details = service.get_evaluation_details(scope)
    if details is None:
        raise NotFound("Evaluation not found")
    return EvaluationDetailsResponse(
        evaluation=EvaluationOut.model_validate(details.evaluation),
        prompts=[EvaluationPromptOut.model_validate(p) for p in details.prompts],
        results=[EvaluationRecordResultOut.model_validate(r) for r in details.results],
    )


@router.delete("/{project_id}/evaluations/{evaluation_id}", response_model=SuccessResponse)
def delete_evaluation(
    scope: EvaluationScope = Depends(evaluation_scope),
    service: EvaluationService = Depends(get_evaluation_service),
):
    with internal_error("Failed to delete evaluation"):
        service.delete_evaluation(scope)
    return SuccessResponse()
