from __future__ import annotations
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..context import EvaluationScope, ProjectScope
from ..errors import Conflict, NotFound
from ..stores.base import DatasetStore, Evaluation, EvaluationStore, PromptStore
from .common import Page, generate_slug, offset_for, unique_slug

logger = logging.getLogger(__name__)

EVALUATION_TYPES = ("run", "comparison")
MAX_EVALUATION_PROMPTS = 3


@dataclass
class EvaluationPromptInfo:
    prompt_id: int
    version_id: int
    prompt_name: str
    version: int
    response_format: Optional[str] = None


@dataclass
class EvaluationSummary:
    evaluation: Evaluation
    dataset_name: Optional[str]
    prompts: List[EvaluationPromptInfo]


@dataclass
class EvaluationOutput:
    prompt_id: int
    version_id: int
    result: str
    duration_ms: Optional[int]


@dataclass
class EvaluationRecordResult:
    record_id: int
    variables: str
    outputs: List[EvaluationOutput] = field(default_factory=list)


@dataclass
class EvaluationDetails:
    evaluation: Evaluation
    prompts: List[EvaluationPromptInfo]
    results: List[EvaluationRecordResult]


def _response_format(body: str) -> Optional[str]:
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    if isinstance(parsed, dict) and parsed.get("response_format"):
        return json.dumps(parsed["response_format"])
    return None


class EvaluationService:
    """Evaluation runs over a dataset with up to three prompt versions."""

    def __init__(self, store: EvaluationStore, datasets: DatasetStore, prompts: PromptStore):
        self._store = store
        self._datasets = datasets
        self._prompts = prompts

    def _prompt_infos(self, scope: EvaluationScope, with_format: bool = False) -> List[EvaluationPromptInfo]:
        infos = []
        for link in self._store.list_prompts(scope):
            prompt = self._prompts.find_prompt(scope.prompt(link.prompt_id))
            version = self._prompts.find_version_by_id(scope, link.version_id)
            infos.append(EvaluationPromptInfo(
                prompt_id=link.prompt_id,
                version_id=link.version_id,
                prompt_name=prompt.name if prompt else f"Prompt {link.prompt_id}",
                version=version.version if version else 0,
                response_format=_response_format(version.body) if (with_format and version) else None,
            ))
        return infos

    def get_evaluations_paginated(self, scope: ProjectScope, page: int, page_size: int) -> Page[EvaluationSummary]:
        evaluations = self._store.find_paginated(scope, offset=offset_for(page, page_size), limit=page_size)
        total = self._store.count(scope)

        summaries = []
        for evaluation in evaluations:
            dataset_name = None
            if evaluation.dataset_id:
                dataset = self._datasets.find_by_id(scope.dataset(evaluation.dataset_id))
                dataset_name = dataset.name if dataset else None
            summaries.append(EvaluationSummary(
                evaluation=evaluation,
                dataset_name=dataset_name,
                prompts=self._prompt_infos(scope.evaluation(evaluation.id)),
            ))
        return Page(items=summaries, total=total, page=page, page_size=page_size)

    def create_evaluation(
        self,
        scope: ProjectScope,
        name: str,
        type: str,
        dataset_id: int,
        prompts: Sequence[Tuple[int, int]],
    ) -> Evaluation:
        if self._datasets.find_by_id(scope.dataset(dataset_id)) is None:
            raise NotFound("Dataset not found")
        if self._store.find_by_name(scope, name) is not None:
            raise Conflict("Evaluation name already exists")

        slug = unique_slug(
            generate_slug(name),
            lambda candidate: self._store.find_by_slug(scope, candidate) is not None,
        )
        evaluation = self._store.create(
            scope, name=name, slug=slug, type=type, state="pending", dataset_id=dataset_id
        )
        self._store.create_prompts(scope.evaluation(evaluation.id), prompts)
        logger.info(f"Created evaluation {evaluation.id} ({slug}) with {len(prompts)} prompts")
        return evaluation

    def get_evaluation_details(self, scope: EvaluationScope) -> Optional[EvaluationDetails]:
        evaluation = self._store.find_by_id(scope)
        if evaluation is None:
            return None

        by_record: Dict[int, List[EvaluationOutput]] = OrderedDict()
        for result in self._store.list_results(scope):
            by_record.setdefault(result.dataset_record_id, []).append(EvaluationOutput(
                prompt_id=result.prompt_id,
                version_id=result.version_id,
                result=result.result,
                duration_ms=result.duration_ms,
            ))

        results = []
        for record_id, outputs in by_record.items():
            record = self._datasets.find_record(scope, record_id)
            if record is not None:
                results.append(EvaluationRecordResult(record_id=record_id, variables=record.variables, outputs=outputs))

        return EvaluationDetails(
            evaluation=evaluation,
            prompts=self._prompt_infos(scope, with_format=True),
            results=results,
        )

    def delete_evaluation(self, scope: EvaluationScope) -> None:
        if not self._store.delete(scope):
            raise NotFound("Evaluation not found")
