"""
Path, query and body parameter validation.

Path identifiers are strict: a run of ASCII digits with a value above zero
that fits a signed 64-bit column. All identifiers of a route are checked
together and a single bad one fails the request with one message naming
every role, before any service runs.

Identifiers that arrive in JSON bodies are coerced leniently instead, the
way a browser client's ``Number(value)`` would read them.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import Depends, Query

from ...config import Settings
from ...context import DatasetScope, EvaluationScope, ProjectScope, PromptScope, TenantContext
from ...errors import InvalidParameter
from ...records.variables import parse_number
from .auth import require_tenant
from .services import get_settings

_DIGITS = re.compile(r"[0-9]+")

# Largest value a signed 64-bit id column holds
MAX_IDENTIFIER = 2**63 - 1

INVALID_PROJECT = "Invalid project ID"
INVALID_DATASET = "Invalid project ID or dataset ID"
INVALID_PROMPT = "Invalid project or prompt ID"
INVALID_PROMPT_VERSION = "Invalid project, prompt, or version ID"
INVALID_EVALUATION = "Invalid project ID or evaluation ID"


def parse_identifier(raw: Optional[str]) -> Optional[int]:
    if raw is None or not _DIGITS.fullmatch(raw):
        return None
    value = int(raw)
    return value if 0 < value <= MAX_IDENTIFIER else None


def parse_identifiers(raw: Mapping[str, Optional[str]], message: str) -> Dict[str, int]:
    """Parse every named identifier or reject the whole set with ``message``."""
    parsed = {role: parse_identifier(value) for role, value in raw.items()}
    if any(value is None for value in parsed.values()):
        raise InvalidParameter(message)
    return parsed


def coerce_positive_int(value: Any) -> Optional[int]:
    """Read a loosely typed JSON value as a positive integer, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = parse_number(value)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and 0 < value <= MAX_IDENTIFIER:
        return value
    return None


def coerce_record_ids(value: Any) -> List[int]:
    """Keep the usable ids of a ``recordIds`` list; an empty result is a client error."""
    if not isinstance(value, list):
        raise InvalidParameter("Record IDs are required")
    ids = [record_id for record_id in map(coerce_positive_int, value) if record_id is not None]
    if not ids:
        raise InvalidParameter("Record IDs are required")
    return ids


def project_scope(project_id: str, tenant: TenantContext = Depends(require_tenant)) -> ProjectScope:
    ids = parse_identifiers({"project": project_id}, INVALID_PROJECT)
    return tenant.project(ids["project"])


def dataset_scope(
    project_id: str, dataset_id: str, tenant: TenantContext = Depends(require_tenant)
) -> DatasetScope:
    ids = parse_identifiers({"project": project_id, "dataset": dataset_id}, INVALID_DATASET)
    return tenant.project(ids["project"]).dataset(ids["dataset"])


def prompt_scope(
    project_id: str, prompt_id: str, tenant: TenantContext = Depends(require_tenant)
) -> PromptScope:
    ids = parse_identifiers({"project": project_id, "prompt": prompt_id}, INVALID_PROMPT)
    return tenant.project(ids["project"]).prompt(ids["prompt"])


def prompt_version_scope(
    project_id: str, prompt_id: str, version: str, tenant: TenantContext = Depends(require_tenant)
) -> Tuple[PromptScope, int]:
    ids = parse_identifiers(
        {"project": project_id, "prompt": prompt_id, "version": version}, INVALID_PROMPT_VERSION
    )
    return tenant.project(ids["project"]).prompt(ids["prompt"]), ids["version"]


def evaluation_scope(
    project_id: str, evaluation_id: str, tenant: TenantContext = Depends(require_tenant)
) -> EvaluationScope:
    ids = parse_identifiers({"project": project_id, "evaluation": evaluation_id}, INVALID_EVALUATION)
    return tenant.project(ids["project"]).evaluation(ids["evaluation"])


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int


def pagination(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    settings: Settings = Depends(get_settings),
) -> Pagination:
    page_number = 1 if page is None else parse_identifier(page.strip())
    if page_number is None:
        raise InvalidParameter("Invalid page number")

    size = settings.default_page_size if page_size is None else parse_identifier(page_size.strip())
    if size is None or size > settings.max_page_size:
        raise InvalidParameter(f"Invalid page size (must be between 1 and {settings.max_page_size})")

    return Pagination(page=page_number, page_size=size)
