from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from loanfacts.settings import Settings, settings
from loanfacts.weights import DEFAULT_POLICY, WeightPolicy

logger = logging.getLogger(__name__)


class WeightTable(BaseModel):
    weights: Dict[str, float]
    default_weight: Optional[float] = Field(default=None, ge=0.0)


def write_json(path: str, payload: Any) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, sort_keys=True)


def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_policy_table(path: str, default_weight: Optional[float] = None) -> WeightPolicy:
    """
    Load a tuned weight table.
    Layout:
      {"weights": {"<evidence_source_context>": <float>, ...}, "default_weight": <float>}

    `default_weight` in the file wins over the argument; the argument wins over
    the shipped fallback.
    """
    try:
        table = WeightTable.model_validate(read_json(path))
    except ValidationError as exc:
        raise ValueError(f"Invalid evidence weight table {path}: {exc}") from exc

    fallback = table.default_weight
    if fallback is None:
        fallback = default_weight if default_weight is not None else DEFAULT_POLICY.default_weight
    policy = WeightPolicy(weights=table.weights, default_weight=fallback)
    logger.info("Loaded evidence weight table from %s (%s contexts)", path, len(policy.weights))
    return policy


def save_policy_table(path: str, policy: WeightPolicy) -> None:
    write_json(path, {"weights": dict(policy.weights), "default_weight": policy.default_weight})


def policy_from_settings(config: Optional[Settings] = None) -> WeightPolicy:
    """Build the process-wide policy once at startup; pass it by reference afterwards."""
    if config is None:
        config = settings
    if config.evidence_weights_path:
        return load_policy_table(config.evidence_weights_path, config.default_evidence_weight)
    return WeightPolicy(default_weight=config.default_evidence_weight)
