"""Loading exported platform records into pandas DataFrames.

Each table is a JSON array of records in `<data_dir>/<table>.json`. Tables are
reindexed to their model's columns so queries can filter on any field even
when the export omitted it.
"""
import math
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Type

import pandas as pd
from pydantic import BaseModel

from classroom_analytics.core.logging import get_logger
from classroom_analytics.domain.records import (
    Assignment,
    ChatMessage,
    ClassRecord,
    Question,
    StudentProgress,
    StudentSession,
)

logger = get_logger(__name__)

TABLES: Dict[str, Type[BaseModel]] = {
    "classes": ClassRecord,
    "assignments": Assignment,
    "questions": Question,
    "student_sessions": StudentSession,
    "student_progress": StudentProgress,
    "chat_messages": ChatMessage,
}


class RecordStoreError(Exception):
    """Raised when record files cannot be located or parsed."""


def empty_frame(model: Type[BaseModel]) -> pd.DataFrame:
    """Return an empty DataFrame carrying the model's columns."""
    return pd.DataFrame(columns=list(model.model_fields))


def frame_from_records(model: Type[BaseModel], records: Iterable[BaseModel]) -> pd.DataFrame:
    """Build a table from model instances."""
    rows = [r.model_dump(mode="json") for r in records]
    if not rows:
        return empty_frame(model)
    return pd.DataFrame(rows).reindex(columns=list(model.model_fields))


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def rows_to_models(frame: pd.DataFrame, model: Type[BaseModel]) -> List[BaseModel]:
    """Convert DataFrame rows back into validated models.

    Missing cells are dropped rather than passed as None, so model defaults
    apply to columns an older export never had.
    """
    out = []
    for row in frame.to_dict(orient="records"):
        clean = {k: v for k, v in row.items() if not _is_missing(v)}
        out.append(model.model_validate(clean))
    return out


def _read_table(path: Path, model: Type[BaseModel]) -> pd.DataFrame:
    if not path.exists():
        logger.warning(f"Record file missing, treating table as empty: {path.name}")
        return empty_frame(model)
    try:
        # dtype/convert_dates off: ids must stay strings, *_at columns stay epoch ms
        df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    except ValueError as e:
        raise RecordStoreError(f"Could not parse {path}: {e}") from e
    if df.empty:
        return empty_frame(model)
    return df.reindex(columns=list(model.model_fields))


@lru_cache(maxsize=4)
def load_frames(data_dir: str) -> Dict[str, pd.DataFrame]:
    """Load every table under data_dir once.

    Raises:
        RecordStoreError: If data_dir does not exist or a file is malformed
    """
    root = Path(data_dir)
    if not root.is_dir():
        raise RecordStoreError(f"Data directory not found: {data_dir}")

    frames = {name: _read_table(root / f"{name}.json", model) for name, model in TABLES.items()}
    logger.info(
        "Loaded record tables: " + ", ".join(f"{k}={len(v)}" for k, v in frames.items())
    )
    return frames
