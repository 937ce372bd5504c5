# src/nep_ml/training_io.py
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Mapping
from pydantic import ValidationError

from nep_ml.errors import InvalidInput
from nep_ml.schemas import InputRecord, ModelType

REQUIRED_BLOCKS = ("demographic", "economic", "security")

# field that must survive coercion for each block, as the old train endpoint required
REQUIRED_FIELDS = {"economic": "unemployment_rate", "security": "violence_index"}


def _where(index: int | None) -> str:
    return "input" if index is None else f"input {index}"


def select_yearly_block(block: Any, preferred_year: int, name: str, index: int | None = None) -> Any:
    """
    Older payloads send economic/security as a list of yearly records.
    Keep the preferred year when present, else the first entry.
    """
    if not isinstance(block, list):
        return block
    if not block:
        raise InvalidInput(f"{_where(index)} has an empty {name} list")
    for item in block:
        if isinstance(item, Mapping) and item.get("year") == preferred_year:
            return item
    return block[0]


def coerce_record(raw: Mapping[str, Any], preferred_year: int = 2023, index: int | None = None) -> InputRecord:
    if not isinstance(raw, Mapping):
        raise InvalidInput(f"{_where(index)} must be an object, got {type(raw).__name__}")

    region = raw.get("state", raw.get("region"))
    missing = [k for k in REQUIRED_BLOCKS if raw.get(k) is None]
    if not region or missing:
        raise InvalidInput(
            f"{_where(index)} is missing required fields (state, demographic, economic, security)"
        )

    data = dict(raw)
    for name in ("economic", "security"):
        data[name] = select_yearly_block(data[name], preferred_year, name, index)
        block = data[name]
        if not isinstance(block, Mapping):
            raise InvalidInput(f"{_where(index)} has an invalid {name} block")
        if block.get(REQUIRED_FIELDS[name]) is None:
            raise InvalidInput(
                f"{_where(index)} has invalid {name} data structure - missing {REQUIRED_FIELDS[name]}"
            )

    try:
        return InputRecord.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(f"{_where(index)} failed validation: {e}") from e


def load_training_file(path: str | Path, preferred_year: int = 2023) -> tuple[list[InputRecord], list[str], ModelType]:
    """
    Read {"inputs": [...], "outputs": [...], "modelType": "..."} from a JSON file.
    """
    try:
        doc = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInput(f"{path} is not valid JSON: {e}") from e

    inputs, outputs = doc.get("inputs"), doc.get("outputs")
    if not isinstance(inputs, list) or not isinstance(outputs, list):
        raise InvalidInput("Invalid training data format")
    if len(inputs) != len(outputs):
        raise InvalidInput(f"{len(inputs)} inputs but {len(outputs)} outputs")

    try:
        model_type = ModelType(doc.get("modelType", ModelType.RANDOM_FOREST.value))
    except ValueError:
        raise InvalidInput(f"unknown modelType {doc.get('modelType')!r}") from None

    records = [coerce_record(r, preferred_year, i) for i, r in enumerate(inputs)]
    return records, [str(o) for o in outputs], model_type


def load_record_file(path: str | Path, preferred_year: int = 2023) -> InputRecord:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInput(f"{path} is not valid JSON: {e}") from e
    return coerce_record(raw, preferred_year)
