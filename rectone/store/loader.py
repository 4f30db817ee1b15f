"""Read and write the fallback dataset as a directory of JSON files."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Union

import aiofiles
from pydantic import BaseModel, TypeAdapter

from ..errors import DirectoryError
from ..models import Alternative, Category, ComparisonPair, Deal, Tag, Tool
from .dataset import FallbackDataset

logger = logging.getLogger("rectone.loader")

# File name -> (dataset attribute, model)
DATASET_FILES = {
    "tools.json": ("tools", Tool),
    "categories.json": ("categories", Category),
    "tags.json": ("tags", Tag),
    "deals.json": ("deals", Deal),
    "alternatives.json": ("alternatives", Alternative),
    "vspairs.json": ("comparisons", ComparisonPair),
}


class DatasetFormatError(DirectoryError):
    """A dataset file is not valid JSON or does not match its model."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")


async def _read_records(path: Path, model: type[BaseModel]) -> list[Any]:
    if not path.exists():
        logger.debug("Dataset file %s missing, treating as empty", path)
        return []

    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        raw = await f.read()

    try:
        return TypeAdapter(list[model]).validate_json(raw or "[]")
    except ValueError as exc:
        raise DatasetFormatError(path, str(exc)) from exc


async def load_dataset(data_dir: Union[str, Path]) -> FallbackDataset:
    """Load every collection from ``data_dir``; missing files are empty."""
    data_dir = Path(data_dir)
    names = list(DATASET_FILES)
    loaded = await asyncio.gather(
        *(_read_records(data_dir / name, DATASET_FILES[name][1]) for name in names)
    )
    collections = {DATASET_FILES[name][0]: records for name, records in zip(names, loaded)}

    dataset = FallbackDataset.build(**collections)
    logger.info(
        "Loaded fallback data from %s: %d tools, %d categories, %d deals",
        data_dir, len(dataset.tools), len(dataset.categories), len(dataset.deals),
    )
    return dataset


async def write_dataset(dataset: FallbackDataset, data_dir: Union[str, Path]) -> dict[str, int]:
    """Write each collection to ``data_dir``; returns records written per file."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, (attribute, _) in DATASET_FILES.items():
        records = [
            item.model_dump(mode="json", exclude_none=True)
            for item in getattr(dataset, attribute)
        ]
        async with aiofiles.open(data_dir / name, "w", encoding="utf-8") as f:
            await f.write(json.dumps(records, indent=2, ensure_ascii=False))
        written[name] = len(records)
        logger.info("Written %s (%d records)", name, len(records))

    return written
