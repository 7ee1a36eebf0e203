"""Built-in model descriptors seeded into an empty model registry."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from ifixai.core.models import AgentType
from ifixai.util.logger import logger


DEFAULT_MODELS_PATH = Path(__file__).resolve().parent / "default_models.yaml"


@dataclass(frozen=True)
class SeedModel:
    agent_type: str
    value: str
    label: str
    is_default: bool
    display_order: int


def load_default_models(path: Path | None = None) -> list[SeedModel]:
    source = path or DEFAULT_MODELS_PATH
    if not source.is_file():
        logger.warning("default model file not found path=%s", source)
        return []

    loaded = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"invalid default model file: {source}")

    seeds: list[SeedModel] = []
    for agent_raw, entries in loaded.items():
        agent = AgentType.parse(agent_raw)
        if agent is None:
            logger.warning("ignore default models for unknown agent=%s", agent_raw)
            continue
        for order, entry in enumerate(entries or []):
            seeds.append(
                SeedModel(
                    agent_type=agent.value,
                    value=str(entry["value"]),
                    label=str(entry.get("label") or entry["value"]),
                    is_default=bool(entry.get("default", False)),
                    display_order=int(entry.get("order", order)),
                )
            )
    return seeds
