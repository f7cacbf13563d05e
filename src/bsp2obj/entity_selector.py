"""
Selects which entities contribute geometry to the export.

The world entity always exports model 0. Brush entities export the
sub-model named by their "*N" model key, offset by their origin. Point
entities and bad model references are skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from .bsp_parser import Entity
from .constants import WORLDSPAWN_CLASSNAME
from .vector import Vector3


logger = logging.getLogger(__name__)

# Brush model references look like "*12"
MODEL_REFERENCE_PATTERN = re.compile(r"\*([0-9]+)")


@dataclass(frozen=True)
class Skip:
    """Entity contributes no geometry."""
    reason: str


@dataclass(frozen=True)
class UseModel:
    """Entity exports a model, offset by an origin."""
    model_number: int
    origin: Vector3


ModelSelection = Union[Skip, UseModel]


def parse_model_reference(value: str) -> int | None:
    """Parse a "*N" brush model reference, returning None if malformed."""
    match = MODEL_REFERENCE_PATTERN.fullmatch(value)
    if match is None:
        return None
    return int(match.group(1))


def _entity_origin(entity: Entity, index: int) -> Vector3:
    value = entity.get("origin")
    if not value:
        return Vector3.zero()

    origin = entity.get_vector("origin")
    if origin is None:
        logger.warning(
            f"Entity {index} ({entity.classname}) has malformed origin {value!r}, using 0 0 0"
        )
        return Vector3.zero()
    return origin


def classify_entity(
    entity: Entity,
    index: int,
    model_count: int,
    world_classname: str = WORLDSPAWN_CLASSNAME,
) -> ModelSelection:
    """
    Decide whether an entity exports geometry.

    Args:
        entity: The entity
        index: Position of the entity in the entity lump
        model_count: Number of models in the BSP
        world_classname: Class name of the world entity

    Returns:
        UseModel for entities with geometry, otherwise Skip
    """
    if model_count <= 0:
        return Skip("map has no models")

    if index == 0:
        if entity.classname != world_classname:
            logger.warning(
                f"First entity is {entity.classname!r}, expected {world_classname!r}; "
                f"exporting it as the world"
            )
        return UseModel(0, Vector3.zero())

    if entity.classname == world_classname:
        return Skip(f"redundant {world_classname}")

    model = entity.get("model")
    if not model:
        return Skip("no model key")

    model_number = parse_model_reference(model)
    if model_number is None:
        return Skip(f"model {model!r} is not a brush model reference")

    # Model 0 belongs to the world
    if not 0 < model_number < model_count:
        return Skip(f"model {model!r} out of range (map has {model_count} models)")

    return UseModel(model_number, _entity_origin(entity, index))


def select_models(
    entities: Sequence[Entity],
    model_count: int,
    world_classname: str = WORLDSPAWN_CLASSNAME,
) -> Iterator[UseModel]:
    """Yield the model selections of all entities with geometry, in entity order."""
    for index, entity in enumerate(entities):
        selection = classify_entity(entity, index, model_count, world_classname)
        if isinstance(selection, Skip):
            logger.debug(f"Skipping entity {index} ({entity.classname}): {selection.reason}")
            continue
        yield selection
