"""
Material table construction for OBJ export.

Every exported texture gets its own material with a TGA diffuse map.
Textures whose pixels live in an external WAD share a single untextured
dummy material.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from .bsp_parser import MipTexture
from .constants import DIFFUSE_MAP_FORMAT, MATERIAL_NAME_FORMAT, TEXTURES_TO_IGNORE


logger = logging.getLogger(__name__)


class MaterialMappingError(RuntimeError):
    """Raised when a face uses a texture that has no material."""


def is_ignored_texture(name: str, textures_to_ignore: AbstractSet[str] = TEXTURES_TO_IGNORE) -> bool:
    """Check a texture name against the ignore set, ignoring case."""
    upper = name.upper()
    return any(upper == ignored.upper() for ignored in textures_to_ignore)


@dataclass
class ObjMaterial:
    """A material in the exported MTL file."""
    name: str
    illumination_model: int = 0
    diffuse_color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    diffuse_map: Optional[str] = None


@dataclass
class MaterialTable:
    """
    Materials in MTL order, plus the texture index to material mapping.

    Materials shared through the dummy are the same object, so identity
    comparisons hold.
    """
    materials: List[ObjMaterial] = field(default_factory=list)
    texture_materials: Dict[int, ObjMaterial] = field(default_factory=dict)
    dummy_material: Optional[ObjMaterial] = None

    def create_material(self) -> ObjMaterial:
        """Append a new flat white material named after its position."""
        material = ObjMaterial(name=MATERIAL_NAME_FORMAT.format(len(self.materials)))
        self.materials.append(material)
        return material

    def material_for(self, texture_index: int) -> ObjMaterial:
        """Get the material for a texture index."""
        try:
            return self.texture_materials[texture_index]
        except KeyError:
            raise MaterialMappingError(
                f"No material for texture index {texture_index}"
            ) from None


def build_material_table(
    textures: Sequence[MipTexture],
    base_name: str,
    texture_writer,
    textures_to_ignore: AbstractSet[str] = TEXTURES_TO_IGNORE,
) -> MaterialTable:
    """
    Build the material table for a list of textures.

    Embedded textures are exported through ``texture_writer`` in texture
    order, each with a file name derived from ``base_name`` and its
    material name. Errors from the writer propagate.

    Args:
        textures: Texture records, in BSP order
        base_name: Output base name, used as the image file name prefix
        texture_writer: Object with a ``write(file_name, texture)`` method
        textures_to_ignore: Names that get no material at all

    Returns:
        The populated material table
    """
    table = MaterialTable()

    # Created first so it always lands at index 0
    if any(texture.num_mips == 0 for texture in textures):
        table.dummy_material = table.create_material()

    for index, texture in enumerate(textures):
        if is_ignored_texture(texture.name, textures_to_ignore):
            logger.debug(f"Ignoring texture {index} ({texture.name})")
            continue

        if texture.num_mips == 0:
            table.texture_materials[index] = table.dummy_material
            continue

        material = table.create_material()
        material.diffuse_map = DIFFUSE_MAP_FORMAT.format(
            base_name=base_name, material_name=material.name
        )
        table.texture_materials[index] = material

        texture_writer.write(material.diffuse_map, texture)

    logger.debug(
        f"Created {len(table.materials)} materials for {len(textures)} textures"
    )
    return table
