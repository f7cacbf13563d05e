"""
Mesh Builder Module for the BSP to OBJ converter.

Walks model faces through surfedges, edges and vertices, and accumulates
a polygon mesh with de-duplicated positions and texture coordinates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterator, List, Optional, Tuple

import numpy as np

from .bsp_parser import BSPFile, MipTexture, Model, TexInfo
from .constants import GROUP_NAME_FORMAT, TEXTURES_TO_IGNORE
from .materials import MaterialTable, ObjMaterial, is_ignored_texture
from .vector import BoundingBox, Vector3


logger = logging.getLogger(__name__)


class IndexedTable:
    """
    Append-only table of unique tuples with 1-based indices.

    Values are matched by exact equality. Values that differ by any
    amount, however small, get separate entries.
    """

    def __init__(self):
        self._values: List[Tuple[float, ...]] = []
        self._indices: Dict[Tuple[float, ...], int] = {}

    def add(self, value: Tuple[float, ...]) -> int:
        """Get the 1-based index of a value, appending it if new."""
        index = self._indices.get(value)
        if index is None:
            self._values.append(value)
            index = len(self._values)
            self._indices[value] = index
        return index

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Tuple[float, ...]]:
        return iter(self._values)

    def __getitem__(self, index: int) -> Tuple[float, ...]:
        """Look up a value by 1-based index."""
        if index < 1:
            raise IndexError(f"Index {index} out of range, indices are 1-based")
        return self._values[index - 1]


@dataclass
class ObjFace:
    """Polygon referencing (position index, texture coordinate index) pairs."""
    material: ObjMaterial
    vertices: List[Tuple[int, int]] = field(default_factory=list)


@dataclass
class ObjGroup:
    """Named group of faces, one per exported model."""
    name: str
    faces: List[ObjFace] = field(default_factory=list)


@dataclass
class ObjMesh:
    """
    Polygon mesh accumulated over a conversion.

    Faces are kept both in a flat list and in their groups.
    """

    positions: IndexedTable = field(default_factory=IndexedTable)
    texture_coords: IndexedTable = field(default_factory=IndexedTable)
    faces: List[ObjFace] = field(default_factory=list)
    groups: List[ObjGroup] = field(default_factory=list)

    @property
    def num_vertices(self) -> int:
        """Number of unique positions."""
        return len(self.positions)

    @property
    def num_texture_coords(self) -> int:
        """Number of unique texture coordinates."""
        return len(self.texture_coords)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    @property
    def bounds(self) -> Optional[BoundingBox]:
        """Get mesh bounding box."""
        return BoundingBox.from_array(np.array(list(self.positions), dtype=np.float32))


def compute_uv(position: np.ndarray, tex_info: TexInfo, texture: MipTexture) -> Tuple[float, float]:
    """
    Project a position onto a texture.

    s = (position . S + S_offset) / width
    t = -(position . T + T_offset) / height

    T is negated since OBJ texture space has V pointing up.
    Computed in float32, the precision of the BSP data. A texture without
    dimensions (a missing slot) projects in texels, with a divisor of 1.
    """
    width = np.float32(texture.width or 1)
    height = np.float32(texture.height or 1)
    s = (np.dot(position, tex_info.s[:3]) + tex_info.s[3]) / width
    t = (np.dot(position, tex_info.t[:3]) + tex_info.t[3]) / height
    return float(s), float(-t)


class MeshBuilder:
    """
    Converts BSP models into groups of an OBJ mesh.

    Faces using ignored textures are dropped; every other face takes the
    material its texture maps to in the material table.
    """

    def __init__(
        self,
        bsp: BSPFile,
        materials: MaterialTable,
        mesh: Optional[ObjMesh] = None,
        textures_to_ignore: AbstractSet[str] = TEXTURES_TO_IGNORE,
    ):
        self.bsp = bsp
        self.materials = materials
        self.mesh = mesh if mesh is not None else ObjMesh()
        self.textures_to_ignore = textures_to_ignore

    def convert_model(self, model_number: int, model: Model, origin: Vector3) -> ObjGroup:
        """
        Append a model's faces to the mesh as a new group.

        The same model can be converted more than once; each call adds
        another group.

        Args:
            model_number: Index of the model, used for the group name
            model: The model
            origin: Offset added to every position

        Returns:
            The group that was added

        Raises:
            MaterialMappingError: If a face's texture has no material
            BSPFormatError: If a face, edge or texture index is out of range
        """
        group = ObjGroup(name=GROUP_NAME_FORMAT.format(model_number))
        offset = origin.to_array()

        for face in self.bsp.get_model_faces(model):
            tex_info, texture_index, texture = self.bsp.get_face_texture(face)

            if is_ignored_texture(texture.name, self.textures_to_ignore):
                continue

            obj_face = ObjFace(material=self.materials.material_for(texture_index))

            # Reversed to turn BSP winding into OBJ front-face winding
            for vertex_index in reversed(self.bsp.get_face_vertex_indices(face)):
                vertex = self.bsp.vertices[vertex_index]
                position_index = self.mesh.positions.add(tuple((vertex + offset).tolist()))
                # Texture space is relative to the model, not the placed entity
                uv_index = self.mesh.texture_coords.add(compute_uv(vertex, tex_info, texture))
                obj_face.vertices.append((position_index, uv_index))

            self.mesh.faces.append(obj_face)
            group.faces.append(obj_face)

        self.mesh.groups.append(group)
        logger.debug(f"Converted model {model_number}: {len(group.faces)} faces")
        return group
