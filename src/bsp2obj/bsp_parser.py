"""
BSP Parser Module for GoldSrc BSP files (v30).

Parses Half-Life map files and extracts geometry, texture and entity data.
"""

from __future__ import annotations

import logging
import re
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple

import numpy as np

from .constants import (
    BSP_HEADER_SIZE,
    BSP_VERSION,
    EDGE_SIZE,
    FACE_SIZE,
    MIP_LEVELS,
    MIPTEX_HEADER_SIZE,
    MIPTEX_NAME_LENGTH,
    MODEL_SIZE,
    SURFEDGE_SIZE,
    TEXINFO_SIZE,
    VERTEX_SIZE,
    BSPLump,
)
from .vector import Vector3


logger = logging.getLogger(__name__)


class BSPFormatError(ValueError):
    """Raised when a file is not a readable GoldSrc BSP."""


@dataclass
class LumpInfo:
    """Location of a BSP lump."""
    offset: int
    length: int


@dataclass
class Face:
    """BSP face structure."""
    plane_index: int
    side: int
    first_edge: int
    num_edges: int
    tex_info: int
    styles: Tuple[int, int, int, int]
    light_offset: int


@dataclass
class Edge:
    """BSP edge connecting two vertices."""
    start: int
    end: int


@dataclass
class TexInfo:
    """
    Texture projection for a face.

    ``s`` and ``t`` hold (x, y, z, offset) as float32 arrays.
    """
    s: np.ndarray
    t: np.ndarray
    miptex: int
    flags: int


@dataclass
class MipTexture:
    """
    Texture record from the texture lump.

    ``num_mips`` is 0 when the pixels are not embedded in the BSP and have
    to be found in a WAD file at load time.
    """
    name: str
    width: int
    height: int
    num_mips: int = 0
    pixels: Optional[bytes] = None  # mip 0 palette indices, width*height
    palette: Optional[bytes] = None  # RGB triplets

    @property
    def is_embedded(self) -> bool:
        return self.num_mips > 0


@dataclass
class Model:
    """BSP model structure (world or brush entity)."""
    mins: Vector3
    maxs: Vector3
    origin: Vector3
    head_nodes: Tuple[int, int, int, int]
    vis_leafs: int
    first_face: int
    num_faces: int


@dataclass
class Entity:
    """Parsed BSP entity with key-value properties."""
    classname: str
    properties: Dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: str = "") -> str:
        """Get property value with default."""
        return self.properties.get(key, default)

    def get_vector(self, key: str) -> Optional[Vector3]:
        """Parse a vector property (space-separated x y z)."""
        value = self.properties.get(key)
        if not value:
            return None
        return Vector3.parse(value)


@dataclass
class BSPFile:
    """Parsed BSP file data."""
    version: int
    path: Optional[Path] = None
    lumps: Dict[BSPLump, LumpInfo] = field(default_factory=dict)
    entities: List[Entity] = field(default_factory=list)
    models: List[Model] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    surfedges: List[int] = field(default_factory=list)
    vertices: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 3), dtype=np.float32)
    )  # Shape: (N, 3) float32
    tex_infos: List[TexInfo] = field(default_factory=list)
    textures: List[MipTexture] = field(default_factory=list)

    def get_model_faces(self, model: Model) -> List[Face]:
        """Get the faces of a model, in storage order."""
        end = model.first_face + model.num_faces
        if model.first_face < 0 or end > len(self.faces):
            raise BSPFormatError(
                f"Model faces {model.first_face}..{end} out of range ({len(self.faces)} faces)"
            )
        return self.faces[model.first_face:end]

    def get_face_vertex_indices(self, face: Face) -> List[int]:
        """
        Resolve a face's surfedges to vertex indices, in storage order.

        A positive surfedge walks its edge start to end; zero or negative
        walks it backwards.
        """
        end = face.first_edge + face.num_edges
        if face.first_edge < 0 or end > len(self.surfedges):
            raise BSPFormatError(
                f"Face surfedges {face.first_edge}..{end} out of range "
                f"({len(self.surfedges)} surfedges)"
            )

        indices = []
        for surfedge in self.surfedges[face.first_edge:end]:
            if abs(surfedge) >= len(self.edges):
                raise BSPFormatError(f"Surfedge {surfedge} out of range ({len(self.edges)} edges)")
            edge = self.edges[abs(surfedge)]
            vertex_index = edge.start if surfedge > 0 else edge.end
            if vertex_index >= len(self.vertices):
                raise BSPFormatError(
                    f"Edge vertex {vertex_index} out of range ({len(self.vertices)} vertices)"
                )
            indices.append(vertex_index)
        return indices

    def get_face_texture(self, face: Face) -> Tuple[TexInfo, int, MipTexture]:
        """Get the texinfo, texture index and texture used by a face."""
        if face.tex_info >= len(self.tex_infos):
            raise BSPFormatError(
                f"Face texinfo {face.tex_info} out of range ({len(self.tex_infos)} texinfos)"
            )
        tex_info = self.tex_infos[face.tex_info]
        if tex_info.miptex >= len(self.textures):
            raise BSPFormatError(
                f"Texinfo texture {tex_info.miptex} out of range ({len(self.textures)} textures)"
            )
        return tex_info, tex_info.miptex, self.textures[tex_info.miptex]


class BSPParser:
    """
    Parser for GoldSrc BSP files.

    Supports BSP version 30 (Half-Life and its mods).
    """

    def __init__(self):
        self._file: Optional[BinaryIO] = None
        self._file_size = 0
        self._bsp: Optional[BSPFile] = None

    def load(self, filepath: str | Path) -> BSPFile:
        """
        Load and parse a BSP file.

        Args:
            filepath: Path to the .bsp file

        Returns:
            Parsed BSPFile object

        Raises:
            BSPFormatError: If file is not a valid BSP or version unsupported
            FileNotFoundError: If file doesn't exist
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"BSP file not found: {filepath}")

        with open(filepath, "rb") as f:
            self._file = f
            self._file_size = filepath.stat().st_size
            self._bsp = BSPFile(version=0, path=filepath)

            self._read_header()
            self._read_all_lumps()

        self._file = None
        logger.debug(
            f"Loaded {filepath.name}: {len(self._bsp.models)} models, "
            f"{len(self._bsp.faces)} faces, {len(self._bsp.textures)} textures"
        )
        return self._bsp

    def _read_header(self) -> None:
        """Read and validate BSP header."""
        header = self._file.read(BSP_HEADER_SIZE)
        if len(header) < BSP_HEADER_SIZE:
            raise BSPFormatError(
                f"File too small for a BSP header ({len(header)} bytes)"
            )

        (version,) = struct.unpack_from("<i", header, 0)
        if version != BSP_VERSION:
            raise BSPFormatError(
                f"Unsupported BSP version {version}. Supported: {BSP_VERSION}"
            )

        self._bsp.version = version

        for lump in BSPLump:
            offset, length = struct.unpack_from("<ii", header, 4 + lump * 8)
            if offset < 0 or length < 0 or offset + length > self._file_size:
                raise BSPFormatError(
                    f"Lump {lump.name} out of bounds "
                    f"(offset {offset}, length {length}, file size {self._file_size})"
                )
            self._bsp.lumps[lump] = LumpInfo(offset, length)

    def _read_all_lumps(self) -> None:
        """Read all lumps needed for mesh export."""
        self._read_entities()
        self._read_textures()
        self._read_vertices()
        self._read_texinfo()
        self._read_faces()
        self._read_edges()
        self._read_surfedges()
        self._read_models()

    def _read_lump_data(self, lump: BSPLump) -> bytes:
        """Read raw lump data."""
        info = self._bsp.lumps.get(lump)
        if not info or info.length == 0:
            return b""
        self._file.seek(info.offset)
        return self._file.read(info.length)

    def _read_vertices(self) -> None:
        """Read vertex lump (12 bytes per vertex: 3 floats)."""
        data = self._read_lump_data(BSPLump.VERTICES)
        if not data:
            return
        count = len(data) // VERTEX_SIZE
        self._bsp.vertices = (
            np.frombuffer(data, dtype="<f4", count=count * 3).reshape(count, 3).astype(np.float32)
        )

    def _read_edges(self) -> None:
        """Read edge lump (4 bytes per edge: 2 unsigned shorts)."""
        data = self._read_lump_data(BSPLump.EDGES)
        count = len(data) // EDGE_SIZE
        for i in range(count):
            start, end = struct.unpack_from("<HH", data, i * EDGE_SIZE)
            self._bsp.edges.append(Edge(start, end))

    def _read_surfedges(self) -> None:
        """Read surfedge lump (4 bytes per surfedge: signed int)."""
        data = self._read_lump_data(BSPLump.SURFEDGES)
        count = len(data) // SURFEDGE_SIZE
        self._bsp.surfedges = list(struct.unpack_from(f"<{count}i", data, 0))

    def _read_faces(self) -> None:
        """Read face lump (20 bytes per face)."""
        data = self._read_lump_data(BSPLump.FACES)
        count = len(data) // FACE_SIZE
        for i in range(count):
            (
                plane_index,
                side,
                first_edge,
                num_edges,
                tex_info,
                style0,
                style1,
                style2,
                style3,
                light_offset,
            ) = struct.unpack_from("<HHiHHBBBBi", data, i * FACE_SIZE)

            self._bsp.faces.append(
                Face(
                    plane_index=plane_index,
                    side=side,
                    first_edge=first_edge,
                    num_edges=num_edges,
                    tex_info=tex_info,
                    styles=(style0, style1, style2, style3),
                    light_offset=light_offset,
                )
            )

    def _read_texinfo(self) -> None:
        """Read texinfo lump (40 bytes per texinfo)."""
        data = self._read_lump_data(BSPLump.TEXINFO)
        count = len(data) // TEXINFO_SIZE
        for i in range(count):
            offset = i * TEXINFO_SIZE
            # Texture vectors: 2 sets of 4 floats (s and t)
            vecs = np.frombuffer(data, dtype="<f4", count=8, offset=offset).astype(np.float32)
            miptex, flags = struct.unpack_from("<II", data, offset + 32)

            self._bsp.tex_infos.append(
                TexInfo(s=vecs[:4], t=vecs[4:], miptex=miptex, flags=flags)
            )

    def _read_textures(self) -> None:
        """Read the miptex lump: a count, an offset table, then miptex records."""
        data = self._read_lump_data(BSPLump.TEXTURES)
        if not data:
            return

        (count,) = struct.unpack_from("<i", data, 0)
        if count < 0 or 4 + count * 4 > len(data):
            raise BSPFormatError(f"Invalid texture count {count}")

        offsets = struct.unpack_from(f"<{count}i", data, 4)
        for index, offset in enumerate(offsets):
            if offset == -1:
                # Slot left empty by the compiler
                self._bsp.textures.append(MipTexture(name="", width=0, height=0))
                continue
            self._bsp.textures.append(self._read_miptex(data, index, offset))

    def _read_miptex(self, data: bytes, index: int, offset: int) -> MipTexture:
        """Read one miptex record, including embedded pixels and palette."""
        if offset < 0 or offset + MIPTEX_HEADER_SIZE > len(data):
            raise BSPFormatError(f"Texture {index} header out of bounds")

        raw_name = data[offset:offset + MIPTEX_NAME_LENGTH]
        name = raw_name.split(b"\x00", 1)[0].decode("ascii", errors="replace")
        width, height = struct.unpack_from("<II", data, offset + MIPTEX_NAME_LENGTH)
        mip_offsets = struct.unpack_from("<4I", data, offset + MIPTEX_NAME_LENGTH + 8)

        if mip_offsets[0] == 0:
            return MipTexture(name=name, width=width, height=height)

        # Mip 0 is the full-res indexed image
        pixels_start = offset + mip_offsets[0]
        pixels_end = pixels_start + width * height
        if pixels_end > len(data):
            raise BSPFormatError(f"Texture {name!r} pixel data out of bounds")

        # Palette follows mip 3: u16 entry count then RGB triplets
        mip3_size = max(1, width // 8) * max(1, height // 8)
        palette_offset = offset + mip_offsets[3] + mip3_size
        if palette_offset + 2 > len(data):
            raise BSPFormatError(f"Texture {name!r} is missing its palette")
        (palette_size,) = struct.unpack_from("<H", data, palette_offset)
        palette_end = palette_offset + 2 + palette_size * 3
        if palette_end > len(data):
            raise BSPFormatError(f"Texture {name!r} palette out of bounds")

        return MipTexture(
            name=name,
            width=width,
            height=height,
            num_mips=MIP_LEVELS,
            pixels=data[pixels_start:pixels_end],
            palette=data[palette_offset + 2:palette_end],
        )

    def _read_models(self) -> None:
        """Read model lump (64 bytes per model)."""
        data = self._read_lump_data(BSPLump.MODELS)
        count = len(data) // MODEL_SIZE
        for i in range(count):
            values = struct.unpack_from("<9f4iiii", data, i * MODEL_SIZE)

            self._bsp.models.append(
                Model(
                    mins=Vector3(*values[0:3]),
                    maxs=Vector3(*values[3:6]),
                    origin=Vector3(*values[6:9]),
                    head_nodes=tuple(values[9:13]),
                    vis_leafs=values[13],
                    first_face=values[14],
                    num_faces=values[15],
                )
            )

    def _read_entities(self) -> None:
        """Read and parse entity lump."""
        data = self._read_lump_data(BSPLump.ENTITIES)
        if not data:
            return

        # Entity lump is null-terminated text
        text = data.split(b"\x00", 1)[0].decode("ascii", errors="replace")
        self._bsp.entities = parse_entities(text)


def parse_entities(text: str) -> List[Entity]:
    """
    Parse entity lump text into Entity objects.

    Entity format:
    {
    "classname" "info_player_start"
    "origin" "0 0 0"
    ...
    }

    Every block yields an entity, even one without a classname, so list
    positions match the entity numbers the engine uses.
    """
    entities = []
    # Pattern to match entity blocks
    entity_pattern = re.compile(r"\{([^}]*)\}", re.DOTALL)
    # Pattern to match key-value pairs
    kv_pattern = re.compile(r'"([^"]+)"\s+"([^"]*)"')

    for match in entity_pattern.finditer(text):
        block = match.group(1)
        properties = {}

        for kv_match in kv_pattern.finditer(block):
            key = kv_match.group(1).lower()  # Normalize to lowercase
            properties[key] = kv_match.group(2)

        entities.append(
            Entity(classname=properties.get("classname", ""), properties=properties)
        )

    return entities
