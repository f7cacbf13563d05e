"""
BSP to OBJ conversion.

Ties together material table construction, entity selection, mesh
building and OBJ/MTL output for a single BSP file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional

from . import __version__
from .bsp_parser import BSPFile, BSPParser
from .constants import (
    GENERATOR_NAME,
    MTL_EXTENSION,
    OBJ_EXTENSION,
    TEXTURES_TO_IGNORE,
    WORLDSPAWN_CLASSNAME,
)
from .entity_selector import select_models
from .materials import MaterialTable, build_material_table
from .mesh_builder import MeshBuilder, ObjMesh
from .obj_writer import build_header, write_mtl, write_obj
from .texture_writer import TextureWriter


logger = logging.getLogger(__name__)


@dataclass
class ConverterConfig:
    """Configuration for BSP to OBJ conversion."""
    # Compared case-insensitively
    textures_to_ignore: FrozenSet[str] = field(default_factory=lambda: TEXTURES_TO_IGNORE)
    generator_name: str = GENERATOR_NAME
    world_classname: str = WORLDSPAWN_CLASSNAME


@dataclass
class ConversionResult:
    """Output files and statistics of a conversion."""
    obj_path: Path
    mtl_path: Path
    mesh: ObjMesh
    materials: MaterialTable

    @property
    def num_groups(self) -> int:
        return len(self.mesh.groups)

    @property
    def num_materials(self) -> int:
        return len(self.materials.materials)


class BspToObjConverter:
    """
    Converts a parsed BSP into an OBJ mesh and MTL material library.

    Embedded textures are written as TGA images next to the OBJ file.
    Each converter instance performs one conversion.
    """

    def __init__(
        self,
        bsp: BSPFile,
        bsp_file_name: str | Path,
        destination_directory: str | Path,
        config: Optional[ConverterConfig] = None,
        texture_writer=None,
    ):
        self.bsp = bsp
        self.base_name = Path(bsp_file_name).stem
        self.destination_directory = Path(destination_directory)
        self.config = config or ConverterConfig()
        if texture_writer is None:
            texture_writer = TextureWriter(self.destination_directory)
        self.texture_writer = texture_writer

    @property
    def obj_path(self) -> Path:
        return self.destination_directory / (self.base_name + OBJ_EXTENSION)

    @property
    def mtl_path(self) -> Path:
        return self.destination_directory / (self.base_name + MTL_EXTENSION)

    def convert(self) -> ConversionResult:
        """
        Run the conversion and write the output files.

        Returns:
            Conversion result with output paths and the built tables

        Raises:
            MaterialMappingError: If a face's texture has no material
            TextureExportError: If an embedded texture cannot be decoded
            OSError: If an output file cannot be written
        """
        materials = build_material_table(
            self.bsp.textures,
            self.base_name,
            self.texture_writer,
            self.config.textures_to_ignore,
        )
        logger.info(f"  Materials: {len(materials.materials)}")

        builder = MeshBuilder(
            self.bsp,
            materials,
            mesh=ObjMesh(),
            textures_to_ignore=self.config.textures_to_ignore,
        )
        for selection in select_models(
            self.bsp.entities, len(self.bsp.models), self.config.world_classname
        ):
            builder.convert_model(
                selection.model_number,
                self.bsp.models[selection.model_number],
                selection.origin,
            )

        mesh = builder.mesh
        logger.info(f"  Groups: {len(mesh.groups)}")
        logger.info(f"  Exported faces: {mesh.num_faces}")
        logger.info(f"  Vertices: {mesh.num_vertices}")
        logger.info(f"  Texture coordinates: {mesh.num_texture_coords}")
        bounds = mesh.bounds
        if bounds is not None:
            logger.info(f"  Bounds: {bounds.mins} to {bounds.maxs}")

        header = build_header(self.config.generator_name, __version__)
        write_obj(self.obj_path, mesh, self.mtl_path.name, header)
        write_mtl(self.mtl_path, materials.materials, header)

        return ConversionResult(
            obj_path=self.obj_path,
            mtl_path=self.mtl_path,
            mesh=mesh,
            materials=materials,
        )


def convert_bsp_file(
    bsp_path: str | Path,
    destination_directory: Optional[str | Path] = None,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult:
    """
    Convenience function to convert a BSP file to OBJ.

    Args:
        bsp_path: Path to BSP file
        destination_directory: Output directory (default: the BSP's directory)
        config: Conversion configuration

    Returns:
        Conversion result
    """
    bsp_path = Path(bsp_path)
    if destination_directory is None:
        destination_directory = bsp_path.parent
    destination_directory = Path(destination_directory)
    destination_directory.mkdir(parents=True, exist_ok=True)

    bsp = BSPParser().load(bsp_path)
    logger.info(f"  BSP version: {bsp.version}")
    logger.info(f"  Entities: {len(bsp.entities)}")
    logger.info(f"  Models: {len(bsp.models)}")
    logger.info(f"  Faces: {len(bsp.faces)}")
    logger.info(f"  Textures: {len(bsp.textures)}")

    converter = BspToObjConverter(bsp, bsp_path.name, destination_directory, config)
    return converter.convert()
