"""
BSP to OBJ Converter for Half-Life

A standalone tool that converts GoldSrc .bsp map files into Wavefront OBJ
meshes with an MTL material library, so maps can be opened in 3D tools.
"""

__version__ = "0.1.0"
__author__ = "bsp2obj contributors"

from .bsp_parser import BSPFile, BSPFormatError, BSPParser
from .converter import BspToObjConverter, ConversionResult, ConverterConfig, convert_bsp_file
from .entity_selector import Skip, UseModel, select_models
from .materials import MaterialMappingError, MaterialTable, ObjMaterial, build_material_table
from .mesh_builder import MeshBuilder, ObjFace, ObjGroup, ObjMesh
from .texture_writer import TextureExportError, TextureWriter

__all__ = [
    "BSPParser",
    "BSPFile",
    "BSPFormatError",
    "BspToObjConverter",
    "ConversionResult",
    "ConverterConfig",
    "convert_bsp_file",
    # Entity selection
    "Skip",
    "UseModel",
    "select_models",
    # Materials
    "MaterialTable",
    "MaterialMappingError",
    "ObjMaterial",
    "build_material_table",
    # Mesh
    "MeshBuilder",
    "ObjMesh",
    "ObjGroup",
    "ObjFace",
    # Textures
    "TextureWriter",
    "TextureExportError",
]
