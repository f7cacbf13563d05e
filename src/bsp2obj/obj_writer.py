"""
Wavefront OBJ and MTL writers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, TextIO

from .constants import SCALE_HEADER
from .materials import ObjMaterial
from .mesh_builder import ObjMesh


logger = logging.getLogger(__name__)


def build_header(generator: str, version: str) -> str:
    """
    Build the header text shared by the OBJ and MTL files.

    The scale line must directly follow the generator line; Sledge parses
    it to pick the unit scale.
    """
    return f" Generated by {generator} {version}\n{SCALE_HEADER}"


def _format_float(value: float) -> str:
    return f"{value:.6f}"


def _write_header(f: TextIO, header: str) -> None:
    for line in header.split("\n"):
        f.write(f"#{line}\n")
    f.write("\n")


def write_obj(
    filepath: str | Path,
    mesh: ObjMesh,
    material_library: str,
    header: str,
) -> None:
    """
    Write a mesh as a Wavefront OBJ file.

    Args:
        filepath: Output file path
        mesh: Mesh to write
        material_library: MTL file name referenced by the mesh
        header: Header text, written as comment lines
    """
    logger.info(f"Writing OBJ file {filepath}")
    with open(filepath, "w", encoding="utf-8", newline="\n") as f:
        _write_header(f, header)

        f.write(f"mtllib {material_library}\n\n")

        # Write vertices
        for x, y, z in mesh.positions:
            f.write(f"v {_format_float(x)} {_format_float(y)} {_format_float(z)}\n")

        f.write("\n")

        # Write texture coordinates
        for s, t in mesh.texture_coords:
            f.write(f"vt {_format_float(s)} {_format_float(t)}\n")

        f.write("\n")

        # Write faces by group (OBJ uses 1-based indices, no normals)
        for group in mesh.groups:
            f.write(f"g {group.name}\n")
            current_material = None
            for face in group.faces:
                if face.material is not current_material:
                    current_material = face.material
                    f.write(f"usemtl {current_material.name}\n")
                refs = " ".join(f"{p}/{t}" for p, t in face.vertices)
                f.write(f"f {refs}\n")


def write_mtl(filepath: str | Path, materials: Iterable[ObjMaterial], header: str) -> None:
    """
    Write materials as a Wavefront MTL file.

    Args:
        filepath: Output file path
        materials: Materials in output order
        header: Header text, written as comment lines
    """
    logger.info(f"Writing OBJ material file {filepath}")
    with open(filepath, "w", encoding="utf-8", newline="\n") as f:
        _write_header(f, header)

        for material in materials:
            r, g, b = material.diffuse_color
            f.write(f"newmtl {material.name}\n")
            f.write(f"illum {material.illumination_model}\n")
            f.write(f"Kd {_format_float(r)} {_format_float(g)} {_format_float(b)}\n")
            if material.diffuse_map:
                f.write(f"map_Kd {material.diffuse_map}\n")
            f.write("\n")
