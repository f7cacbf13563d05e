"""
Constants and enumerations for the GoldSrc BSP to OBJ converter.

Contains the BSP v30 lump layout, record sizes, and export naming rules.
"""

from enum import IntEnum


# =============================================================================
# BSP v30 File Layout (Half-Life / GoldSrc)
# =============================================================================

BSP_VERSION = 30

class BSPLump(IntEnum):
    """GoldSrc BSP lump indices, in directory order."""
    ENTITIES = 0
    PLANES = 1
    TEXTURES = 2
    VERTICES = 3
    VISIBILITY = 4
    NODES = 5
    TEXINFO = 6
    FACES = 7
    LIGHTING = 8
    CLIPNODES = 9
    LEAVES = 10
    MARKSURFACES = 11
    EDGES = 12
    SURFEDGES = 13
    MODELS = 14


NUM_LUMPS = len(BSPLump)

# Version + (offset, length) per lump
BSP_HEADER_SIZE = 4 + NUM_LUMPS * 8

# Record sizes in bytes
VERTEX_SIZE = 12
PLANE_SIZE = 20
EDGE_SIZE = 4
SURFEDGE_SIZE = 4
FACE_SIZE = 20
TEXINFO_SIZE = 40
MODEL_SIZE = 64

# Miptex header: name[16], width, height, offsets[4]
MIPTEX_NAME_LENGTH = 16
MIPTEX_HEADER_SIZE = MIPTEX_NAME_LENGTH + 4 + 4 + 16
MIP_LEVELS = 4
PALETTE_ENTRIES = 256

# Alpha-tested textures use palette index 255 as the transparent colour
TRANSPARENT_TEXTURE_PREFIX = "{"
TRANSPARENT_PALETTE_INDEX = 255


# =============================================================================
# Export Rules
# =============================================================================

WORLDSPAWN_CLASSNAME = "worldspawn"

# Faces with these textures are not visible and never exported
TEXTURES_TO_IGNORE = frozenset({"ORIGIN", "CLIP"})

GENERATOR_NAME = "bsp2obj"

# Sledge keys off this exact line to infer the unit scale
SCALE_HEADER = " Scale: 1"

GROUP_NAME_FORMAT = "BSP_Object.model_{}"
MATERIAL_NAME_FORMAT = "material_{}"
DIFFUSE_MAP_FORMAT = "{base_name}_{material_name}.tga"

OBJ_EXTENSION = ".obj"
MTL_EXTENSION = ".mtl"
