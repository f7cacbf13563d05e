"""Shared fixtures: in-memory GoldSrc BSP construction."""

import struct
from pathlib import Path

import pytest

from bsp2obj.bsp_parser import BSPParser


def build_miptex(name, width, height, embedded=True, indices=None, palette=None):
    """Build a miptex record, optionally with embedded mips and palette."""
    name_raw = name.encode("ascii")[:16].ljust(16, b"\x00")
    header_size = 16 + 4 + 4 + 16
    if not embedded:
        return name_raw + struct.pack("<II4I", width, height, 0, 0, 0, 0)

    if indices is None:
        indices = bytes(width * height)
    if palette is None:
        palette = bytes(256 * 3)

    mip_sizes = [
        width * height,
        max(1, width // 2) * max(1, height // 2),
        max(1, width // 4) * max(1, height // 4),
        max(1, width // 8) * max(1, height // 8),
    ]
    offsets = []
    offset = header_size
    for size in mip_sizes:
        offsets.append(offset)
        offset += size

    mips = indices + b"".join(bytes(size) for size in mip_sizes[1:])
    palette_count = len(palette) // 3
    return (
        name_raw
        + struct.pack("<II4I", width, height, *offsets)
        + mips
        + struct.pack("<H", palette_count)
        + palette
    )


class BSPBuilder:
    """
    Assembles a minimal BSP v30 file.

    Each face gets its own vertices and edges. Edge 0 is reserved, as in
    compiled maps.
    """

    def __init__(self):
        self.entities = []
        self.textures = []
        self.vertices = []
        self.edges = [(0, 0)]
        self.surfedges = []
        self.texinfos = []
        self.faces = []
        self.models = []

    def add_entity(self, classname=None, **properties):
        kv = {}
        if classname is not None:
            kv["classname"] = classname
        kv.update(properties)
        self.entities.append(kv)
        return len(self.entities) - 1

    def add_texture(self, name, width=16, height=16, embedded=False, indices=None, palette=None):
        self.textures.append(build_miptex(name, width, height, embedded, indices, palette))
        return len(self.textures) - 1

    def add_missing_texture(self):
        self.textures.append(None)
        return len(self.textures) - 1

    def add_texinfo(self, texture, s=(1.0, 0.0, 0.0, 0.0), t=(0.0, 1.0, 0.0, 0.0)):
        self.texinfos.append((tuple(s), tuple(t), texture))
        return len(self.texinfos) - 1

    def add_face(self, points, texinfo, backward_edges=False):
        """
        Add a polygon. Points are listed in BSP storage order.

        With ``backward_edges`` every edge is stored end-to-start and
        referenced through a negative surfedge.
        """
        first_vertex = len(self.vertices)
        self.vertices.extend(tuple(p) for p in points)
        first_edge = len(self.surfedges)
        count = len(points)
        for i in range(count):
            a = first_vertex + i
            b = first_vertex + (i + 1) % count
            if backward_edges:
                self.edges.append((b, a))
                self.surfedges.append(-(len(self.edges) - 1))
            else:
                self.edges.append((a, b))
                self.surfedges.append(len(self.edges) - 1)
        self.faces.append((first_edge, count, texinfo))
        return len(self.faces) - 1

    def add_model(self, first_face, num_faces):
        self.models.append((first_face, num_faces))
        return len(self.models) - 1

    def _entities_lump(self):
        blocks = []
        for kv in self.entities:
            lines = "".join(f'"{key}" "{value}"\n' for key, value in kv.items())
            blocks.append("{\n" + lines + "}\n")
        return "".join(blocks).encode("ascii") + b"\x00"

    def _textures_lump(self):
        count = len(self.textures)
        data = b""
        offsets = []
        base = 4 + count * 4
        for texture in self.textures:
            if texture is None:
                offsets.append(-1)
                continue
            offsets.append(base + len(data))
            data += texture
        return struct.pack(f"<i{count}i", count, *offsets) + data

    def to_bytes(self):
        lumps = [b""] * 15
        lumps[0] = self._entities_lump()
        lumps[2] = self._textures_lump()
        lumps[3] = b"".join(struct.pack("<3f", *v) for v in self.vertices)
        lumps[6] = b"".join(
            struct.pack("<8fII", *s, *t, texture, 0) for s, t, texture in self.texinfos
        )
        lumps[7] = b"".join(
            struct.pack("<HHiHHBBBBi", 0, 0, first, count, texinfo, 0, 0, 0, 0, -1)
            for first, count, texinfo in self.faces
        )
        lumps[12] = b"".join(struct.pack("<HH", a, b) for a, b in self.edges)
        lumps[13] = b"".join(struct.pack("<i", s) for s in self.surfedges)
        lumps[14] = b"".join(
            struct.pack("<9f4iiii", *([0.0] * 9), 0, 0, 0, 0, 0, first, count)
            for first, count in self.models
        )

        header_size = 4 + 15 * 8
        directory = b""
        body = b""
        for lump in lumps:
            directory += struct.pack("<ii", header_size + len(body), len(lump))
            body += lump
        return struct.pack("<i", 30) + directory + body

    def write(self, path):
        path = Path(path)
        path.write_bytes(self.to_bytes())
        return path

    def load(self, tmp_path, name="test.bsp"):
        return BSPParser().load(self.write(Path(tmp_path) / name))


class RecordingTextureWriter:
    """Texture writer that records calls instead of writing images."""

    def __init__(self):
        self.calls = []

    def write(self, file_name, texture):
        self.calls.append((file_name, texture))


SQUARE = [(0, 0, 0), (64, 0, 0), (64, 64, 0), (0, 64, 0)]


@pytest.fixture
def builder():
    return BSPBuilder()


@pytest.fixture
def recording_writer():
    return RecordingTextureWriter()


@pytest.fixture
def simple_map(builder):
    """World with one square face using a WAD texture."""
    builder.add_entity("worldspawn", wad="halflife.wad")
    texture = builder.add_texture("C1A0_FLOOR")
    texinfo = builder.add_texinfo(texture)
    face = builder.add_face(SQUARE, texinfo)
    builder.add_model(face, 1)
    return builder
