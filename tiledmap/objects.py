"""
Copyright (C) 2012-2023, Leif Theden <leif.theden@gmail.com>

This file is part of tiledmap.

tiledmap is free software: you can redistribute it and/or modify
it under the terms of the GNU Lesser General Public License as
published by the Free Software Foundation, either version 3 of the
License, or (at your option) any later version.

tiledmap is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Lesser General Public License for more details.

You should have received a copy of the GNU Lesser General Public
License along with tiledmap.  If not, see <https://www.gnu.org/licenses/>.
"""

from __future__ import annotations

import logging
from collections import namedtuple
from dataclasses import dataclass, field
from itertools import chain
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple

__all__ = (
    "ROTATE_0",
    "ROTATE_90",
    "ROTATE_180",
    "ROTATE_270",
    "Cell",
    "Ellipse",
    "Layer",
    "Map",
    "MapObject",
    "ObjectLayer",
    "Point",
    "Polygon",
    "Polyline",
    "Rectangle",
    "Tile",
    "TileLayer",
    "TileStamp",
    "Tileset",
    "TilesetRegistry",
)

logger = logging.getLogger(__name__)

ROTATE_0 = 0
ROTATE_90 = 90
ROTATE_180 = 180
ROTATE_270 = 270

Point = namedtuple("Point", ["x", "y"])


@dataclass
class Tile:
    id: int
    image: Any = None  # region handle, owned by the image resolver
    properties: Dict = field(default_factory=dict)


@dataclass
class Tileset:
    name: str
    firstgid: int
    tilewidth: int
    tileheight: int
    spacing: int = 0
    margin: int = 0
    image_source: str = ""
    image_width: int = 0
    image_height: int = 0
    tiles: Dict[int, Tile] = field(default_factory=dict)
    properties: Dict = field(default_factory=dict)

    @property
    def tilecount(self) -> int:
        return len(self.tiles)

    @property
    def lastgid(self) -> int:
        return self.firstgid + len(self.tiles) - 1

    def get_tile(self, gid: int) -> Optional[Tile]:
        return self.tiles.get(gid)


class TilesetRegistry:
    """Tilesets of a map, sharing one global tile id space.

    Tilesets are kept in document order, which is ascending firstgid for
    any map written by Tiled.

    """

    def __init__(self) -> None:
        self._tilesets: List[Tileset] = list()

    def __iter__(self) -> Iterator[Tileset]:
        return iter(self._tilesets)

    def __len__(self) -> int:
        return len(self._tilesets)

    def __getitem__(self, index: int) -> Tileset:
        return self._tilesets[index]

    def __eq__(self, other):
        if not isinstance(other, TilesetRegistry):
            return NotImplemented
        return self._tilesets == other._tilesets

    def __repr__(self):
        return "<{0}: {1}>".format(
            self.__class__.__name__, [ts.name for ts in self._tilesets]
        )

    def add(self, tileset: Tileset) -> None:
        assert isinstance(tileset, Tileset)
        self._tilesets.append(tileset)

    def get_tile(self, gid: int) -> Optional[Tile]:
        """Return the tile for a global id, or None if no tileset has it"""
        for tileset in reversed(self._tilesets):
            tile = tileset.tiles.get(gid)
            if tile is not None:
                return tile
        return None

    def get_tileset_by_gid(self, gid: int) -> Optional[Tileset]:
        for tileset in reversed(self._tilesets):
            if gid in tileset.tiles:
                return tileset
        return None

    def get_tileset_by_name(self, name: str) -> Tileset:
        for tileset in self._tilesets:
            if tileset.name == name:
                return tileset
        raise ValueError('Tileset "{0}" not found'.format(name))


@dataclass(frozen=True)
class Cell:
    """One placed tile of a tile layer.

    `gid` is the global tile id with the flip flags cleared; resolve it
    through the map's tileset registry.  `rotation` is counter-clockwise,
    in degrees, and is always one of ROTATE_0 .. ROTATE_270.

    """

    gid: int
    flip_h: bool = False
    flip_v: bool = False
    rotation: int = ROTATE_0


@dataclass
class Layer:
    kind: ClassVar[str] = "layer"

    name: Optional[str] = None
    visible: bool = True
    opacity: float = 1.0
    properties: Dict = field(default_factory=dict)


@dataclass
class TileLayer(Layer):
    kind: ClassVar[str] = "tilelayer"

    width: int = 0
    height: int = 0
    tilewidth: int = 0
    tileheight: int = 0
    cells: List[List[Optional[Cell]]] = field(init=False, repr=False)

    def __post_init__(self):
        self.cells = [[None] * self.width for _ in range(self.height)]

    def __iter__(self) -> Iterator[Tuple[int, int, Cell]]:
        return self.iter_cells()

    def iter_cells(self) -> Iterator[Tuple[int, int, Cell]]:
        """Yields X, Y, Cell tuples for each non-empty cell in the layer."""
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                if cell is not None:
                    yield x, y, cell

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.cells[y][x]
        return None

    def set_cell(self, x: int, y: int, cell: Optional[Cell]) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.cells[y][x] = cell


@dataclass
class ObjectLayer(Layer):
    kind: ClassVar[str] = "objectgroup"

    objects: List[MapObject] = field(default_factory=list)

    def __iter__(self) -> Iterator[MapObject]:
        yield from self.objects


@dataclass
class MapObject:
    kind: ClassVar[str] = "object"

    name: str = ""
    type: str = ""
    visible: bool = True
    x: float = 0.0
    y: float = 0.0
    properties: Dict = field(default_factory=dict)


@dataclass
class Rectangle(MapObject):
    kind: ClassVar[str] = "rectangle"

    width: float = 0.0
    height: float = 0.0


@dataclass
class Ellipse(MapObject):
    kind: ClassVar[str] = "ellipse"

    width: float = 0.0
    height: float = 0.0


@dataclass
class Polygon(MapObject):
    kind: ClassVar[str] = "polygon"

    points: List[Point] = field(default_factory=list)


@dataclass
class Polyline(MapObject):
    kind: ClassVar[str] = "polyline"

    points: List[Point] = field(default_factory=list)


@dataclass
class TileStamp(MapObject):
    """A tile placed as an object; (x, y) is the corner of the image."""

    kind: ClassVar[str] = "tile"

    gid: int = 0
    image: Any = None
    width: float = 0.0
    height: float = 0.0
    origin_x: float = 0.0
    origin_y: float = 0.0
    rotation: float = 0.0  # radians
    scale_x: float = 1.0
    scale_y: float = 1.0


@dataclass
class Map:
    orientation: Optional[str] = None
    width: int = 0
    height: int = 0
    tilewidth: int = 0
    tileheight: int = 0
    background_color: Optional[str] = None
    filename: Optional[str] = None
    layers: List[Layer] = field(default_factory=list)
    tilesets: TilesetRegistry = field(default_factory=TilesetRegistry)
    properties: Dict = field(default_factory=dict)
    owned_images: List = field(default_factory=list, repr=False)

    def __iter__(self):
        return iter(self.layers)

    def __enter__(self) -> Map:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    @property
    def pixel_width(self) -> int:
        return self.width * self.tilewidth

    @property
    def pixel_height(self) -> int:
        return self.height * self.tileheight

    def dispose(self) -> None:
        """Release the image handles this map owns"""
        for image in self.owned_images:
            release = getattr(image, "release", None)
            if release is not None:
                release()
        self.owned_images.clear()

    def get_layer_by_name(self, name: str) -> Layer:
        """Return a layer by name"""
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise ValueError('Layer "{0}" not found'.format(name))

    def tile_layers(self, include_invisible: bool = True) -> Iterator[TileLayer]:
        layers = (layer for layer in self.layers if layer.kind == TileLayer.kind)
        if include_invisible:
            return layers
        return (layer for layer in layers if layer.visible)

    def object_layers(self, include_invisible: bool = True) -> Iterator[ObjectLayer]:
        layers = (layer for layer in self.layers if layer.kind == ObjectLayer.kind)
        if include_invisible:
            return layers
        return (layer for layer in layers if layer.visible)

    @property
    def objects(self) -> Iterator[MapObject]:
        """Return iterator of all the objects associated with this map"""
        return chain(*self.object_layers())

    @property
    def visible_layers(self) -> Iterator[Layer]:
        return (layer for layer in self.layers if layer.visible)

    def get_tile_by_gid(self, gid: int) -> Optional[Tile]:
        return self.tilesets.get_tile(gid)

    def get_cell(self, x: int, y: int, layer: int) -> Optional[Cell]:
        """Return the cell at this location of a tile layer"""
        if not (x >= 0 and y >= 0 and layer >= 0):
            raise ValueError(
                "Tile coordinates and layers must be non-negative, were ({0}, {1}), layer={2}".format(
                    x, y, layer
                )
            )
        try:
            tile_layer = self.layers[layer]
        except IndexError:
            raise ValueError("Layer not found: {0}".format(layer))
        if tile_layer.kind != TileLayer.kind:
            raise ValueError("Layer {0} is not a tile layer".format(layer))
        return tile_layer.get_cell(x, y)

    def get_tile(self, x: int, y: int, layer: int) -> Optional[Tile]:
        """Return the tile at this location, or None for an empty cell"""
        cell = self.get_cell(x, y, layer)
        if cell is None:
            return None
        return self.tilesets.get_tile(cell.gid)
