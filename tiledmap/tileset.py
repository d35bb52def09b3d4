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
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
from xml.etree import ElementTree

from .documents import parse_document, resolve_path
from .exceptions import DocumentError, MissingImageError
from .objects import Tile, Tileset
from .properties import getdefault, parse_properties

__all__ = ("TilesetSource", "build_tileset", "iter_image_tiles", "read_tileset")

logger = logging.getLogger(__name__)


@dataclass
class TilesetSource:
    """Attributes of one <tileset>, with external TSX files already read.

    `node` is the element that holds the tile and property children:
    the TSX root for external tilesets, the map's element otherwise.

    """

    name: Optional[str]
    firstgid: int
    tilewidth: int
    tileheight: int
    spacing: int
    margin: int
    image_source: str
    image_path: str
    image_width: int
    image_height: int
    node: ElementTree.Element
    source: Optional[str] = None


def iter_image_tiles(
    width: int, height: int, tilewidth: int, tileheight: int, margin: int, spacing: int
) -> Iterator[Tuple[int, int, int, int]]:
    """Iterate tile rects of an image, row by row.

    A tile is only produced where it fits completely inside the margin.

    """
    if tilewidth <= 0 or tileheight <= 0:
        return
    for y in range(margin, height - margin - tileheight + 1, tileheight + spacing):
        for x in range(margin, width - margin - tilewidth + 1, tilewidth + spacing):
            yield x, y, tilewidth, tileheight


def read_tileset(node: ElementTree.Element, filename: str) -> TilesetSource:
    """Read a <tileset> element of the map at `filename`.

    A tileset with a `source` attribute is loaded from that TSX file.
    External tilesets don't save their firstgid, so it always comes from
    the map.

    Args:
        node (ElementTree.Element): The map's <tileset> element.
        filename (str): Path of the map, for resolving relative paths.

    Raises:
        DocumentError: if the external tileset cannot be loaded.
        MissingImageError: if the tileset has no image.

    Returns:
        TilesetSource: The tileset's attributes.

    """
    firstgid = getdefault(node.attrib)("firstgid", int, 1)
    source = node.get("source", None)
    document = filename
    if source:
        document = resolve_path(filename, source)
        try:
            node = parse_document(document)
        except DocumentError as e:
            msg = 'Error loading external tileset "{0}" from {1}'.format(source, filename)
            logger.error(msg)
            raise DocumentError(document, msg) from e
        if node.tag != "tileset":
            msg = 'External tileset "{0}" is not a tileset document'.format(source)
            logger.error(msg)
            raise DocumentError(document, msg)

    get = getdefault(node.attrib)
    name = get("name")
    image_node = node.find("image")
    if image_node is None or not image_node.get("source"):
        logger.error('Tileset "{0}" has no image'.format(name))
        raise MissingImageError(None, tileset=name)

    image_get = getdefault(image_node.attrib)
    image_source = image_node.get("source")
    return TilesetSource(
        name=name,
        firstgid=firstgid,
        tilewidth=get("tilewidth", int, 0),
        tileheight=get("tileheight", int, 0),
        spacing=get("spacing", int, 0),
        margin=get("margin", int, 0),
        image_source=image_source,
        # images are listed as relative to the .tsx file, not the .tmx file
        image_path=resolve_path(document, image_source),
        image_width=image_get("width", int, 0),
        image_height=image_get("height", int, 0),
        node=node,
        source=source,
    )


def build_tileset(source: TilesetSource, image, y_up: bool = True) -> Tileset:
    """Slice the tileset image into tiles and collect their properties.

    Tiles are cut from the resolved image's real size, and numbered from
    firstgid in row-major order.  When the map's y convention differs from
    the image handle's own (`image.y_up`, y-up if absent) every region is
    flipped once, here.

    Args:
        source (TilesetSource): The tileset to build.
        image: Region handle of the whole tileset image.
        y_up (bool): Coordinate convention of the map being loaded.

    Returns:
        Tileset: The new tileset.

    """
    tileset = Tileset(
        name=source.name,
        firstgid=source.firstgid,
        tilewidth=source.tilewidth,
        tileheight=source.tileheight,
        spacing=source.spacing,
        margin=source.margin,
        image_source=source.image_source,
        image_width=source.image_width,
        image_height=source.image_height,
    )
    tileset.properties.update(
        firstgid=source.firstgid,
        imagesource=source.image_source,
        imagewidth=source.image_width,
        imageheight=source.image_height,
        tilewidth=source.tilewidth,
        tileheight=source.tileheight,
        margin=source.margin,
        spacing=source.spacing,
    )

    p = iter_image_tiles(
        image.width,
        image.height,
        source.tilewidth,
        source.tileheight,
        source.margin,
        source.spacing,
    )
    flip = y_up != getattr(image, "y_up", True)
    for gid, (x, y, w, h) in enumerate(p, source.firstgid):
        region = image.subregion(x, y, w, h)
        if flip:
            region = region.flip_vertically()
        tileset.tiles[gid] = Tile(gid, region)

    for child in source.node.findall("tile"):
        tile = tileset.tiles.get(source.firstgid + int(child.get("id", 0)))
        if tile is not None:
            tile.properties.update(parse_properties(child))

    tileset.properties.update(parse_properties(source.node))
    logger.debug(
        'Loaded tileset "{0}": gids {1}-{2}'.format(
            tileset.name, tileset.firstgid, tileset.lastgid
        )
    )
    return tileset
