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
from math import radians
from typing import Callable, Dict, List, Optional
from xml.etree import ElementTree

from .exceptions import PropertyError
from .layerdata import decode_gid
from .objects import (
    Ellipse,
    Map,
    MapObject,
    ObjectLayer,
    Point,
    Polygon,
    Polyline,
    Rectangle,
    TileStamp,
    TilesetRegistry,
)
from .properties import convert_to_bool, getdefault, parse_properties

__all__ = (
    "ObjectHook",
    "apply_tile_stamp_properties",
    "load_object",
    "load_object_layer",
    "parse_points",
)

logger = logging.getLogger(__name__)

# custom properties that transform tile objects, even though the level
# designer can't see the transformation in Tiled
PROPERTY_ROTATION = "rotation"
PROPERTY_ROTATION_DEGREES = "rotationDeg"
PROPERTY_SCALEX = "scaleX"
PROPERTY_SCALEY = "scaleY"
PROPERTY_WIDTH = "width"
PROPERTY_HEIGHT = "height"

# called with (object, layer, map); returns the object to keep, or None to drop it
ObjectHook = Callable[[MapObject, ObjectLayer, Map], Optional[MapObject]]


def parse_points(text: str, y_up: bool = False) -> List[Point]:
    """Return list of points from a Tiled "x,y x,y ..." string"""
    points = list()
    for pair in text.split():
        x, y = map(float, pair.split(","))
        points.append(Point(x, -y if y_up else y))
    return points


def _float_property(properties: Dict, name: str, default: float) -> float:
    value = properties.get(name, default)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        error = PropertyError(name, value, "float")
        logger.error(str(error))
        raise error from e


def apply_tile_stamp_properties(obj: TileStamp) -> TileStamp:
    """Apply the rotation, scale and size custom properties of a tile object

    The origin is set to the center last, since it depends on the final size.

    """
    properties = obj.properties
    if PROPERTY_ROTATION in properties:
        obj.rotation = _float_property(properties, PROPERTY_ROTATION, 0.0)
    elif PROPERTY_ROTATION_DEGREES in properties:
        obj.rotation = radians(
            _float_property(properties, PROPERTY_ROTATION_DEGREES, 0.0)
        )
    obj.scale_x = _float_property(properties, PROPERTY_SCALEX, 1.0)
    obj.scale_y = _float_property(properties, PROPERTY_SCALEY, 1.0)

    value = _float_property(properties, PROPERTY_WIDTH, -1.0)
    if value >= 0:
        obj.width = value
    value = _float_property(properties, PROPERTY_HEIGHT, -1.0)
    if value >= 0:
        obj.height = value

    obj.origin_x = obj.width / 2.0
    obj.origin_y = obj.height / 2.0
    return obj


def new_tile_stamp(
    tilesets: TilesetRegistry, x: float, y: float, raw_gid: int
) -> TileStamp:
    gid, _ = decode_gid(raw_gid)
    tile = tilesets.get_tile(gid)
    image = None if tile is None else tile.image
    obj = TileStamp(x=x, y=y, gid=gid, image=image)
    if image is not None:
        obj.width = image.width
        obj.height = image.height
    # game logic may want the gid as written in the map
    obj.properties["gid"] = raw_gid
    return obj


def load_object(
    node: ElementTree.Element,
    tilesets: TilesetRegistry,
    pixel_height: int,
    y_up: bool = True,
) -> MapObject:
    """Parse an <object> element into one of the map object shapes.

    With `y_up`, y is measured from the bottom of the map.  Rectangles and
    ellipses are anchored at their top-left in Tiled, so their stored y is
    moved down by their height to keep (x, y) the bottom-left corner.

    Args:
        node (ElementTree.Element): The <object> element.
        tilesets (TilesetRegistry): Tilesets of the map, for tile objects.
        pixel_height (int): Height of the map in pixels.
        y_up (bool): Coordinate convention of the map being loaded.

    Returns:
        MapObject: The object, with baseline and custom properties set.

    """
    get = getdefault(node.attrib)
    x = get("x", float, 0.0)
    y = get("y", float, 0.0)
    if y_up:
        y = pixel_height - y
    width = get("width", float, 0.0)
    height = get("height", float, 0.0)
    shape_y = y - height if y_up else y

    polygon = node.find("polygon")
    polyline = node.find("polyline")
    if polygon is not None:
        obj = Polygon(x=x, y=y, points=parse_points(polygon.get("points", ""), y_up))
    elif polyline is not None:
        obj = Polyline(x=x, y=y, points=parse_points(polyline.get("points", ""), y_up))
    elif node.find("ellipse") is not None:
        obj = Ellipse(x=x, y=shape_y, width=width, height=height)
    elif "gid" in node.attrib:
        obj = new_tile_stamp(tilesets, x, y, get("gid", int))
    else:
        obj = Rectangle(x=x, y=shape_y, width=width, height=height)

    obj.name = get("name", default="")
    obj.type = get("type", default="")
    obj.visible = get("visible", convert_to_bool, True)

    properties = obj.properties
    properties["name"] = obj.name
    if "type" in node.attrib:
        properties["type"] = obj.type
    properties["x"] = x
    properties["y"] = shape_y
    properties["visible"] = obj.visible
    properties.update(parse_properties(node))

    if obj.kind == TileStamp.kind:
        obj = apply_tile_stamp_properties(obj)
    return obj


def load_object_layer(
    node: ElementTree.Element,
    tmxmap: Map,
    y_up: bool = True,
    object_hook: Optional[ObjectHook] = None,
) -> ObjectLayer:
    """Parse an <objectgroup> element

    Each object is passed to `object_hook`, if given, after it is fully
    loaded; the hook may replace the object, or drop it by returning None.

    """
    get = getdefault(node.attrib)
    layer = ObjectLayer(
        name=get("name"),
        visible=get("visible", convert_to_bool, True),
        opacity=get("opacity", float, 1.0),
        properties=parse_properties(node),
    )
    for child in node.findall("object"):
        obj = load_object(child, tmxmap.tilesets, tmxmap.pixel_height, y_up)
        if object_hook is not None:
            obj = object_hook(obj, layer, tmxmap)
        if obj is not None:
            layer.objects.append(obj)
    logger.debug(
        'Loaded object layer "{0}": {1} objects'.format(layer.name, len(layer.objects))
    )
    return layer
