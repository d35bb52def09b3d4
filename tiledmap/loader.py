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
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional
from xml.etree import ElementTree

from .documents import parse_document, resolve_path
from .exceptions import DocumentError, MissingImageError
from .images import placeholder_image_resolver
from .layerdata import load_layer_data
from .mapobjects import ObjectHook, load_object_layer
from .objects import Map, TileLayer
from .properties import convert_to_bool, getdefault, parse_properties
from .tileset import TilesetSource, build_tileset, read_tileset

__all__ = (
    "Context",
    "LoaderParameters",
    "PreparedMap",
    "finish",
    "get_dependencies",
    "load_tile_layer",
    "load_tmxmap",
    "prepare",
    "parse_document",
    "resolve_path",
)

logger = logging.getLogger(__name__)


@dataclass
class LoaderParameters:
    """Options of a map load.

    Only `y_up` changes how the map is decoded; the texture options are
    handed to the image resolver untouched.

    """

    y_up: bool = True
    generate_mipmaps: bool = False
    min_filter: str = "nearest"
    mag_filter: str = "nearest"

    def image_options(self) -> Dict:
        return dict(
            generate_mipmaps=self.generate_mipmaps,
            min_filter=self.min_filter,
            mag_filter=self.mag_filter,
        )


@dataclass
class PreparedMap:
    """Result of the first load phase: the parsed map and its image needs"""

    path: str
    root: ElementTree.Element
    parameters: LoaderParameters
    tilesets: List[TilesetSource] = field(default_factory=list)

    @property
    def image_paths(self) -> List[str]:
        """Distinct tileset image paths, in document order"""
        paths = list()
        for source in self.tilesets:
            if source.image_path not in paths:
                paths.append(source.image_path)
        return paths


@dataclass
class Context:
    """State of one running map load; never shared between loads"""

    map: Map
    path: str
    y_up: bool
    object_hook: Optional[ObjectHook] = None


ElementLoader = Callable[[Context, Map, ElementTree.Element], None]


def load_tile_layer(ctx: Context, tmxmap: Map, node: ElementTree.Element) -> None:
    get = getdefault(node.attrib)
    layer = TileLayer(
        name=get("name"),
        visible=get("visible", convert_to_bool, True),
        opacity=get("opacity", float, 1.0),
        width=get("width", int, 0),
        height=get("height", int, 0),
        tilewidth=tmxmap.tilewidth,
        tileheight=tmxmap.tileheight,
    )
    load_layer_data(layer, node.find("data"), tmxmap.tilesets, ctx.y_up)
    layer.properties.update(parse_properties(node))
    tmxmap.layers.append(layer)
    logger.debug('Loaded tile layer "{0}"'.format(layer.name))


def load_objectgroup(ctx: Context, tmxmap: Map, node: ElementTree.Element) -> None:
    tmxmap.layers.append(load_object_layer(node, tmxmap, ctx.y_up, ctx.object_hook))


# image layers and other elements are left to element_loaders
default_element_loaders: Dict[str, ElementLoader] = {
    "layer": load_tile_layer,
    "objectgroup": load_objectgroup,
}


def new_map(path: str, node: ElementTree.Element) -> Map:
    get = getdefault(node.attrib)
    tmxmap = Map(
        orientation=get("orientation"),
        width=get("width", int, 0),
        height=get("height", int, 0),
        tilewidth=get("tilewidth", int, 0),
        tileheight=get("tileheight", int, 0),
        background_color=get("backgroundcolor"),
        filename=path,
    )
    properties = tmxmap.properties
    if tmxmap.orientation is not None:
        properties["orientation"] = tmxmap.orientation
    properties["width"] = tmxmap.width
    properties["height"] = tmxmap.height
    properties["tilewidth"] = tmxmap.tilewidth
    properties["tileheight"] = tmxmap.tileheight
    if tmxmap.background_color is not None:
        properties["backgroundcolor"] = tmxmap.background_color
    # custom map properties override the ones above
    properties.update(parse_properties(node))
    return tmxmap


def prepare(path: str, parameters: Optional[LoaderParameters] = None) -> PreparedMap:
    """First load phase: parse the map and read its tilesets.

    No images are touched, so this may run on any thread while the
    images listed in `image_paths` are fetched.

    Raises:
        DocumentError: if the map or an external tileset cannot be read.
        MissingImageError: if a tileset has no image.

    """
    if parameters is None:
        parameters = LoaderParameters()
    root = parse_document(path)
    if root.tag != "map":
        msg = "{0} is not a map document".format(path)
        logger.error(msg)
        raise DocumentError(path, msg)
    prepared = PreparedMap(path, root, parameters)
    for node in root.findall("tileset"):
        prepared.tilesets.append(read_tileset(node, path))
    return prepared


def finish(
    prepared: PreparedMap,
    images: Mapping[str, object],
    object_hook: Optional[ObjectHook] = None,
    element_loaders: Optional[Dict[str, ElementLoader]] = None,
) -> Map:
    """Second load phase: build the map from the resolved tileset images.

    Args:
        prepared (PreparedMap): Result of `prepare`.
        images (Mapping[str, object]): Region handle for every path in
            `prepared.image_paths`.  The caller keeps ownership.
        object_hook (Optional[ObjectHook]): Called for every map object.
        element_loaders (Optional[Dict]): Loaders for top-level elements,
            by tag name, in addition to the built-in ones.

    Raises:
        MissingImageError: if an image is missing from `images`.
        UnsupportedEncodingError: for layer data that cannot be decoded.
        MalformedCellDataError: for corrupt layer data.

    Returns:
        Map: The assembled map.

    """
    root = prepared.root
    tmxmap = new_map(prepared.path, root)
    ctx = Context(tmxmap, prepared.path, prepared.parameters.y_up, object_hook)

    # ***         do not change this load order!         *** #
    # *** layers need every tileset to resolve their gids *** #
    for source in prepared.tilesets:
        try:
            image = images[source.image_path]
        except KeyError:
            logger.error("Image not resolved: {0}".format(source.image_path))
            raise MissingImageError(source.image_path, tileset=source.name)
        tmxmap.tilesets.add(build_tileset(source, image, ctx.y_up))

    loaders = dict(default_element_loaders)
    if element_loaders:
        loaders.update(element_loaders)

    for node in root:
        if node.tag in ("tileset", "properties"):
            continue
        try:
            loader = loaders[node.tag]
        except KeyError:
            logger.debug("Skipping unsupported element <{0}>".format(node.tag))
            continue
        loader(ctx, tmxmap, node)

    return tmxmap


def release_images(images: Mapping[str, object]) -> None:
    for image in images.values():
        release = getattr(image, "release", None)
        if release is not None:
            release()


def resolve_images(
    prepared: PreparedMap, image_resolver: Callable = placeholder_image_resolver
) -> Dict[str, object]:
    """Resolve every tileset image of a prepared map, once per path"""
    options = prepared.parameters.image_options()
    images = dict()
    for source in prepared.tilesets:
        if source.image_path in images:
            continue
        try:
            images[source.image_path] = image_resolver(
                source.image_path,
                width=source.image_width,
                height=source.image_height,
                **options,
            )
        except OSError as e:
            release_images(images)
            msg = "Cannot load image {0}: {1}".format(source.image_path, e)
            logger.error(msg)
            raise MissingImageError(source.image_path, tileset=source.name) from e
        except Exception:
            release_images(images)
            raise
    return images


def load_tmxmap(
    path: str,
    parameters: Optional[LoaderParameters] = None,
    image_resolver: Callable = placeholder_image_resolver,
    object_hook: Optional[ObjectHook] = None,
    element_loaders: Optional[Dict[str, ElementLoader]] = None,
) -> Map:
    """Load a TMX map and its tileset images

    The default image resolver loads no pixels, see
    `tiledmap.util_pygame.load_pygame` for real images.  The returned map
    owns the resolved images; `Map.dispose` releases them.

    Args:
        path (str): Path of the .tmx file.
        parameters (Optional[LoaderParameters]): Load options.
        image_resolver (Callable): Function that resolves image paths.
        object_hook (Optional[ObjectHook]): Called for every map object.
        element_loaders (Optional[Dict]): Extra top-level element loaders.

    Returns:
        Map: The assembled map.

    """
    prepared = prepare(path, parameters)
    images = resolve_images(prepared, image_resolver)
    try:
        tmxmap = finish(prepared, images, object_hook, element_loaders)
    except Exception:
        release_images(images)
        raise
    tmxmap.owned_images.extend(images.values())
    return tmxmap


def get_dependencies(
    path: str, parameters: Optional[LoaderParameters] = None
) -> List[str]:
    """Return the image paths a map needs, without decoding its layers"""
    return prepare(path, parameters).image_paths
