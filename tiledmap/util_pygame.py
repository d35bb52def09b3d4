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
from typing import Optional

from .exceptions import MissingImageError
from .loader import LoaderParameters, load_tmxmap
from .objects import Cell, Map

logger = logging.getLogger(__name__)

try:
    from pygame.transform import flip, rotate
    import pygame
except ImportError:
    logger.error("cannot import pygame (is it installed?)")
    raise

__all__ = [
    "PygameImageRegion",
    "load_pygame",
    "pygame_image_resolver",
    "smart_convert",
    "transform_cell_image",
]


class PygameImageRegion:
    """Region handle backed by a pygame Surface.

    Sub-regions are subsurfaces, so they share pixels with the tileset
    image instead of copying them.

    pygame surfaces are y-down.

    """

    y_up = False

    def __init__(self, surface: pygame.Surface, flipped_y: bool = False) -> None:
        self.surface = surface
        self.flipped_y = flipped_y

    def __repr__(self):
        return "<{0}: {1}x{2}>".format(self.__class__.__name__, self.width, self.height)

    @property
    def width(self) -> int:
        return self.surface.get_width()

    @property
    def height(self) -> int:
        return self.surface.get_height()

    def subregion(self, x: int, y: int, width: int, height: int) -> PygameImageRegion:
        try:
            tile = self.surface.subsurface((x, y, width, height))
        except ValueError:
            logger.error("Tile bounds outside bounds of tileset image")
            raise
        return PygameImageRegion(tile, self.flipped_y)

    def flip_vertically(self) -> PygameImageRegion:
        if self.flipped_y:
            return self
        return PygameImageRegion(flip(self.surface, False, True), True)

    def release(self) -> None:
        self.surface = None


def smart_convert(original: pygame.Surface, pixelalpha: bool) -> pygame.Surface:
    """
    Return new pygame Surface with optimal pixel/data format

    Needs a display mode to be set; call it from the thread that owns
    the display.

    Parameters:
        original: surface to inspect
        pixelalpha: if true, prefer per-pixel alpha surfaces

    Returns:
        new surface

    """
    if not pixelalpha:
        return original.convert()

    size = original.get_size()
    # count the number of pixels in the image that are not transparent
    px = pygame.mask.from_surface(original, 254).count()
    if px == size[0] * size[1]:
        return original.convert()
    return original.convert_alpha()


def pygame_image_resolver(
    filename: str, convert: bool = False, pixelalpha: bool = True, **kwargs
) -> PygameImageRegion:
    """
    Image resolver for pygame

    Texture options of the loader (mipmaps, filters) have no pygame
    equivalent and are ignored.

    Parameters:
        filename: filename, including path, to load
        convert: convert the image for fast blitting
        pixelalpha: if true, keep per-pixel alpha when converting

    Returns:
        region covering the whole image

    """
    try:
        image = pygame.image.load(filename)
    except (pygame.error, OSError) as e:
        logger.error("Cannot load image {0}: {1}".format(filename, e))
        raise MissingImageError(filename) from e
    if convert:
        image = smart_convert(image, pixelalpha)
    return PygameImageRegion(image)


def transform_cell_image(image: pygame.Surface, cell: Cell) -> pygame.Surface:
    """
    Return a new tile surface with the flips and rotation of a cell applied

    Parameters:
        image: tile surface to transform
        cell: the cell placing the tile

    Returns:
        new tile surface

    """
    if cell.flip_h or cell.flip_v:
        image = flip(image, cell.flip_h, cell.flip_v)
    if cell.rotation:
        image = rotate(image, cell.rotation)
    return image


def load_pygame(
    filename: str,
    parameters: Optional[LoaderParameters] = None,
    **kwargs,
) -> Map:
    """Load a TMX file, images, and return a Map

    PYGAME USERS: Use me.

    Tiles are converted for blitting, so a display mode must be set first.
    Extra keyword arguments are passed to `load_tmxmap`.

    Parameters:
        filename: filename to load
        parameters: load options

    Returns:
        new Map object

    """

    def resolver(path, **options):
        return pygame_image_resolver(path, convert=True, **options)

    return load_tmxmap(filename, parameters, image_resolver=resolver, **kwargs)
