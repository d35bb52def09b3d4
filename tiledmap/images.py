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
from dataclasses import dataclass, replace
from typing import ClassVar, Dict, Optional

from .exceptions import MissingImageError

__all__ = ("ImageRegion", "DirectImageResolver", "placeholder_image_resolver")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRegion:
    """Rectangular area of a source image, without any pixels.

    Suitable for loading a map without the images; a renderer can use
    `source` and the rect to cut the tile out later.  Regions follow the
    y-up texture convention; `flipped_y` marks a region to be drawn
    mirrored vertically.

    """

    y_up: ClassVar[bool] = True

    source: str
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    flipped_y: bool = False

    @property
    def rect(self):
        return self.x, self.y, self.width, self.height

    def subregion(self, x: int, y: int, width: int, height: int) -> ImageRegion:
        return ImageRegion(
            self.source, self.x + x, self.y + y, width, height, self.flipped_y
        )

    def flip_vertically(self) -> ImageRegion:
        return replace(self, flipped_y=True)

    def release(self) -> None:
        pass


def placeholder_image_resolver(
    filename: str, width: int = 0, height: int = 0, **kwargs
) -> ImageRegion:
    """This default image resolver just returns a region of the declared size.

    Args:
        filename (str): The file's name.
        width (int): Image width declared in the document.
        height (int): Image height declared in the document.
        **kwargs: Texture options, ignored.

    Returns:
        ImageRegion: Region covering the whole image.

    """
    return ImageRegion(filename, 0, 0, width, height)


class DirectImageResolver:
    """Resolve images from a mapping of path to already loaded region.

    Used by callers that load images themselves, ahead of the map.

    """

    def __init__(self, images: Optional[Dict[str, object]] = None) -> None:
        self.images = dict(images or {})

    def __call__(self, filename: str, **kwargs):
        try:
            return self.images[filename]
        except KeyError:
            logger.error("Image not preloaded: {0}".format(filename))
            raise MissingImageError(filename)
