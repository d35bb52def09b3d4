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

import logging

from .exceptions import *
from .images import DirectImageResolver, ImageRegion, placeholder_image_resolver
from .loader import (
    LoaderParameters,
    PreparedMap,
    finish,
    get_dependencies,
    load_tmxmap,
    prepare,
    resolve_path,
)
from .objects import *

logger = logging.getLogger(__name__)

try:
    from tiledmap.util_pygame import load_pygame
except ImportError:
    logger.debug("cannot import pygame tools")

__version__ = (1, 0)
__author__ = "bitcraft"
__author_email__ = "leif.theden@gmail.com"
__description__ = "Decoder for Tiled TMX maps - Python 3.7 +"
