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

__all__ = (
    "TiledMapError",
    "DocumentError",
    "UnsupportedEncodingError",
    "MalformedCellDataError",
    "MissingImageError",
    "PropertyError",
)


class TiledMapError(Exception):
    """Base class for all load errors."""

    pass


class DocumentError(TiledMapError):
    """A map or external tileset document cannot be read or parsed."""

    def __init__(self, path, message=None):
        self.path = path
        if message is None:
            message = "Cannot read document {0}".format(path)
        super().__init__(message)


class UnsupportedEncodingError(TiledMapError):
    def __init__(self, layer, value):
        self.layer = layer
        self.value = value
        super().__init__(
            'Layer "{0}": unsupported layer data encoding: {1}'.format(layer, value)
        )


class MalformedCellDataError(TiledMapError):
    def __init__(self, layer, reason):
        self.layer = layer
        self.reason = reason
        super().__init__('Layer "{0}": malformed layer data: {1}'.format(layer, reason))


class MissingImageError(TiledMapError):
    def __init__(self, path, tileset=None):
        self.path = path
        self.tileset = tileset
        if path is None:
            message = 'Tileset "{0}" has no image'.format(tileset)
        elif tileset is None:
            message = "Cannot resolve image {0}".format(path)
        else:
            message = 'Cannot resolve image {0} for tileset "{1}"'.format(path, tileset)
        super().__init__(message)


class PropertyError(TiledMapError):
    def __init__(self, name, value, type):
        self.name = name
        self.value = value
        self.type = type
        super().__init__(
            'cannot cast property "{0}" value "{1}" as {2}'.format(name, value, type)
        )
