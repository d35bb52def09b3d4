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
import os
import re
from xml.etree import ElementTree

from .exceptions import DocumentError

__all__ = ("parse_document", "resolve_path")

logger = logging.getLogger(__name__)

path_separators = re.compile(r"[\\/]")


def parse_document(path: str) -> ElementTree.Element:
    """Parse a TMX or TSX file and return the root element

    Raises:
        DocumentError: if the file cannot be read or is not well formed xml.

    """
    try:
        return ElementTree.parse(path).getroot()
    except (OSError, ElementTree.ParseError) as e:
        msg = "Error loading document {0}: {1}".format(path, e)
        logger.error(msg)
        raise DocumentError(path, msg) from e


def resolve_path(base: str, relative: str) -> str:
    """Resolve a path found inside a document relative to that document.

    Tiled stores relative paths with either separator; ".." segments
    walk up from the directory of `base`.

    Args:
        base (str): Path of the document holding the reference.
        relative (str): The path as written in the document.

    Returns:
        str: The resolved path.

    """
    tokens = [token for token in path_separators.split(relative) if token]
    if relative[:1] in ("/", "\\"):
        return os.path.normpath(os.path.join(os.sep, *tokens))
    return os.path.normpath(os.path.join(os.path.dirname(base), *tokens))
