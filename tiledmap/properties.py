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
from typing import Any, Callable, Dict, Optional
from xml.etree import ElementTree

from .exceptions import PropertyError

__all__ = ("convert_to_bool", "getdefault", "parse_properties", "prop_type")

logger = logging.getLogger(__name__)


def convert_to_bool(value: Any) -> bool:
    """Convert a few common variations of "true" and "false" to boolean

    Args:
        value (Any): String, number or bool to test.

    Raises:
        ValueError: If `value` cannot be converted to a boolean.

    Returns:
        bool: The converted boolean.

    """
    value = str(value).strip()
    if value:
        value = value.lower()[0]
        if value in ("1", "y", "t"):
            return True
        if value in ("-", "0", "n", "f"):
            return False
    else:
        return False
    raise ValueError('cannot parse "{}" as bool'.format(value))


def getdefault(d: Dict) -> Callable:
    """Return dictionary key as optional type, with a default"""

    def get(key, type=None, default=None):
        try:
            value = d[key]
        except KeyError:
            return default
        if type is not None:
            return type(value)
        return value

    return get


# casting for the property "type" attribute
prop_type = {
    "bool": convert_to_bool,
    "color": str,
    "file": str,
    "float": float,
    "int": int,
    "object": int,
    "string": str,
    "enum": str,
}


def _property_value(subnode: ElementTree.Element) -> Any:
    name = subnode.get("name")
    type_name = subnode.get("type")
    if type_name == "class":
        return parse_properties(subnode)

    value = subnode.get("value")
    if value is None:
        value = subnode.text or ""

    if type_name is None:
        return value
    try:
        cast = prop_type[type_name]
    except KeyError:
        logger.info(
            "Type {} Not a built-in type. Defaulting to string-cast.".format(type_name)
        )
        return value

    try:
        return cast(value)
    except ValueError as e:
        error = PropertyError(name, value, type_name)
        logger.error(str(error))
        raise error from e


def parse_properties(node: Optional[ElementTree.Element]) -> Dict[str, Any]:
    """Parse the Tiled properties of a xml node and return a dict.

    Only the direct ``<properties>`` child of `node` is read, so properties
    of nested elements (tiles inside a tileset, objects inside a layer)
    never leak into the parent.

    Args:
        node (ElementTree.Element): Etree element to inspect.

    Returns:
        Dict: Dictionary of the properties, as set in the Tiled editor.

    """
    d = dict()
    if node is None:
        return d
    for child in node.findall("properties"):
        for subnode in child.findall("property"):
            d[subnode.get("name")] = _property_value(subnode)
    return d
