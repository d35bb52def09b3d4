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
import struct
import zlib
from base64 import b64decode
from binascii import Error as Base64Error
from collections import namedtuple
from typing import Dict, Iterable, Iterator, Optional, Tuple
from xml.etree import ElementTree

from .exceptions import MalformedCellDataError, UnsupportedEncodingError
from .objects import (
    ROTATE_0,
    ROTATE_90,
    ROTATE_270,
    Cell,
    TileLayer,
    TilesetRegistry,
)

__all__ = (
    "GID_MASK",
    "GID_TRANS_FLIPX",
    "GID_TRANS_FLIPY",
    "GID_TRANS_ROT",
    "TileFlags",
    "compose_flags",
    "decode_cells",
    "decode_gid",
    "load_layer_data",
    "unpack_gids",
)

logger = logging.getLogger(__name__)

# Tiled gid flags
GID_TRANS_FLIPX = 1 << 31
GID_TRANS_FLIPY = 1 << 30
GID_TRANS_ROT = 1 << 29
GID_MASK = GID_TRANS_FLIPX | GID_TRANS_FLIPY | GID_TRANS_ROT

# zlib window sizes; 16 + MAX_WBITS selects the gzip container
compression_wbits = {
    "gzip": 16 + zlib.MAX_WBITS,
    "zlib": zlib.MAX_WBITS,
}

TileFlags = namedtuple("TileFlags", ["horizontal", "vertical", "diagonal"])
empty_flags = TileFlags(False, False, False)


def decode_gid(raw_gid: int) -> Tuple[int, TileFlags]:
    """Decode a GID from TMX data.

    Args:
        raw_gid (int): GID, as reported by Tiled.

    Returns:
        Tuple[int, TileFlags]: Tuple of the GID without flags, and TileFlags object

    """
    if raw_gid < GID_TRANS_ROT:
        return raw_gid, empty_flags
    return (
        raw_gid & ~GID_MASK,
        TileFlags(
            raw_gid & GID_TRANS_FLIPX == GID_TRANS_FLIPX,
            raw_gid & GID_TRANS_FLIPY == GID_TRANS_FLIPY,
            raw_gid & GID_TRANS_ROT == GID_TRANS_ROT,
        ),
    )


def compose_flags(flags: TileFlags) -> Tuple[bool, bool, int]:
    """Turn the three Tiled flip bits into (flip_h, flip_v, rotation).

    The diagonal flip is a transpose; combined with the axis flips it is
    always expressible as a rotation plus at most one axis flip.

    """
    horizontal, vertical, diagonal = flags
    if not diagonal:
        return horizontal, vertical, ROTATE_0
    if horizontal and vertical:
        return True, False, ROTATE_270
    if horizontal:
        return False, False, ROTATE_270
    if vertical:
        return False, False, ROTATE_90
    return False, True, ROTATE_270


def _iter_csv(text: str, count: int, layer: Optional[str]) -> Iterator[int]:
    text = text.strip()
    tokens = text.split(",") if text else []
    if len(tokens) != count:
        raise MalformedCellDataError(
            layer, "expected {0} values, found {1}".format(count, len(tokens))
        )
    for token in tokens:
        token = token.strip()
        # int() would also take signs, underscores and non-ascii digits
        if not (token.isascii() and token.isdigit()):
            raise MalformedCellDataError(
                layer, 'cannot parse "{0}" as a tile id'.format(token)
            )
        value = int(token)
        if not 0 <= value <= 0xFFFFFFFF:
            raise MalformedCellDataError(
                layer, "tile id {0} out of range".format(value)
            )
        yield value


def _iter_decompressed(
    data: bytes, wbits: int, layer: Optional[str], chunk_size: int = 4096
) -> Iterator[bytes]:
    """Yield the decompressed stream in bounded chunks"""
    decompressor = zlib.decompressobj(wbits)
    pending = data
    try:
        while pending and not decompressor.eof:
            chunk = decompressor.decompress(pending, chunk_size)
            pending = decompressor.unconsumed_tail
            if chunk:
                yield chunk
        chunk = decompressor.flush()
    except zlib.error as e:
        raise MalformedCellDataError(layer, str(e)) from e
    if chunk:
        yield chunk
    if not decompressor.eof:
        raise MalformedCellDataError(layer, "compressed stream is truncated")
    if decompressor.unused_data:
        raise MalformedCellDataError(layer, "trailing data after compressed stream")


def _iter_words(chunks: Iterable[bytes], count: int, layer: Optional[str]) -> Iterator[int]:
    """Read exactly `count` little-endian uint32 values from a byte stream"""
    buffer = bytearray()
    produced = 0
    for chunk in chunks:
        buffer.extend(chunk)
        usable = min(len(buffer) // 4, count - produced)
        if usable:
            end = usable * 4
            for (value,) in struct.iter_unpack("<L", bytes(buffer[:end])):
                yield value
            del buffer[:end]
            produced += usable
        if produced == count and buffer:
            raise MalformedCellDataError(
                layer, "layer data is longer than {0} tiles".format(count)
            )
    if produced < count or buffer:
        raise MalformedCellDataError(
            layer,
            "expected {0} bytes of layer data, found {1}".format(
                count * 4, produced * 4 + len(buffer)
            ),
        )


def unpack_gids(
    text: str,
    encoding: Optional[str],
    compression: Optional[str],
    count: int,
    layer: Optional[str] = None,
) -> Iterator[int]:
    """Return an iterator of the raw gids of encoded/compressed layer data

    Encoding and compression are checked immediately; the payload itself
    is decoded lazily, so malformed data raises while iterating.

    Args:
        text (str): Layer data in text format.
        encoding (Optional[str]): "csv" or "base64".
        compression (Optional[str]): None, "gzip" or "zlib"; base64 only.
        count (int): Number of tiles in the layer.
        layer (Optional[str]): Layer name, for error messages.

    Raises:
        UnsupportedEncodingError: for plain XML data or unknown values.
        MalformedCellDataError: for data that does not decode to `count` ids.

    Returns:
        Iterator[int]: The raw 32-bit gids, in row-major order.

    """
    if encoding is None:
        logger.error("XML layer data is not supported: layer {0}".format(layer))
        raise UnsupportedEncodingError(layer, "xml")

    if encoding == "csv":
        if compression:
            logger.debug("ignoring compression {0} of csv layer data".format(compression))
        return _iter_csv(text, count, layer)

    if encoding != "base64":
        logger.error("layer encoding {0} is not supported.".format(encoding))
        raise UnsupportedEncodingError(layer, encoding)

    if compression and compression not in compression_wbits:
        logger.error("layer compression {0} is not supported.".format(compression))
        raise UnsupportedEncodingError(layer, "base64+{0}".format(compression))

    try:
        data = b64decode("".join(text.split()), validate=True)
    except Base64Error as e:
        logger.error('Error reading data of layer "{0}": {1}'.format(layer, e))
        raise MalformedCellDataError(layer, "invalid base64 data: {0}".format(e))

    if compression:
        chunks = _iter_decompressed(data, compression_wbits[compression], layer)
    else:
        chunks = iter((data,))
    return _iter_words(chunks, count, layer)


def decode_cells(
    layer: TileLayer,
    raw_gids: Iterable[int],
    tilesets: TilesetRegistry,
    y_up: bool,
) -> TileLayer:
    """Fill the cells of a tile layer from raw gids in source row order.

    Source row 0 is the top of the map; with `y_up` it is stored as the
    last row, so that row 0 of the layer is the bottom.  Gids that no
    tileset knows about leave the cell empty.

    """
    width, height = layer.width, layer.height
    cache: Dict[int, Optional[Cell]] = dict()
    try:
        for index, raw_gid in enumerate(raw_gids):
            try:
                cell = cache[raw_gid]
            except KeyError:
                gid, flags = decode_gid(raw_gid)
                if tilesets.get_tile(gid) is None:
                    cell = None
                else:
                    cell = Cell(gid, *compose_flags(flags))
                cache[raw_gid] = cell

            if cell is not None:
                y, x = divmod(index, width)
                layer.set_cell(x, height - 1 - y if y_up else y, cell)
    except MalformedCellDataError as e:
        logger.error(str(e))
        raise
    return layer


def load_layer_data(
    layer: TileLayer,
    data_node: Optional[ElementTree.Element],
    tilesets: TilesetRegistry,
    y_up: bool,
) -> TileLayer:
    """Decode the <data> element of a tile layer into its cells"""
    if data_node is None:
        raise MalformedCellDataError(layer.name, "layer has no data element")

    if data_node.find("chunk") is not None:
        logger.error("TMX map size: infinite is not supported.")
        raise UnsupportedEncodingError(layer.name, "chunk")

    encoding = data_node.get("encoding", None)
    if encoding is None or data_node.find("tile") is not None:
        logger.error(
            "XML tile elements are not supported. Must use base64 or csv map formats."
        )
        raise UnsupportedEncodingError(layer.name, "xml")

    raw_gids = unpack_gids(
        text=data_node.text or "",
        encoding=encoding,
        compression=data_node.get("compression", None),
        count=layer.width * layer.height,
        layer=layer.name,
    )
    return decode_cells(layer, raw_gids, tilesets, y_up)
