import os
import tempfile
import unittest
from dataclasses import dataclass
from xml.etree import ElementTree

from tiledmap import tileset
from tiledmap.exceptions import DocumentError, MissingImageError
from tiledmap.images import ImageRegion
from tiledmap.objects import TilesetRegistry


@dataclass(frozen=True)
class TopDownRegion(ImageRegion):
    """Region in y-down coordinates, like a pygame surface"""

    y_up = False

    def subregion(self, x, y, width, height):
        return TopDownRegion(self.source, self.x + x, self.y + y, width, height)


def make_source(firstgid=1, tile_xml="", properties_xml="", **kwargs):
    node = ElementTree.fromstring(
        '<tileset name="tiles" tilewidth="4" tileheight="8">{0}{1}</tileset>'.format(
            properties_xml, tile_xml
        )
    )
    attrs = dict(
        name="tiles",
        firstgid=firstgid,
        tilewidth=4,
        tileheight=8,
        spacing=0,
        margin=0,
        image_source="tiles.png",
        image_path="tiles.png",
        image_width=8,
        image_height=16,
        node=node,
    )
    attrs.update(kwargs)
    return tileset.TilesetSource(**attrs)


class TilesetImageTest(unittest.TestCase):
    def test_image_split_no_margin_no_spacing(self):
        result = list(tileset.iter_image_tiles(8, 16, 4, 8, 0, 0))
        expected = [(0, 0, 4, 8), (4, 0, 4, 8), (0, 8, 4, 8), (4, 8, 4, 8)]
        self.assertEqual(expected, result)

    def test_image_split_no_margin_with_spacing(self):
        result = list(tileset.iter_image_tiles(9, 17, 4, 8, 0, 1))
        expected = [(0, 0, 4, 8), (5, 0, 4, 8), (0, 9, 4, 8), (5, 9, 4, 8)]
        self.assertEqual(expected, result)

    def test_image_split_with_margin_no_spacing(self):
        result = list(tileset.iter_image_tiles(10, 18, 4, 8, 1, 0))
        expected = [(1, 1, 4, 8), (5, 1, 4, 8), (1, 9, 4, 8), (5, 9, 4, 8)]
        self.assertEqual(expected, result)

    def test_image_split_with_margin_with_spacing(self):
        result = list(tileset.iter_image_tiles(11, 19, 4, 8, 1, 1))
        expected = [(1, 1, 4, 8), (6, 1, 4, 8), (1, 10, 4, 8), (6, 10, 4, 8)]
        self.assertEqual(expected, result)

    def test_image_split_count(self):
        for width, tilewidth, margin, spacing in (
            (32, 8, 0, 0),
            (35, 8, 1, 1),
            (100, 16, 2, 3),
            (7, 8, 0, 0),
            (50, 10, 5, 0),
        ):
            per_row = (width - 2 * margin + spacing) // (tilewidth + spacing)
            result = list(tileset.iter_image_tiles(width, width, tilewidth, tilewidth, margin, spacing))
            self.assertEqual(max(per_row, 0) ** 2, len(result))

    def test_image_split_partial_tiles_dropped(self):
        result = list(tileset.iter_image_tiles(10, 8, 4, 8, 0, 0))
        self.assertEqual([(0, 0, 4, 8), (4, 0, 4, 8)], result)

    def test_image_split_empty_tile_size(self):
        self.assertEqual([], list(tileset.iter_image_tiles(8, 8, 0, 8, 0, 0)))


class BuildTilesetTest(unittest.TestCase):
    def test_gids_start_at_firstgid(self):
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(firstgid=9), image)
        self.assertEqual([9, 10, 11, 12], sorted(result.tiles))
        self.assertEqual(12, result.lastgid)
        self.assertEqual(4, result.tilecount)

    def test_two_tilesets_share_id_space(self):
        registry = TilesetRegistry()
        first = tileset.build_tileset(
            make_source(firstgid=1, image_width=16), ImageRegion("a.png", width=16, height=16)
        )
        second = tileset.build_tileset(
            make_source(firstgid=9, name="second"), ImageRegion("b.png", width=8, height=16)
        )
        registry.add(first)
        registry.add(second)
        self.assertEqual(8, first.tilecount)
        self.assertEqual("a.png", registry.get_tile(8).image.source)
        self.assertEqual("b.png", registry.get_tile(9).image.source)
        self.assertEqual((0, 0, 4, 8), registry.get_tile(9).image.rect)
        self.assertIs(second, registry.get_tileset_by_gid(12))
        self.assertIsNone(registry.get_tile(13))

    def test_slices_actual_image_size(self):
        # declared size disagrees with the image
        image = ImageRegion("tiles.png", width=4, height=8)
        result = tileset.build_tileset(make_source(image_width=8, image_height=16), image)
        self.assertEqual([1], list(result.tiles))

    def test_regions_row_major(self):
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(), image)
        rects = [result.tiles[gid].image.rect for gid in sorted(result.tiles)]
        self.assertEqual([(0, 0, 4, 8), (4, 0, 4, 8), (0, 8, 4, 8), (4, 8, 4, 8)], rects)

    def test_y_up_map_keeps_y_up_regions(self):
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(), image, y_up=True)
        self.assertFalse(any(tile.image.flipped_y for tile in result.tiles.values()))

    def test_y_down_map_flips_y_up_regions(self):
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(), image, y_up=False)
        self.assertTrue(all(tile.image.flipped_y for tile in result.tiles.values()))

    def test_y_down_regions(self):
        image = TopDownRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(), image, y_up=False)
        self.assertFalse(any(tile.image.flipped_y for tile in result.tiles.values()))
        result = tileset.build_tileset(make_source(), image, y_up=True)
        self.assertTrue(all(tile.image.flipped_y for tile in result.tiles.values()))

    def test_baseline_properties(self):
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(firstgid=3, margin=0, spacing=0), image)
        self.assertEqual(
            dict(
                firstgid=3,
                imagesource="tiles.png",
                imagewidth=8,
                imageheight=16,
                tilewidth=4,
                tileheight=8,
                margin=0,
                spacing=0,
            ),
            result.properties,
        )

    def test_custom_properties_override_baseline(self):
        properties_xml = (
            "<properties>"
            '<property name="margin" value="custom"/>'
            '<property name="biome" value="desert"/>'
            "</properties>"
        )
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(properties_xml=properties_xml), image)
        self.assertEqual("custom", result.properties["margin"])
        self.assertEqual("desert", result.properties["biome"])
        self.assertEqual(4, result.properties["tilewidth"])

    def test_tile_properties(self):
        tile_xml = (
            '<tile id="2"><properties>'
            '<property name="solid" type="bool" value="true"/>'
            "</properties></tile>"
            '<tile id="99"><properties>'
            '<property name="lost" value="yes"/>'
            "</properties></tile>"
        )
        image = ImageRegion("tiles.png", width=8, height=16)
        result = tileset.build_tileset(make_source(firstgid=5, tile_xml=tile_xml), image)
        self.assertEqual({"solid": True}, result.tiles[7].properties)
        self.assertEqual({}, result.tiles[5].properties)


class ReadTilesetTest(unittest.TestCase):
    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.folder = self.tempdir.name
        self.map_path = os.path.join(self.folder, "maps", "level.tmx")
        os.makedirs(os.path.join(self.folder, "maps"))
        os.makedirs(os.path.join(self.folder, "tilesets"))

    def tearDown(self):
        self.tempdir.cleanup()

    def write(self, relative, text):
        path = os.path.join(self.folder, relative)
        with open(path, "w") as fp:
            fp.write(text)
        return path

    def test_inline_tileset(self):
        node = ElementTree.fromstring(
            '<tileset firstgid="3" name="inline" tilewidth="16" tileheight="8" margin="1" spacing="2">'
            '<image source="../images/tiles.png" width="64" height="32"/>'
            "</tileset>"
        )
        result = tileset.read_tileset(node, self.map_path)
        self.assertEqual("inline", result.name)
        self.assertEqual(3, result.firstgid)
        self.assertEqual(16, result.tilewidth)
        self.assertEqual(8, result.tileheight)
        self.assertEqual(1, result.margin)
        self.assertEqual(2, result.spacing)
        self.assertEqual(64, result.image_width)
        self.assertEqual(32, result.image_height)
        self.assertEqual("../images/tiles.png", result.image_source)
        self.assertEqual(
            os.path.normpath(os.path.join(self.folder, "images", "tiles.png")),
            result.image_path,
        )
        self.assertIsNone(result.source)

    def test_firstgid_defaults_to_one(self):
        node = ElementTree.fromstring(
            '<tileset name="inline" tilewidth="16" tileheight="16">'
            '<image source="tiles.png"/></tileset>'
        )
        self.assertEqual(1, tileset.read_tileset(node, self.map_path).firstgid)

    def test_external_tileset(self):
        self.write(
            "tilesets/outside.tsx",
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<tileset name="outside" tilewidth="8" tileheight="8">'
            '<image source="outside.png" width="16" height="16"/>'
            '<tile id="0"><properties><property name="kind" value="grass"/></properties></tile>'
            "</tileset>",
        )
        node = ElementTree.fromstring(
            '<tileset firstgid="7" source="..\\tilesets\\outside.tsx"/>'
        )
        result = tileset.read_tileset(node, self.map_path)
        self.assertEqual("outside", result.name)
        self.assertEqual(7, result.firstgid)
        self.assertEqual(8, result.tilewidth)
        self.assertEqual(
            os.path.normpath(os.path.join(self.folder, "tilesets", "outside.png")),
            result.image_path,
        )
        self.assertEqual("tileset", result.node.tag)

        built = tileset.build_tileset(
            result, ImageRegion(result.image_path, width=16, height=16)
        )
        self.assertEqual([7, 8, 9, 10], sorted(built.tiles))
        self.assertEqual({"kind": "grass"}, built.tiles[7].properties)

    def test_missing_external_tileset(self):
        node = ElementTree.fromstring('<tileset firstgid="1" source="missing.tsx"/>')
        with self.assertRaises(DocumentError) as cm:
            tileset.read_tileset(node, self.map_path)
        self.assertIn("missing.tsx", str(cm.exception))

    def test_malformed_external_tileset(self):
        self.write("maps/broken.tsx", "<tileset name='broken'><image")
        node = ElementTree.fromstring('<tileset firstgid="1" source="broken.tsx"/>')
        with self.assertRaises(DocumentError) as cm:
            tileset.read_tileset(node, self.map_path)
        self.assertIn("broken.tsx", str(cm.exception))

    def test_external_document_not_a_tileset(self):
        self.write("maps/other.tsx", "<map/>")
        node = ElementTree.fromstring('<tileset firstgid="1" source="other.tsx"/>')
        with self.assertRaises(DocumentError):
            tileset.read_tileset(node, self.map_path)

    def test_missing_image(self):
        node = ElementTree.fromstring('<tileset name="empty" tilewidth="8" tileheight="8"/>')
        with self.assertRaises(MissingImageError) as cm:
            tileset.read_tileset(node, self.map_path)
        self.assertEqual("empty", cm.exception.tileset)
