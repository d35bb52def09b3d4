import os
import tempfile
import unittest

try:
    import pygame
except ImportError:
    pygame = None

from tiledmap.exceptions import MissingImageError
from tiledmap.objects import Cell

if pygame is not None:
    from tiledmap import util_pygame

TMX = """<?xml version="1.0" encoding="UTF-8"?>
<map version="1.10" orientation="orthogonal" width="2" height="1" tilewidth="4" tileheight="4">
 <tileset firstgid="1" name="colors" tilewidth="4" tileheight="4">
  <image source="colors.bmp" width="8" height="4"/>
 </tileset>
 <layer name="ground" width="2" height="1">
  <data encoding="csv">1,2147483650</data>
 </layer>
</map>
"""

RED = (255, 0, 0)
BLUE = (0, 0, 255)


@unittest.skipIf(pygame is None, "pygame is not installed")
class PygameTest(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
        pygame.display.init()
        pygame.display.set_mode((1, 1))

    @classmethod
    def tearDownClass(cls):
        pygame.display.quit()

    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.folder = self.tempdir.name
        # left tile red, right tile blue with a green top row
        surface = pygame.Surface((8, 4))
        surface.fill(RED, (0, 0, 4, 4))
        surface.fill(BLUE, (4, 0, 4, 4))
        surface.fill((0, 255, 0), (4, 0, 4, 1))
        self.image_path = os.path.join(self.folder, "colors.bmp")
        pygame.image.save(surface, self.image_path)
        self.map_path = os.path.join(self.folder, "map.tmx")
        with open(self.map_path, "w") as fp:
            fp.write(TMX)

    def tearDown(self):
        self.tempdir.cleanup()

    def test_resolver(self):
        region = util_pygame.pygame_image_resolver(self.image_path, generate_mipmaps=True)
        self.assertEqual(8, region.width)
        self.assertEqual(4, region.height)
        self.assertFalse(region.y_up)

    def test_resolver_missing_file(self):
        with self.assertRaises(MissingImageError):
            util_pygame.pygame_image_resolver(os.path.join(self.folder, "nothing.png"))

    def test_subregion(self):
        region = util_pygame.pygame_image_resolver(self.image_path)
        tile = region.subregion(4, 0, 4, 4)
        self.assertEqual((4, 4), tile.surface.get_size())
        self.assertEqual(BLUE, tuple(tile.surface.get_at((0, 3)))[:3])

    def test_subregion_out_of_bounds(self):
        region = util_pygame.pygame_image_resolver(self.image_path)
        with self.assertRaises(ValueError):
            region.subregion(6, 0, 4, 4)

    def test_flip_vertically_once(self):
        region = util_pygame.pygame_image_resolver(self.image_path).subregion(4, 0, 4, 4)
        flipped = region.flip_vertically()
        self.assertTrue(flipped.flipped_y)
        self.assertEqual((0, 255, 0), tuple(flipped.surface.get_at((0, 3)))[:3])
        self.assertIs(flipped, flipped.flip_vertically())

    def test_load_pygame(self):
        tmxmap = util_pygame.load_pygame(self.map_path)
        tileset = tmxmap.tilesets.get_tileset_by_name("colors")
        self.assertEqual([1, 2], sorted(tileset.tiles))
        # y-up map, so the y-down surfaces are flipped at load
        tile = tmxmap.get_tile(1, 0, 0)
        self.assertEqual(2, tile.id)
        self.assertEqual((0, 255, 0), tuple(tile.image.surface.get_at((0, 3)))[:3])
        self.assertTrue(tmxmap.get_cell(1, 0, 0).flip_h)
        region = tmxmap.owned_images[0]
        tmxmap.dispose()
        self.assertIsNone(region.surface)
        self.assertEqual([], tmxmap.owned_images)

    def test_load_pygame_y_down(self):
        from tiledmap import LoaderParameters

        tmxmap = util_pygame.load_pygame(self.map_path, LoaderParameters(y_up=False))
        tile = tmxmap.get_tile(1, 0, 0)
        self.assertEqual((0, 255, 0), tuple(tile.image.surface.get_at((0, 0)))[:3])

    def test_transform_cell_image(self):
        surface = pygame.Surface((4, 2))
        surface.fill(RED)
        surface.fill(BLUE, (0, 0, 1, 1))
        result = util_pygame.transform_cell_image(surface, Cell(1, flip_h=True))
        self.assertEqual(BLUE, tuple(result.get_at((3, 0)))[:3])
        result = util_pygame.transform_cell_image(surface, Cell(1, rotation=90))
        self.assertEqual((2, 4), result.get_size())
        self.assertIs(surface, util_pygame.transform_cell_image(surface, Cell(1)))

    def test_smart_convert(self):
        surface = pygame.Surface((2, 2), pygame.SRCALPHA)
        surface.fill((255, 0, 0, 255))
        self.assertEqual(0, util_pygame.smart_convert(surface, True).get_flags() & pygame.SRCALPHA)
        surface.set_at((0, 0), (0, 0, 0, 0))
        self.assertTrue(util_pygame.smart_convert(surface, True).get_flags() & pygame.SRCALPHA)
