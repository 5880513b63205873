"""
Unit tests for ContentCatalog and CatalogLoader.
"""
import tempfile
import unittest
from pathlib import Path

from minebot.catalog import CatalogLoader, ContentCatalog
from minebot.exceptions import CatalogLoadError
from tests.test_fixtures import TestFixtures


class TestContentCatalog(unittest.TestCase):
    """Test cases for the bundled catalog."""

    def setUp(self):
        self.catalog = ContentCatalog.default()

    def test_default_tables(self):
        self.assertEqual(len(self.catalog.blocks), 10)
        self.assertEqual(len(self.catalog.items), 10)
        self.assertEqual(len(self.catalog.mobs), 10)
        self.assertEqual(len(self.catalog.biomes), 10)
        self.assertEqual(len(self.catalog.facts), 8)
        self.assertEqual(len(self.catalog.questions), 4)
        self.assertEqual(self.catalog.questions[0].answer, 'Obsidian')

    def test_recipe_lookup_is_exact(self):
        self.assertEqual(self.catalog.get_recipe('crafting_table'), '4 Wood Planks in 2x2 pattern')
        self.assertIsNone(self.catalog.get_recipe('Crafting_Table'))
        self.assertIsNone(self.catalog.get_recipe('crafting'))

    def test_recipes_copy_cannot_mutate_catalog(self):
        recipes = self.catalog.recipes
        recipes['tnt'] = '5 Gunpowder + 4 Sand'
        self.assertIsNone(self.catalog.get_recipe('tnt'))

    def test_random_draws_come_from_tables(self):
        for _ in range(50):
            self.assertIn(self.catalog.random_block(), self.catalog.blocks)
            self.assertIn(self.catalog.random_item(), self.catalog.items)
            self.assertIn(self.catalog.random_mob(), self.catalog.mobs)
            self.assertIn(self.catalog.random_biome(), self.catalog.biomes)
            self.assertIn(self.catalog.random_fact(), self.catalog.facts)
            self.assertIn(self.catalog.random_question(), self.catalog.questions)


class TestCatalogLoader(unittest.TestCase):
    """Test cases for loading catalog files."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_no_file_uses_defaults(self):
        loader = CatalogLoader(None)
        catalog = loader.load()
        self.assertEqual(catalog.blocks, ContentCatalog.default().blocks)
        self.assertFalse(loader.has_load_errors())

    def test_valid_file_overrides_sections(self):
        path = TestFixtures.write_json(self.temp_dir.name, 'catalog.json', TestFixtures.create_valid_catalog_json())
        loader = CatalogLoader(str(path))
        catalog = loader.load()

        self.assertEqual(catalog.blocks, ('Netherite Block', 'Ancient Debris'))
        self.assertEqual(catalog.get_recipe('furnace'), '8 Cobblestone around edges')
        self.assertIsNone(catalog.get_recipe('crafting_table'))
        self.assertEqual(catalog.questions[0].answer, 'Enderman')
        # Sections absent from the file keep the bundled values
        self.assertEqual(catalog.mobs, ContentCatalog.default().mobs)
        self.assertFalse(loader.has_load_errors())

    def test_missing_file_falls_back(self):
        loader = CatalogLoader(str(Path(self.temp_dir.name) / 'missing.json'))
        catalog = loader.load()
        self.assertEqual(catalog.recipes, ContentCatalog.default().recipes)
        self.assertTrue(loader.has_load_errors())
        self.assertIn('File not found', loader.load_errors[0])

    def test_invalid_json_falls_back(self):
        path = Path(self.temp_dir.name) / 'broken.json'
        path.write_text('{ invalid json }', encoding='utf-8')
        loader = CatalogLoader(str(path))
        catalog = loader.load()
        self.assertEqual(catalog.blocks, ContentCatalog.default().blocks)
        self.assertTrue(loader.has_load_errors())

    def test_invalid_structures_are_rejected(self):
        loader = CatalogLoader(None)
        for data in TestFixtures.create_invalid_catalog_json_structures():
            with self.subTest(data=data):
                with self.assertRaises(CatalogLoadError):
                    loader.validate_catalog_structure(data)

    def test_invalid_structure_file_falls_back(self):
        path = TestFixtures.write_json(self.temp_dir.name, 'bad.json', {'blocks': []})
        loader = CatalogLoader(str(path))
        catalog = loader.load()
        self.assertEqual(catalog.blocks, ContentCatalog.default().blocks)
        self.assertEqual(len(loader.load_errors), 1)


if __name__ == '__main__':
    unittest.main()
