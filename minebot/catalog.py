"""
Content catalog for the MineBot Discord bot.

Holds the static Minecraft reference tables the commands read from, and a
loader that can overlay them with a JSON file.
"""
import json
import logging
import os
import random
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .exceptions import CatalogLoadError
from .models import QuizQuestion


DEFAULT_BLOCKS = (
    'Stone', 'Dirt', 'Grass Block', 'Cobblestone', 'Wood Planks',
    'Diamond Ore', 'Iron Ore', 'Gold Ore', 'Coal Ore', 'Redstone Ore',
)

DEFAULT_ITEMS = (
    'Diamond Sword', 'Iron Pickaxe', 'Bow', 'Arrow', 'Bread',
    'Cooked Beef', 'Potion', 'Enchanted Book', 'Ender Pearl', 'Blaze Rod',
)

DEFAULT_MOBS = (
    'Zombie', 'Skeleton', 'Creeper', 'Spider', 'Enderman',
    'Witch', 'Villager', 'Iron Golem', 'Dragon', 'Wither',
)

DEFAULT_BIOMES = (
    'Plains', 'Forest', 'Desert', 'Mountains', 'Ocean',
    'Jungle', 'Swamp', 'Tundra', 'Nether', 'End',
)

DEFAULT_RECIPES = {
    'crafting_table': '4 Wood Planks in 2x2 pattern',
    'wooden_pickaxe': '3 Wood Planks + 2 Sticks',
    'stone_sword': '2 Cobblestone + 1 Stick',
    'bread': '3 Wheat in horizontal line',
    'chest': '8 Wood Planks around edges',
}

DEFAULT_FACTS = (
    'Creepers were created by accident!',
    'The Ender Dragon is female and her name is Jean!',
    'Minecraft has sold over 200 million copies!',
    'The first version was created in just 6 days!',
    'Ghasts make cat-like sounds!',
    'Endermen are scared of water!',
    'Pigs can be struck by lightning to become Zombie Pigmen!',
    'Diamonds are most common at Y-level 12!',
)

DEFAULT_QUESTIONS = (
    QuizQuestion('What do you need to make a Nether Portal?', 'Obsidian'),
    QuizQuestion('How many blocks of iron do you need for a full set of iron armor?', '24'),
    QuizQuestion('What dimension do Endermen come from?', 'The End'),
    QuizQuestion('What food item restores the most hunger?', 'Golden Carrot'),
)

LIST_SECTIONS = ('blocks', 'items', 'mobs', 'biomes', 'facts')


class ContentCatalog:
    """Read-only lookup tables for blocks, items, mobs, biomes, recipes, facts and quiz questions."""

    def __init__(
        self,
        blocks: Tuple[str, ...],
        items: Tuple[str, ...],
        mobs: Tuple[str, ...],
        biomes: Tuple[str, ...],
        recipes: Dict[str, str],
        facts: Tuple[str, ...],
        questions: Tuple[QuizQuestion, ...],
    ):
        self.blocks = tuple(blocks)
        self.items = tuple(items)
        self.mobs = tuple(mobs)
        self.biomes = tuple(biomes)
        self._recipes = dict(recipes)
        self.facts = tuple(facts)
        self.questions = tuple(questions)

    @classmethod
    def default(cls) -> "ContentCatalog":
        """Build the catalog from the bundled tables."""
        return cls(
            blocks=DEFAULT_BLOCKS,
            items=DEFAULT_ITEMS,
            mobs=DEFAULT_MOBS,
            biomes=DEFAULT_BIOMES,
            recipes=DEFAULT_RECIPES,
            facts=DEFAULT_FACTS,
            questions=DEFAULT_QUESTIONS,
        )

    @property
    def recipes(self) -> Dict[str, str]:
        """Copy of the recipe table, in insertion order."""
        return dict(self._recipes)

    def get_recipe(self, key: str) -> Optional[str]:
        """Exact-match recipe lookup."""
        return self._recipes.get(key)

    def random_block(self) -> str:
        return random.choice(self.blocks)

    def random_item(self) -> str:
        return random.choice(self.items)

    def random_mob(self) -> str:
        return random.choice(self.mobs)

    def random_biome(self) -> str:
        return random.choice(self.biomes)

    def random_fact(self) -> str:
        return random.choice(self.facts)

    def random_question(self) -> QuizQuestion:
        return random.choice(self.questions)


class CatalogLoader:
    """Loads an optional JSON catalog file on top of the bundled tables."""

    # Catalog files are small; anything bigger is a mistake
    MAX_FILE_SIZE = 1024 * 1024

    def __init__(self, catalog_file: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            catalog_file: Path to a JSON catalog file, or None to use the
                bundled tables only
        """
        self.catalog_file = Path(catalog_file) if catalog_file else None
        self.logger = logging.getLogger(__name__)
        self.load_errors: List[str] = []

    def load(self) -> ContentCatalog:
        """
        Build the catalog, falling back to the bundled tables on any error.

        Sections missing from the file keep their bundled values.

        Returns:
            The loaded ContentCatalog
        """
        self.load_errors.clear()
        default = ContentCatalog.default()

        if self.catalog_file is None:
            self.logger.info("Using bundled content catalog")
            return default

        try:
            data = self._read_file(self.catalog_file)
            self.validate_catalog_structure(data)
        except CatalogLoadError as e:
            self.logger.error(f"Could not load catalog file {self.catalog_file}: {e}")
            self.load_errors.append(str(e))
            self.logger.warning("Falling back to bundled content catalog")
            return default

        catalog = ContentCatalog(
            blocks=tuple(data.get('blocks', default.blocks)),
            items=tuple(data.get('items', default.items)),
            mobs=tuple(data.get('mobs', default.mobs)),
            biomes=tuple(data.get('biomes', default.biomes)),
            recipes=data.get('recipes', default.recipes),
            facts=tuple(data.get('facts', default.facts)),
            questions=self._parse_questions(data['questions']) if 'questions' in data else default.questions,
        )
        self.logger.info(
            f"Loaded content catalog from {self.catalog_file}: "
            f"{len(catalog.recipes)} recipes, {len(catalog.questions)} quiz questions"
        )
        return catalog

    def has_load_errors(self) -> bool:
        return bool(self.load_errors)

    def _read_file(self, file_path: Path) -> dict:
        if not file_path.exists():
            raise CatalogLoadError("File not found")
        if not os.access(file_path, os.R_OK):
            raise CatalogLoadError("Permission denied: Cannot read file")
        file_size = file_path.stat().st_size
        if file_size > self.MAX_FILE_SIZE:
            raise CatalogLoadError(f"File too large ({file_size} bytes)")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogLoadError(f"Invalid JSON: {e}") from e
        except OSError as e:
            raise CatalogLoadError(f"Failed to read file: {e}") from e

    def validate_catalog_structure(self, data: dict) -> None:
        """
        Validate that parsed JSON has the catalog structure.

        Expected structure (every key optional):
        {
            "blocks": [str], "items": [str], "mobs": [str],
            "biomes": [str], "facts": [str],
            "recipes": {str: str},
            "questions": [{"question": str, "answer": str}]
        }

        Raises:
            CatalogLoadError: Describing the first problem found
        """
        if not isinstance(data, dict):
            raise CatalogLoadError("Catalog data must be a JSON object")

        for section in LIST_SECTIONS:
            if section not in data:
                continue
            values = data[section]
            if not isinstance(values, list) or not values:
                raise CatalogLoadError(f"'{section}' must be a non-empty array")
            for i, value in enumerate(values):
                if not isinstance(value, str) or not value.strip():
                    raise CatalogLoadError(f"'{section}' entry {i} must be a non-empty string")

        if 'recipes' in data:
            recipes = data['recipes']
            if not isinstance(recipes, dict) or not recipes:
                raise CatalogLoadError("'recipes' must be a non-empty object")
            for key, value in recipes.items():
                if not isinstance(value, str):
                    raise CatalogLoadError(f"Recipe '{key}' must be a string")
                if key != key.lower() or ' ' in key:
                    raise CatalogLoadError(f"Recipe key '{key}' must be lower case with underscores")

        if 'questions' in data:
            questions = data['questions']
            if not isinstance(questions, list) or not questions:
                raise CatalogLoadError("'questions' must be a non-empty array")
            for i, question_data in enumerate(questions):
                if not isinstance(question_data, dict):
                    raise CatalogLoadError(f"Question {i} must be an object")
                for key in ('question', 'answer'):
                    if not isinstance(question_data.get(key), str) or not question_data[key].strip():
                        raise CatalogLoadError(f"Question {i} '{key}' field must be a non-empty string")

    def _parse_questions(self, questions: List[dict]) -> Tuple[QuizQuestion, ...]:
        return tuple(
            QuizQuestion(prompt=question_data['question'], answer=question_data['answer'])
            for question_data in questions
        )
