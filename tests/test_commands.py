"""
Unit tests for command resolution, the handler table and the dispatch error boundary.
"""
import unittest
from types import SimpleNamespace

from minebot.catalog import ContentCatalog
from minebot.commands import (
    COMMAND_HANDLERS,
    ERROR_REPLY,
    RECIPE_NOT_FOUND_REPLY,
    UNKNOWN_COMMAND_REPLY,
    dispatch,
    format_uptime,
    get_handler,
    handle_unknown,
    is_automated,
    resolve_command,
)
from minebot.models import Command, CommandName
from tests.test_fixtures import RecordingContext


class TestResolveCommand(unittest.TestCase):
    """Test cases for prefix parsing."""

    def test_non_prefixed_message_is_ignored(self):
        self.assertIsNone(resolve_command("hello there", "!"))
        self.assertIsNone(resolve_command(" !help", "!"))
        self.assertIsNone(resolve_command("", "!"))

    def test_name_is_lower_cased_and_args_split_on_whitespace(self):
        command = resolve_command("!RECIPE  crafting   table", "!")
        self.assertEqual(command.name, "recipe")
        self.assertEqual(command.args, ("crafting", "table"))

    def test_bare_prefix_resolves_to_empty_name(self):
        command = resolve_command("!   ", "!")
        self.assertEqual(command.name, "")
        self.assertEqual(command.args, ())

    def test_multi_character_prefix(self):
        command = resolve_command("mc!ping", "mc!")
        self.assertEqual(command.name, "ping")

    def test_automated_authors(self):
        self.assertTrue(is_automated(SimpleNamespace(bot=True, system=False)))
        self.assertTrue(is_automated(SimpleNamespace(bot=False, system=True)))
        self.assertFalse(is_automated(SimpleNamespace(bot=False, system=False)))


class TestFormatUptime(unittest.TestCase):
    """Test cases for uptime formatting."""

    def test_minutes_and_seconds(self):
        self.assertEqual(format_uptime(90000), "1m 30s")

    def test_hours_and_minutes(self):
        self.assertEqual(format_uptime(3661000), "1h 1m")

    def test_days_hours_minutes(self):
        self.assertEqual(format_uptime(90000000), "1d 1h 0m")

    def test_seconds_only(self):
        self.assertEqual(format_uptime(0), "0s")
        self.assertEqual(format_uptime(59999), "59s")


class TestHandlerTable(unittest.TestCase):
    """Test cases for the command name to handler mapping."""

    def test_every_command_has_a_handler(self):
        self.assertEqual(set(COMMAND_HANDLERS), set(CommandName))

    def test_unknown_names_fall_back(self):
        self.assertIs(get_handler("dance"), handle_unknown)
        self.assertIs(get_handler(""), handle_unknown)
        self.assertIs(get_handler("quiz"), COMMAND_HANDLERS[CommandName.QUIZ])


class TestHandlers(unittest.IsolatedAsyncioTestCase):
    """Test cases for the individual command handlers."""

    def setUp(self):
        self.catalog = ContentCatalog.default()
        self.recorder = RecordingContext(
            self.catalog,
            latency_ms=42,
            api_latency_ms=87,
            guild_count=3,
            user_count=120,
            uptime_ms=3661000,
        )

    async def run_command(self, content: str):
        await dispatch(self.recorder.build(), resolve_command(content, "!"))
        return self.recorder.last_reply

    async def test_help_lists_command_groups(self):
        reply = await self.run_command("!help")
        self.assertEqual(reply.title, "🎮 Minecraft Bot Commands")
        self.assertEqual(len(reply.fields), 6)
        self.assertIn("`!quiz`", reply.fields[-1][1])

    async def test_random_selections_stay_in_catalog(self):
        cases = (
            ("!block", self.catalog.blocks, "🧱 "),
            ("!item", self.catalog.items, "⚔️ "),
            ("!mob", self.catalog.mobs, "👾 "),
            ("!biome", self.catalog.biomes, "🌍 "),
        )
        for content, values, emoji in cases:
            for _ in range(20):
                reply = await self.run_command(content)
                self.assertTrue(reply.title.startswith(emoji))
                self.assertIn(reply.title[len(emoji):], values)

    async def test_block_description(self):
        reply = await self.run_command("!block")
        name = reply.title[len("🧱 "):]
        self.assertEqual(reply.body, f"This is a {name.lower()} block in Minecraft!")
        self.assertEqual(reply.footer, "Minecraft Blocks")

    async def test_list_commands(self):
        reply = await self.run_command("!mobs")
        self.assertEqual(reply.body, ", ".join(self.catalog.mobs))
        reply = await self.run_command("!biomes")
        self.assertEqual(reply.title, "🌍 All Minecraft Biomes")

    async def test_recipe_found(self):
        reply = await self.run_command("!recipe crafting_table")
        self.assertEqual(reply.title, "🔨 CRAFTING TABLE Recipe")
        self.assertIn("4 Wood Planks in 2x2 pattern", reply.body)

    async def test_recipe_joins_arguments(self):
        reply = await self.run_command("!recipe Wooden Pickaxe")
        self.assertEqual(reply.body, "**Recipe:** 3 Wood Planks + 2 Sticks")

    async def test_recipe_not_found(self):
        reply = await self.run_command("!recipe nonexistent_item")
        self.assertEqual(reply, RECIPE_NOT_FOUND_REPLY)
        self.assertFalse(reply.is_embed)

    async def test_recipe_partial_name_is_not_found(self):
        reply = await self.run_command("!recipe crafting")
        self.assertEqual(reply, RECIPE_NOT_FOUND_REPLY)

    async def test_recipes_lists_every_recipe(self):
        reply = await self.run_command("!recipes")
        self.assertIn("**crafting table:** 4 Wood Planks in 2x2 pattern", reply.body)
        self.assertEqual(len(reply.body.splitlines()), len(self.catalog.recipes))

    async def test_every_underscore_in_recipe_key_becomes_a_space(self):
        default = ContentCatalog.default()
        self.recorder.catalog = ContentCatalog(
            blocks=default.blocks,
            items=default.items,
            mobs=default.mobs,
            biomes=default.biomes,
            recipes={'polished_blackstone_bricks': '4 Polished Blackstone'},
            facts=default.facts,
            questions=default.questions,
        )

        reply = await self.run_command("!recipe polished blackstone bricks")
        self.assertEqual(reply.title, "🔨 POLISHED BLACKSTONE BRICKS Recipe")

        reply = await self.run_command("!recipes")
        self.assertEqual(reply.body, "**polished blackstone bricks:** 4 Polished Blackstone")

    async def test_random_fact(self):
        reply = await self.run_command("!random")
        self.assertIn(reply.body, self.catalog.facts)

    async def test_quiz_asks_then_starts_session(self):
        reply = await self.run_command("!quiz")
        self.assertEqual(reply.title, "🧠 Minecraft Quiz")
        self.assertEqual(reply.footer, "Answer in chat!")
        self.assertEqual(len(self.recorder.quizzes), 1)
        question = self.recorder.quizzes[0]
        self.assertIn(question, self.catalog.questions)
        self.assertEqual(reply.body, f"**Question:** {question.prompt}")

    async def test_ping_reports_latency(self):
        reply = await self.run_command("!ping")
        self.assertEqual(reply.body, "Bot Latency: 42ms\nAPI Latency: 87ms")

    async def test_info_reports_live_values(self):
        reply = await self.run_command("!info")
        self.assertEqual(
            reply.fields,
            (("Servers", "3", True), ("Users", "120", True), ("Uptime", "1h 1m", True)),
        )

    async def test_unknown_command(self):
        reply = await self.run_command("!dance")
        self.assertEqual(reply, UNKNOWN_COMMAND_REPLY)


class TestDispatchErrorBoundary(unittest.IsolatedAsyncioTestCase):
    """Test cases for errors raised inside handlers."""

    async def test_handler_error_sends_generic_reply(self):
        recorder = RecordingContext()

        def broken_question():
            raise RuntimeError("catalog exploded")

        recorder.catalog.random_question = broken_question
        await dispatch(recorder.build(), Command(name="quiz"))

        self.assertEqual(recorder.replies, [ERROR_REPLY])
        self.assertEqual(recorder.quizzes, [])

    async def test_failed_reply_is_not_raised(self):
        recorder = RecordingContext()

        async def failing_reply(payload):
            raise ConnectionError("network down")

        ctx = recorder.build()
        ctx.reply = failing_reply

        # Both the handler reply and the error reply fail; nothing propagates
        await dispatch(ctx, Command(name="help"))

    async def test_quiz_not_started_when_question_send_fails(self):
        recorder = RecordingContext()
        sent = []

        async def failing_reply(payload):
            sent.append(payload)
            if payload is not ERROR_REPLY:
                raise ConnectionError("network down")

        ctx = recorder.build()
        ctx.reply = failing_reply
        await dispatch(ctx, Command(name="quiz"))

        self.assertEqual(recorder.quizzes, [])
        self.assertIs(sent[-1], ERROR_REPLY)


if __name__ == '__main__':
    unittest.main()
