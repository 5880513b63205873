"""
Prefix command resolution and handlers for the MineBot Discord bot.

Handlers are coroutines taking a CommandContext and the command arguments.
They read the content catalog or the live values on the context and emit
their reply through ``ctx.reply``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .catalog import ContentCatalog
from .models import Command, CommandName, QuizQuestion, ReplyPayload

logger = logging.getLogger(__name__)

UNKNOWN_COMMAND_REPLY = ReplyPayload(body='❌ Unknown command! Use `!help` to see all commands.')
ERROR_REPLY = ReplyPayload(body='❌ An error occurred while executing the command!')
RECIPE_NOT_FOUND_REPLY = ReplyPayload(body='❌ Recipe not found! Use `!recipes` to see available recipes.')

COLOR_HELP = 0x00FF00
COLOR_BLOCK = 0x8B4513
COLOR_ITEM = 0xFFD700
COLOR_MOB = 0xFF4500
COLOR_BIOME = 0x32CD32
COLOR_RECIPE = 0xFF6347
COLOR_FACT = 0x9932CC
COLOR_QUIZ = 0x4169E1
COLOR_PING = 0x00FFFF
COLOR_INFO = 0x7289DA


@dataclass
class CommandContext:
    """Everything a handler may use while answering one message."""
    catalog: ContentCatalog
    author_id: int
    channel_id: int
    reply: Callable[[ReplyPayload], Awaitable[Any]]
    start_quiz: Callable[[QuizQuestion], Any]
    prefix: str = '!'
    latency_ms: int = 0
    api_latency_ms: int = 0
    guild_count: int = 0
    user_count: int = 0
    uptime_ms: int = 0


Handler = Callable[[CommandContext, Tuple[str, ...]], Awaitable[None]]


def is_automated(author: Any) -> bool:
    """True for bot and system accounts, whose messages are never treated as commands."""
    return bool(getattr(author, 'bot', False) or getattr(author, 'system', False))


def resolve_command(content: str, prefix: str) -> Optional[Command]:
    """
    Parse a message body into a Command.

    Args:
        content: Raw message body
        prefix: Configured command prefix

    Returns:
        The Command, or None if the body does not start with the prefix
    """
    if not content or not prefix or not content.startswith(prefix):
        return None

    tokens = content[len(prefix):].split()
    if not tokens:
        return Command(name='', args=())
    return Command(name=tokens[0].lower(), args=tuple(tokens[1:]))


def format_uptime(uptime_ms: int) -> str:
    """
    Render an elapsed duration using its largest units.

    >>> format_uptime(90000)
    '1m 30s'
    >>> format_uptime(3661000)
    '1h 1m'
    """
    seconds = int(uptime_ms) // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


async def handle_help(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    p = ctx.prefix
    fields = (
        ('🧱 Block Commands', f'`{p}block` - Random block info\n`{p}blocks` - List all blocks', True),
        ('⚔️ Item Commands', f'`{p}item` - Random item info\n`{p}items` - List all items', True),
        ('👾 Mob Commands', f'`{p}mob` - Random mob info\n`{p}mobs` - List all mobs', True),
        ('🌍 World Commands', f'`{p}biome` - Random biome info\n`{p}biomes` - List all biomes', True),
        ('🔨 Crafting', f'`{p}recipe <item>` - Get crafting recipe\n`{p}recipes` - List all recipes', True),
        ('🎲 Fun Commands', f'`{p}random` - Random minecraft fact\n`{p}quiz` - Minecraft quiz', True),
    )
    await ctx.reply(ReplyPayload(
        title='🎮 Minecraft Bot Commands',
        body='Here are all available commands:',
        fields=fields,
        color=COLOR_HELP,
        footer='Minecraft Expert Bot',
    ))


async def handle_block(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    block = ctx.catalog.random_block()
    await ctx.reply(ReplyPayload(
        title=f'🧱 {block}',
        body=f'This is a {block.lower()} block in Minecraft!',
        color=COLOR_BLOCK,
        footer='Minecraft Blocks',
    ))


async def handle_blocks(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='🧱 All Minecraft Blocks',
        body=', '.join(ctx.catalog.blocks),
        color=COLOR_BLOCK,
    ))


async def handle_item(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    item = ctx.catalog.random_item()
    await ctx.reply(ReplyPayload(
        title=f'⚔️ {item}',
        body=f'This is a {item.lower()} in Minecraft!',
        color=COLOR_ITEM,
        footer='Minecraft Items',
    ))


async def handle_items(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='⚔️ All Minecraft Items',
        body=', '.join(ctx.catalog.items),
        color=COLOR_ITEM,
    ))


async def handle_mob(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    mob = ctx.catalog.random_mob()
    await ctx.reply(ReplyPayload(
        title=f'👾 {mob}',
        body=f'This is a {mob.lower()} mob in Minecraft!',
        color=COLOR_MOB,
        footer='Minecraft Mobs',
    ))


async def handle_mobs(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='👾 All Minecraft Mobs',
        body=', '.join(ctx.catalog.mobs),
        color=COLOR_MOB,
    ))


async def handle_biome(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    biome = ctx.catalog.random_biome()
    await ctx.reply(ReplyPayload(
        title=f'🌍 {biome}',
        body=f'This is the {biome.lower()} biome in Minecraft!',
        color=COLOR_BIOME,
        footer='Minecraft Biomes',
    ))


async def handle_biomes(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='🌍 All Minecraft Biomes',
        body=', '.join(ctx.catalog.biomes),
        color=COLOR_BIOME,
    ))


async def handle_recipe(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    # "crafting table", "Crafting_Table" and "crafting_table" all land on the same key
    item_name = '_'.join(args).lower()
    recipe = ctx.catalog.get_recipe(item_name)
    if recipe is None:
        await ctx.reply(RECIPE_NOT_FOUND_REPLY)
        return

    await ctx.reply(ReplyPayload(
        title=f"🔨 {item_name.replace('_', ' ').upper()} Recipe",
        body=f'**Recipe:** {recipe}',
        color=COLOR_RECIPE,
        footer='Minecraft Crafting',
    ))


async def handle_recipes(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    recipe_list = '\n'.join(
        f"**{item.replace('_', ' ')}:** {recipe}"
        for item, recipe in ctx.catalog.recipes.items()
    )
    await ctx.reply(ReplyPayload(
        title='🔨 All Minecraft Recipes',
        body=recipe_list,
        color=COLOR_RECIPE,
    ))


async def handle_random(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='🎲 Random Minecraft Fact',
        body=ctx.catalog.random_fact(),
        color=COLOR_FACT,
        footer='Did you know?',
    ))


async def handle_quiz(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    question = ctx.catalog.random_question()
    await ctx.reply(ReplyPayload(
        title='🧠 Minecraft Quiz',
        body=f'**Question:** {question.prompt}',
        color=COLOR_QUIZ,
        footer='Answer in chat!',
    ))
    # The answer window opens only once the question is visible
    ctx.start_quiz(question)


async def handle_ping(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='🏓 Pong!',
        body=f'Bot Latency: {ctx.latency_ms}ms\nAPI Latency: {ctx.api_latency_ms}ms',
        color=COLOR_PING,
    ))


async def handle_info(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(ReplyPayload(
        title='🤖 Bot Information',
        body='Advanced Minecraft Discord Bot',
        fields=(
            ('Servers', str(ctx.guild_count), True),
            ('Users', str(ctx.user_count), True),
            ('Uptime', format_uptime(ctx.uptime_ms), True),
        ),
        color=COLOR_INFO,
        footer='Made with ❤️',
    ))


async def handle_unknown(ctx: CommandContext, args: Tuple[str, ...]) -> None:
    await ctx.reply(UNKNOWN_COMMAND_REPLY)


COMMAND_HANDLERS: Dict[CommandName, Handler] = {
    CommandName.HELP: handle_help,
    CommandName.BLOCK: handle_block,
    CommandName.BLOCKS: handle_blocks,
    CommandName.ITEM: handle_item,
    CommandName.ITEMS: handle_items,
    CommandName.MOB: handle_mob,
    CommandName.MOBS: handle_mobs,
    CommandName.BIOME: handle_biome,
    CommandName.BIOMES: handle_biomes,
    CommandName.RECIPE: handle_recipe,
    CommandName.RECIPES: handle_recipes,
    CommandName.RANDOM: handle_random,
    CommandName.QUIZ: handle_quiz,
    CommandName.PING: handle_ping,
    CommandName.INFO: handle_info,
}


def get_handler(name: str) -> Handler:
    """Look up the handler for a command name, falling back to the unknown-command reply."""
    command_name = CommandName.lookup(name)
    if command_name is None:
        return handle_unknown
    return COMMAND_HANDLERS[command_name]


async def dispatch(ctx: CommandContext, command: Command) -> None:
    """
    Run the handler for a command.

    Any exception raised by the handler, including failed sends, is logged and
    answered with a single generic error reply. Nothing propagates to the caller.
    """
    handler = get_handler(command.name)
    try:
        await handler(ctx, command.args)
    except Exception:
        logger.exception(
            f"Command error in {command.name!r} from user {ctx.author_id} in channel {ctx.channel_id}"
        )
        try:
            await ctx.reply(ERROR_REPLY)
        except Exception as e:
            logger.error(f"Failed to send error reply for {command.name!r}: {e}")
