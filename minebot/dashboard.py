"""
Web dashboards for the MineBot Discord bot.

The update dashboard lives at the root of the application; the
password-protected admin dashboard is a sub-application mounted at /admin.
Both run on the bot's event loop.
"""
import base64
import json
import logging
import weakref
from typing import Any, Dict, Optional

from aiohttp import WSCloseCode, web
from aiohttp_session import get_session, new_session, setup as setup_session
from aiohttp_session.cookie_storage import EncryptedCookieStorage
from cryptography import fernet

from .config_manager import BotConfig
from .exceptions import ChannelNotFoundError
from .templates import ADMIN_DASHBOARD_PAGE, LOGIN_ERROR, LOGIN_PAGE, UPDATE_DASHBOARD_PAGE
from .update_manager import UpdateManager

logger = logging.getLogger(__name__)

ADMIN_PREFIX = '/admin'

UPDATE_MANAGER_KEY = web.AppKey('update_manager', UpdateManager)
CONFIG_KEY = web.AppKey('config', BotConfig)
WEBSOCKETS_KEY = web.AppKey('websockets', weakref.WeakSet)

SESSION_FLAG = 'authenticated'


async def _read_payload(request: web.Request) -> Dict[str, Any]:
    """Read a JSON or form body; an empty or unparsable body reads as {}."""
    if request.content_type in ('application/x-www-form-urlencoded', 'multipart/form-data'):
        return dict(await request.post())
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


# ---- update dashboard ----

async def index(request: web.Request) -> web.Response:
    bot = request.app[UPDATE_MANAGER_KEY].bot
    page = UPDATE_DASHBOARD_PAGE.substitute(servers=len(bot.guilds), users=len(bot.users))
    return web.Response(text=page, content_type='text/html')


async def post_update(request: web.Request) -> web.Response:
    manager = request.app[UPDATE_MANAGER_KEY]
    payload = await _read_payload(request)
    try:
        await manager.post_update(payload.get('message'))
    except ChannelNotFoundError:
        return web.json_response({'error': 'Update channel not found'}, status=404)
    except Exception as e:
        logger.error(f"Failed to post update: {e}")
        return web.json_response({'error': str(e)}, status=500)
    return web.json_response({'success': True})


async def _toggle_lock(request: web.Request, locked: bool) -> web.Response:
    manager = request.app[UPDATE_MANAGER_KEY]
    try:
        if locked:
            await manager.lock_channel()
        else:
            await manager.unlock_channel()
    except ChannelNotFoundError:
        return web.json_response({'error': 'Channel not found'}, status=404)
    except Exception as e:
        logger.error(f"Failed to {'lock' if locked else 'unlock'} channel: {e}")
        return web.json_response({'error': str(e)}, status=500)
    return web.json_response({'success': True})


async def lock_channel(request: web.Request) -> web.Response:
    return await _toggle_lock(request, True)


async def unlock_channel(request: web.Request) -> web.Response:
    return await _toggle_lock(request, False)


# ---- admin dashboard ----

def _login_page(error: str = '') -> str:
    return LOGIN_PAGE.substitute(login_url=f'{ADMIN_PREFIX}/login', error=error)


def _admin_page(manager: UpdateManager) -> str:
    return ADMIN_DASHBOARD_PAGE.substitute(
        active='yes' if manager.state.active else 'no',
        auto_update='enabled' if manager.state.auto_update_enabled else 'disabled',
        api_url=f'{ADMIN_PREFIX}/api/',
        ws_url=f'{ADMIN_PREFIX}/ws',
    )


async def is_authenticated(request: web.Request) -> bool:
    session = await get_session(request)
    return session.get(SESSION_FLAG, False) is True


async def admin_index(request: web.Request) -> web.Response:
    if not await is_authenticated(request):
        return web.Response(text=_login_page(), content_type='text/html')
    return web.Response(text=_admin_page(request.app[UPDATE_MANAGER_KEY]), content_type='text/html')


async def login(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    payload = await _read_payload(request)
    password = payload.get('password')

    if config.admin_password is None or password != config.admin_password:
        logger.warning(f"Failed dashboard login from {request.remote}")
        return web.Response(text=_login_page(LOGIN_ERROR), content_type='text/html', status=401)

    session = await new_session(request)
    session[SESSION_FLAG] = True
    logger.info(f"Dashboard login from {request.remote}")
    return web.Response(text=_admin_page(request.app[UPDATE_MANAGER_KEY]), content_type='text/html')


async def logout(request: web.Request) -> web.Response:
    session = await get_session(request)
    session.invalidate()
    return web.Response(text=_login_page(), content_type='text/html')


@web.middleware
async def require_login(request: web.Request, handler) -> web.StreamResponse:
    """Admin API calls and the log socket need the session flag set by a successful login."""
    guarded = (f'{ADMIN_PREFIX}/api/', f'{ADMIN_PREFIX}/ws')
    if request.path.startswith(guarded) and not await is_authenticated(request):
        return web.json_response({'status': 'unauthorized'}, status=401)
    return await handler(request)


async def api_start_update(request: web.Request) -> web.Response:
    manager = request.app[UPDATE_MANAGER_KEY]
    try:
        started = await manager.start_update()
    except ChannelNotFoundError as e:
        return web.json_response({'status': 'error', 'error': str(e)}, status=404)
    except Exception as e:
        logger.error(f"Start update failed: {e}")
        return web.json_response({'status': 'error', 'error': str(e)}, status=500)
    return web.json_response({'status': 'Update started' if started else 'Update already active'})


async def api_finish_update(request: web.Request) -> web.Response:
    manager = request.app[UPDATE_MANAGER_KEY]
    try:
        finished = await manager.finish_update()
    except ChannelNotFoundError as e:
        return web.json_response({'status': 'error', 'error': str(e)}, status=404)
    except Exception as e:
        logger.error(f"Finish update failed: {e}")
        return web.json_response({'status': 'error', 'error': str(e)}, status=500)
    return web.json_response({'status': 'Update finished' if finished else 'No update active'})


async def api_toggle_auto(request: web.Request) -> web.Response:
    status = request.app[UPDATE_MANAGER_KEY].toggle_auto_update()
    return web.json_response({'status': status})


async def update_log_socket(request: web.Request) -> web.WebSocketResponse:
    """Stream update progress lines to the admin dashboard. Client messages are ignored."""
    manager = request.app[UPDATE_MANAGER_KEY]
    ws = web.WebSocketResponse(heartbeat=30)
    # Registered before the handshake completes so no line published after it is missed
    manager.add_log_listener(ws.send_str)
    try:
        await ws.prepare(request)
        request.app[WEBSOCKETS_KEY].add(ws)
        async for _ in ws:
            pass
    finally:
        manager.remove_log_listener(ws.send_str)
        request.app[WEBSOCKETS_KEY].discard(ws)
    return ws


async def close_log_sockets(app: web.Application) -> None:
    for ws in set(app[WEBSOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b'Server shutdown')


def create_admin_app(manager: UpdateManager, config: BotConfig, secret_key: Optional[bytes] = None) -> web.Application:
    """
    Build the login-protected admin dashboard.

    Args:
        manager: Update manager the dashboard drives
        config: Bot configuration holding the admin password
        secret_key: 32-byte cookie encryption key; a fresh one is generated
            when omitted, so sessions do not survive a restart
    """
    if secret_key is None:
        secret_key = base64.urlsafe_b64decode(fernet.Fernet.generate_key())

    app = web.Application()
    setup_session(app, EncryptedCookieStorage(secret_key, cookie_name='MINEBOT_SESSION'))
    app.middlewares.append(require_login)
    app[UPDATE_MANAGER_KEY] = manager
    app[CONFIG_KEY] = config
    app[WEBSOCKETS_KEY] = weakref.WeakSet()
    app.on_shutdown.append(close_log_sockets)
    app.router.add_get('/', admin_index)
    app.router.add_post('/login', login)
    app.router.add_post('/logout', logout)
    app.router.add_post('/api/start-update', api_start_update)
    app.router.add_post('/api/finish-update', api_finish_update)
    app.router.add_post('/api/toggle-auto', api_toggle_auto)
    app.router.add_get('/ws', update_log_socket)
    return app


def create_app(manager: UpdateManager, config: BotConfig, secret_key: Optional[bytes] = None) -> web.Application:
    """Build the dashboard application with the admin dashboard mounted at /admin."""
    app = web.Application()
    app[UPDATE_MANAGER_KEY] = manager
    app[CONFIG_KEY] = config
    app.router.add_get('/', index)
    app.router.add_post('/api/update', post_update)
    app.router.add_post('/api/lock-channel', lock_channel)
    app.router.add_post('/api/unlock-channel', unlock_channel)
    app.add_subapp(ADMIN_PREFIX, create_admin_app(manager, config, secret_key))
    return app


class DashboardServer:
    """Serves the dashboard application on the running event loop."""

    def __init__(self, app: web.Application, port: int, host: str = '0.0.0.0'):
        self.app = app
        self.port = port
        self.host = host
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"🌐 Dashboard running on port {self.port}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
