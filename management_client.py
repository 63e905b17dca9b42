"""
Auth0 Management API HTTP client. All tenant API communication lives here.

Provides ManagementClient (async context manager) which authenticates with
an M2M token, throttles itself below the tenant rate limit, retries on 429
and exposes CRUD operations for applications, connections, actions,
resource servers and roles via aiohttp.
"""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from config import AppConfig
from errors import ApiError
from models import (
    Action,
    ActionDeployment,
    Application,
    Connection,
    ConnectionTestResult,
    CreateActionRequest,
    CreateApplicationRequest,
    CreateConnectionRequest,
    CreateResourceServerRequest,
    CreateRoleRequest,
    Permission,
    PermissionAssignment,
    ResourceServer,
    Role,
    TriggerBinding,
    TriggerBindingUpdate,
    UpdateActionRequest,
    UpdateApplicationRequest,
    UpdateConnectionRequest,
    UpdateResourceServerRequest,
    UpdateRoleRequest,
)
from rate_limiter import DEFAULT_RATE_LIMIT, SlidingWindowRateLimiter
from token_cache import TokenCache

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


def _paging(page: int | None, per_page: int | None) -> dict[str, str]:
    params = {}
    if page is not None:
        params['page'] = str(page)
    if per_page is not None:
        params['per_page'] = str(per_page)
    return params


def _retry_after_seconds(headers) -> int:
    """Parse a retry-after header in whole seconds, defaulting to 1."""
    try:
        return int(headers.get('retry-after', 1))
    except (TypeError, ValueError):
        return 1


class ManagementClient:
    """Handles all HTTP communication with the Auth0 Management API.

    Use as an async context manager to ensure the session is properly closed::

        async with ManagementClient("tenant.auth0.com", client_id, secret) as mgmt:
            apps = await mgmt.list_applications()

    Every call goes through the same pipeline: wait on the rate limiter,
    fetch a token from the token cache, send, and retry a bounded number
    of times when the tenant answers 429.
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: str | None = None,
        rate_limit_per_second: int = DEFAULT_RATE_LIMIT,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        token_cache: TokenCache | None = None,
    ):
        self._domain = domain
        self._base_url = f"https://{domain}"
        self._audience = audience or f"https://{domain}/api/v2/"
        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter(rate_limit_per_second)
        self._token_cache = token_cache or TokenCache(domain, client_id, client_secret, self._audience)
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: AppConfig, client_id: str, client_secret: str) -> 'ManagementClient':
        """Build a client from loaded configuration and credentials."""
        return cls(
            domain=config.tenant.domain,
            client_id=client_id,
            client_secret=client_secret,
            audience=config.tenant.resolved_audience,
            rate_limit_per_second=config.rate_limiting.requests_per_second,
            max_retries=config.rate_limiting.max_retries,
            retry_delay=config.rate_limiting.retry_delay,
        )

    async def __aenter__(self) -> 'ManagementClient':
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def audience(self) -> str:
        return self._audience

    # -----------------------------------------------
    # Token management
    # -----------------------------------------------

    async def get_access_token(self) -> str:
        """Return a valid M2M access token (cached, refreshed when stale).

        Raises:
            AuthenticationError: The token exchange was rejected
        """
        return await self._token_cache.get_token(self._require_session())

    async def test_connection(self) -> ConnectionTestResult:
        """Check credentials and permissions by fetching a token and listing applications.

        Never raises; failures are reported in the result.

        Returns:
            Dict with 'success' and, on failure, 'error' keys.
        """
        try:
            await self.get_access_token()
            await self.list_applications()
            return {'success': True}
        except Exception as e:
            logger.warning(f"Connection test failed: {e}")
            return {'success': False, 'error': str(e) or type(e).__name__}

    # -----------------------------------------------
    # Request pipeline
    # -----------------------------------------------

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("ManagementClient must be used as an async context manager")
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Make an authenticated API request with rate limiting and 429 retries.

        Args:
            method: HTTP verb
            path: API path beginning with /api/v2
            body: Optional JSON-serializable request body
            params: Optional query parameters

        Returns:
            Parsed JSON body, or None for 204 No Content.

        Raises:
            AuthenticationError: Token acquisition failed
            ApiError: Non-2xx response, including 429 once retries are exhausted
        """
        session = self._require_session()
        url = self._base_url + path
        retries_remaining = self._max_retries

        while True:
            await self._rate_limiter.acquire()
            token = await self._token_cache.get_token(session)
            headers = {
                'Authorization': f'Bearer {token}',
                'Content-Type': 'application/json',
            }
            kwargs: dict[str, Any] = {'headers': headers}
            if body is not None:
                kwargs['json'] = body
            if params:
                kwargs['params'] = params

            logger.debug(f"{method} {path} {params or ''}")
            async with session.request(method, url, **kwargs) as response:
                status = response.status

                if status == 429 and retries_remaining > 0:
                    retry_after = _retry_after_seconds(response.headers)
                    delay = retry_after if retry_after > 0 else self._retry_delay
                    logger.warning(f"Rate limited on {method} {path}, retrying in {delay}s "
                                   f"({retries_remaining} retries left)")
                else:
                    if not 200 <= status < 300:
                        error_body = await response.text()
                        logger.error(f"{method} {path} failed: HTTP {status}")
                        raise ApiError(status, error_body, method, path)
                    if status == 204:
                        return None
                    return await response.json(content_type=None)

            await asyncio.sleep(delay)
            retries_remaining -= 1

    # -----------------------------------------------
    # Applications (clients)
    # -----------------------------------------------

    async def list_applications(self, page: int | None = None, per_page: int | None = None) -> list[Application]:
        """List all applications (clients)."""
        return await self._request('GET', '/api/v2/clients', params=_paging(page, per_page))

    async def get_application(self, client_id: str) -> Application:
        return await self._request('GET', f'/api/v2/clients/{quote(client_id, safe="")}')

    async def create_application(self, app: CreateApplicationRequest) -> Application:
        return await self._request('POST', '/api/v2/clients', app)

    async def update_application(self, client_id: str, update: UpdateApplicationRequest) -> Application:
        return await self._request('PATCH', f'/api/v2/clients/{quote(client_id, safe="")}', update)

    async def delete_application(self, client_id: str) -> None:
        await self._request('DELETE', f'/api/v2/clients/{quote(client_id, safe="")}')

    async def find_application_by_name(self, name: str) -> Application | None:
        """Return the first application whose name matches exactly, or None."""
        apps = await self.list_applications()
        return next((app for app in apps if app.get('name') == name), None)

    # -----------------------------------------------
    # Connections
    # -----------------------------------------------

    async def list_connections(
        self,
        strategy: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[Connection]:
        """List connections, optionally filtered by strategy (e.g. 'auth0', 'google-oauth2')."""
        params = {}
        if strategy:
            params['strategy'] = strategy
        params.update(_paging(page, per_page))
        return await self._request('GET', '/api/v2/connections', params=params)

    async def get_connection(self, connection_id: str) -> Connection:
        return await self._request('GET', f'/api/v2/connections/{quote(connection_id, safe="")}')

    async def create_connection(self, conn: CreateConnectionRequest) -> Connection:
        return await self._request('POST', '/api/v2/connections', conn)

    async def update_connection(self, connection_id: str, update: UpdateConnectionRequest) -> Connection:
        return await self._request('PATCH', f'/api/v2/connections/{quote(connection_id, safe="")}', update)

    async def delete_connection(self, connection_id: str) -> None:
        await self._request('DELETE', f'/api/v2/connections/{quote(connection_id, safe="")}')

    async def find_connection_by_name(self, name: str) -> Connection | None:
        connections = await self.list_connections()
        return next((conn for conn in connections if conn.get('name') == name), None)

    # -----------------------------------------------
    # Actions
    # -----------------------------------------------

    async def list_actions(self, trigger_id: str | None = None, deployed: bool | None = None) -> list[Action]:
        """List actions, optionally filtered by trigger and deployment state."""
        params = {}
        if trigger_id:
            params['triggerId'] = trigger_id
        if deployed is not None:
            params['deployed'] = 'true' if deployed else 'false'
        result = await self._request('GET', '/api/v2/actions/actions', params=params)
        return result['actions']

    async def get_action(self, action_id: str) -> Action:
        return await self._request('GET', f'/api/v2/actions/actions/{quote(action_id, safe="")}')

    async def create_action(self, action: CreateActionRequest) -> Action:
        return await self._request('POST', '/api/v2/actions/actions', action)

    async def update_action(self, action_id: str, update: UpdateActionRequest) -> Action:
        return await self._request('PATCH', f'/api/v2/actions/actions/{quote(action_id, safe="")}', update)

    async def delete_action(self, action_id: str) -> None:
        await self._request('DELETE', f'/api/v2/actions/actions/{quote(action_id, safe="")}')

    async def deploy_action(self, action_id: str) -> ActionDeployment:
        """Deploy the current draft of an action."""
        return await self._request('POST', f'/api/v2/actions/actions/{quote(action_id, safe="")}/deploy')

    async def find_action_by_name(self, name: str) -> Action | None:
        actions = await self.list_actions()
        return next((action for action in actions if action.get('name') == name), None)

    # -----------------------------------------------
    # Triggers
    # -----------------------------------------------

    async def get_trigger_bindings(self, trigger_id: str) -> list[TriggerBinding]:
        result = await self._request('GET', f'/api/v2/actions/triggers/{quote(trigger_id, safe="")}/bindings')
        return result['bindings']

    async def update_trigger_bindings(
        self,
        trigger_id: str,
        bindings: list[TriggerBindingUpdate],
    ) -> list[TriggerBinding]:
        """Replace the ordered list of actions bound to a trigger."""
        result = await self._request(
            'PATCH',
            f'/api/v2/actions/triggers/{quote(trigger_id, safe="")}/bindings',
            {'bindings': bindings},
        )
        return result['bindings']

    # -----------------------------------------------
    # Resource servers (APIs)
    # -----------------------------------------------

    async def list_resource_servers(
        self,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[ResourceServer]:
        return await self._request('GET', '/api/v2/resource-servers', params=_paging(page, per_page))

    async def get_resource_server(self, resource_server_id: str) -> ResourceServer:
        return await self._request('GET', f'/api/v2/resource-servers/{quote(resource_server_id, safe="")}')

    async def create_resource_server(self, api: CreateResourceServerRequest) -> ResourceServer:
        return await self._request('POST', '/api/v2/resource-servers', api)

    async def update_resource_server(
        self,
        resource_server_id: str,
        update: UpdateResourceServerRequest,
    ) -> ResourceServer:
        return await self._request(
            'PATCH', f'/api/v2/resource-servers/{quote(resource_server_id, safe="")}', update,
        )

    async def delete_resource_server(self, resource_server_id: str) -> None:
        await self._request('DELETE', f'/api/v2/resource-servers/{quote(resource_server_id, safe="")}')

    async def find_resource_server_by_identifier(self, identifier: str) -> ResourceServer | None:
        """Return the resource server whose audience identifier matches exactly, or None."""
        servers = await self.list_resource_servers()
        return next((server for server in servers if server.get('identifier') == identifier), None)

    # -----------------------------------------------
    # Roles and permissions
    # -----------------------------------------------

    async def list_roles(self, page: int | None = None, per_page: int | None = None) -> list[Role]:
        return await self._request('GET', '/api/v2/roles', params=_paging(page, per_page))

    async def get_role(self, role_id: str) -> Role:
        return await self._request('GET', f'/api/v2/roles/{quote(role_id, safe="")}')

    async def create_role(self, role: CreateRoleRequest) -> Role:
        return await self._request('POST', '/api/v2/roles', role)

    async def update_role(self, role_id: str, update: UpdateRoleRequest) -> Role:
        return await self._request('PATCH', f'/api/v2/roles/{quote(role_id, safe="")}', update)

    async def delete_role(self, role_id: str) -> None:
        await self._request('DELETE', f'/api/v2/roles/{quote(role_id, safe="")}')

    async def find_role_by_name(self, name: str) -> Role | None:
        roles = await self.list_roles()
        return next((role for role in roles if role.get('name') == name), None)

    async def get_role_permissions(self, role_id: str) -> list[Permission]:
        return await self._request('GET', f'/api/v2/roles/{quote(role_id, safe="")}/permissions')

    async def add_role_permissions(self, role_id: str, permissions: list[PermissionAssignment]) -> None:
        await self._request('POST', f'/api/v2/roles/{quote(role_id, safe="")}/permissions',
                            {'permissions': permissions})

    async def remove_role_permissions(self, role_id: str, permissions: list[PermissionAssignment]) -> None:
        await self._request('DELETE', f'/api/v2/roles/{quote(role_id, safe="")}/permissions',
                            {'permissions': permissions})
