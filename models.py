"""
Response and request shapes for the Auth0 Management API.

These are typing aids only. Bodies are passed through as the service
returns them; nothing here validates a payload.
"""

from typing import Any, Literal, TypedDict


class TokenResponse(TypedDict, total=False):
    access_token: str
    token_type: str
    expires_in: int
    scope: str


class ConnectionTestResult(TypedDict, total=False):
    success: bool
    error: str


# -----------------------------------------------
# Applications (clients)
# -----------------------------------------------

AppType = Literal['spa', 'native', 'regular_web', 'non_interactive']


class JwtConfiguration(TypedDict, total=False):
    alg: str
    lifetime_in_seconds: int
    secret_encoded: bool


class Application(TypedDict, total=False):
    client_id: str
    name: str
    app_type: AppType
    description: str
    logo_uri: str
    callbacks: list[str]
    allowed_logout_urls: list[str]
    web_origins: list[str]
    allowed_origins: list[str]
    grant_types: list[str]
    client_secret: str
    jwt_configuration: JwtConfiguration
    token_endpoint_auth_method: str
    is_first_party: bool
    oidc_conformant: bool
    created_at: str
    updated_at: str


class CreateApplicationRequest(TypedDict, total=False):
    name: str
    app_type: AppType
    description: str
    logo_uri: str
    callbacks: list[str]
    allowed_logout_urls: list[str]
    web_origins: list[str]
    allowed_origins: list[str]
    grant_types: list[str]
    token_endpoint_auth_method: str
    is_first_party: bool
    oidc_conformant: bool


class UpdateApplicationRequest(TypedDict, total=False):
    name: str
    description: str
    logo_uri: str
    callbacks: list[str]
    allowed_logout_urls: list[str]
    web_origins: list[str]
    allowed_origins: list[str]
    grant_types: list[str]
    token_endpoint_auth_method: str


# -----------------------------------------------
# Connections
# -----------------------------------------------

class Connection(TypedDict, total=False):
    id: str
    name: str
    strategy: str
    display_name: str
    enabled_clients: list[str]
    is_domain_connection: bool
    realms: list[str]
    options: dict[str, Any]
    created_at: str
    updated_at: str


class CreateConnectionRequest(TypedDict, total=False):
    name: str
    strategy: str
    display_name: str
    enabled_clients: list[str]
    is_domain_connection: bool
    realms: list[str]
    options: dict[str, Any]


class UpdateConnectionRequest(TypedDict, total=False):
    display_name: str
    enabled_clients: list[str]
    is_domain_connection: bool
    realms: list[str]
    options: dict[str, Any]


# -----------------------------------------------
# Actions and triggers
# -----------------------------------------------

class SupportedTrigger(TypedDict):
    id: str
    version: str


class ActionDependency(TypedDict):
    name: str
    version: str


class ActionSecret(TypedDict, total=False):
    name: str
    value: str
    updated_at: str


class DeployedVersion(TypedDict, total=False):
    id: str
    deployed: bool
    number: int
    built_at: str


class Action(TypedDict, total=False):
    id: str
    name: str
    supported_triggers: list[SupportedTrigger]
    code: str
    dependencies: list[ActionDependency]
    runtime: str
    secrets: list[ActionSecret]
    deployed_version: DeployedVersion
    status: Literal['built', 'building', 'packaged', 'pending', 'failed']
    all_changes_deployed: bool
    created_at: str
    updated_at: str


class CreateActionRequest(TypedDict, total=False):
    name: str
    supported_triggers: list[SupportedTrigger]
    code: str
    dependencies: list[ActionDependency]
    runtime: str
    secrets: list[ActionSecret]


class UpdateActionRequest(TypedDict, total=False):
    name: str
    code: str
    dependencies: list[ActionDependency]
    runtime: str
    secrets: list[ActionSecret]


class ActionRef(TypedDict):
    id: str
    name: str


class TriggerBinding(TypedDict, total=False):
    id: str
    trigger_id: str
    action: ActionRef
    display_name: str
    created_at: str
    updated_at: str


class BindingRef(TypedDict):
    type: Literal['action_id', 'action_name', 'binding_id']
    value: str


class TriggerBindingUpdate(TypedDict):
    ref: BindingRef
    display_name: str


class ActionDeployment(TypedDict, total=False):
    id: str
    action_id: str
    code: str
    deployed: bool
    number: int
    built_at: str
    status: str


# -----------------------------------------------
# Resource servers (APIs)
# -----------------------------------------------

class Scope(TypedDict, total=False):
    value: str
    description: str


class ResourceServer(TypedDict, total=False):
    id: str
    name: str
    identifier: str
    is_system: bool
    scopes: list[Scope]
    signing_alg: str
    signing_secret: str
    allow_offline_access: bool
    skip_consent_for_verifiable_first_party_clients: bool
    token_lifetime: int
    token_lifetime_for_web: int
    enforce_policies: bool
    token_dialect: str
    created_at: str
    updated_at: str


class CreateResourceServerRequest(TypedDict, total=False):
    name: str
    identifier: str
    scopes: list[Scope]
    signing_alg: str
    signing_secret: str
    allow_offline_access: bool
    skip_consent_for_verifiable_first_party_clients: bool
    token_lifetime: int
    token_lifetime_for_web: int
    enforce_policies: bool
    token_dialect: str


class UpdateResourceServerRequest(TypedDict, total=False):
    name: str
    scopes: list[Scope]
    signing_alg: str
    signing_secret: str
    allow_offline_access: bool
    skip_consent_for_verifiable_first_party_clients: bool
    token_lifetime: int
    token_lifetime_for_web: int
    enforce_policies: bool
    token_dialect: str


# -----------------------------------------------
# Roles and permissions
# -----------------------------------------------

class Role(TypedDict, total=False):
    id: str
    name: str
    description: str
    created_at: str
    updated_at: str


class CreateRoleRequest(TypedDict, total=False):
    name: str
    description: str


class UpdateRoleRequest(TypedDict, total=False):
    name: str
    description: str


class Permission(TypedDict, total=False):
    permission_name: str
    description: str
    resource_server_identifier: str
    resource_server_name: str


class PermissionAssignment(TypedDict):
    resource_server_identifier: str
    permission_name: str
