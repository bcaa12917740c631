# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

"""Webhooks Integration resource for managing the Datadog webhooks integration.

The integration is a singleton per account: one resource holds every hook,
creating it establishes the full set and deleting it removes the whole
integration. There is no update, any change to the hooks forces replacement.
"""

from __future__ import annotations
import asyncio
import weakref
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

from datadog_webhooks.utils.base_resource import BaseResource, ResourceConfig
from datadog_webhooks.utils.resource_utils import (
    ConfigurationError,
    CustomClientHTTPError,
    IntegrationError,
    TranslationError,
    format_bool,
    parse_bool,
)

if TYPE_CHECKING:
    from datadog_webhooks.utils.configuration import Configuration
    from datadog_webhooks.utils.custom_client import CustomClient


# Configuration surface of the resource: a single force-new list of hooks.
HOOK_SCHEMA: Dict[str, Dict[str, Any]] = {
    "name": {"type": str, "required": True},
    "url": {"type": str, "required": True},
    "use_custom_payload": {"type": bool, "required": False},
    "custom_payload": {"type": str, "required": False},
    "encode_as_form": {"type": bool, "required": False},
    "headers": {"type": dict, "required": False},
}
HOOKS_SCHEMA: Dict[str, Dict[str, Any]] = {
    "hooks": {"type": list, "required": True, "force_new": True, "elem": HOOK_SCHEMA},
}

# One write lock per event loop, shared by every adapter running on it.
_integration_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()


def get_integration_lock() -> asyncio.Lock:
    """Return the write lock shared by all adapters on the running event loop."""
    loop = asyncio.get_running_loop()
    lock = _integration_locks.get(loop)
    if lock is None:
        lock = _integration_locks[loop] = asyncio.Lock()
    return lock


@dataclass(frozen=True)
class WebhookSpec:
    """One named hook of the integration, as configured.

    Optional fields left as ``None`` are absent from configuration and are not
    sent to the API. Headers are stored as a read-only mapping.
    """

    name: str
    url: str
    use_custom_payload: Optional[bool] = None
    custom_payload: Optional[str] = None
    encode_as_form: Optional[bool] = None
    headers: Optional[Mapping[str, str]] = None

    def __post_init__(self) -> None:
        if self.headers is not None:
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def __hash__(self) -> int:
        headers = frozenset(self.headers.items()) if self.headers is not None else None
        return hash(
            (self.name, self.url, self.use_custom_payload, self.custom_payload, self.encode_as_form, headers)
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> WebhookSpec:
        """Validate a raw hook mapping against ``HOOK_SCHEMA``.

        Raises:
            ConfigurationError: On unknown keys, missing required fields or
                values of the wrong type.
        """
        if not isinstance(raw, dict):
            raise ConfigurationError(f"hook must be a mapping, got {type(raw).__name__}")

        unknown = set(raw) - set(HOOK_SCHEMA)
        if unknown:
            raise ConfigurationError(f"unknown hook attributes: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        for key, schema in HOOK_SCHEMA.items():
            value = raw.get(key)
            if value is None:
                if schema["required"]:
                    raise ConfigurationError(f"hook attribute '{key}' is required")
                continue
            if not isinstance(value, schema["type"]):
                raise ConfigurationError(
                    f"hook attribute '{key}' must be of type {schema['type'].__name__}, "
                    f"got {type(value).__name__}"
                )
            values[key] = value

        for key in ("name", "url"):
            if not values[key].strip():
                raise ConfigurationError(f"hook attribute '{key}' must not be empty")

        headers = values.get("headers")
        if headers is not None:
            for k, v in headers.items():
                if not isinstance(k, str) or not isinstance(v, str):
                    raise ConfigurationError(f"headers of hook '{values['name']}' must map strings to strings")
            values["headers"] = dict(headers)

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "url": self.url}
        for key in ("use_custom_payload", "custom_payload", "encode_as_form"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.headers is not None:
            result["headers"] = dict(self.headers)
        return result


def build_hooks(raw_hooks: Iterable[Dict[str, Any]]) -> List[WebhookSpec]:
    """Validate the ``hooks`` list, rejecting duplicate hook names."""
    hooks = [WebhookSpec.from_dict(raw) for raw in raw_hooks]
    seen = set()
    for hook in hooks:
        if hook.name in seen:
            raise ConfigurationError(f"duplicate hook name '{hook.name}'")
        seen.add(hook.name)
    return hooks


def requires_replacement(current: List[WebhookSpec], planned: List[WebhookSpec]) -> bool:
    """Hooks cannot be updated in place, any difference forces a new integration."""
    return list(current) != list(planned)


def encode_headers(headers: Dict[str, str]) -> str:
    """Encode a header mapping as newline separated ``Key: Value`` lines.

    Raises:
        ConfigurationError: If a key holds a colon or newline, or a value a
            newline, since such a blob would not decode to the same mapping.
    """
    lines = []
    for key in sorted(headers):
        value = headers[key]
        if ":" in key or "\n" in key:
            raise ConfigurationError(f"header name '{key}' must not contain ':' or a newline")
        if "\n" in value:
            raise ConfigurationError(f"value of header '{key}' must not contain a newline")
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


def decode_headers(blob: str) -> Dict[str, str]:
    """Decode the API's header blob into a mapping.

    The key is the text before the first colon and the value everything after
    it, minus a single leading space. Blank lines are ignored.

    Raises:
        TranslationError: If a non blank line has no colon.
    """
    headers: Dict[str, str] = {}
    if not blob.strip(" \t\n"):
        return headers

    for line in blob.split("\n"):
        if not line.strip():
            continue
        if ":" not in line:
            raise TranslationError(f"header not correctly formatted, expected ':' in '{line}'")
        key, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        headers[key] = value
    return headers


def build_datadog_webhook(hook: WebhookSpec) -> Dict[str, str]:
    """Translate a configured hook into an API wire record."""
    webhook = {"name": hook.name, "url": hook.url}

    if hook.use_custom_payload is not None:
        webhook["use_custom_payload"] = format_bool(hook.use_custom_payload)
    if hook.custom_payload is not None:
        webhook["custom_payload"] = hook.custom_payload
    if hook.encode_as_form is not None:
        webhook["encode_as_form"] = format_bool(hook.encode_as_form)
    if hook.headers is not None:
        webhook["headers"] = encode_headers(hook.headers)

    return webhook


def build_create_request(hooks: Iterable[WebhookSpec]) -> Dict[str, List[Dict[str, str]]]:
    return {"hooks": [build_datadog_webhook(hook) for hook in hooks]}


def build_terraform_webhook(webhook: Dict[str, Any]) -> WebhookSpec:
    """Translate an API wire record back into a configured hook.

    Raises:
        TranslationError: On a malformed header blob, an unparsable boolean or
            a record without name or url.
    """
    try:
        name = webhook["name"]
        url = webhook["url"]
    except KeyError as e:
        raise TranslationError(f"webhook record is missing '{e.args[0]}'") from e
    for key, value in (("name", name), ("url", url)):
        if not isinstance(value, str) or not value.strip():
            raise TranslationError(f"webhook record has an invalid {key} {value!r}")

    values: Dict[str, Any] = {}
    if webhook.get("use_custom_payload") is not None:
        values["use_custom_payload"] = parse_bool(webhook["use_custom_payload"])
    if webhook.get("custom_payload") is not None:
        if not isinstance(webhook["custom_payload"], str):
            raise TranslationError(f"custom_payload of webhook '{name}' must be a string")
        values["custom_payload"] = webhook["custom_payload"]
    if webhook.get("encode_as_form") is not None:
        values["encode_as_form"] = parse_bool(webhook["encode_as_form"])
    if webhook.get("headers") is not None:
        if not isinstance(webhook["headers"], str):
            raise TranslationError(f"headers of webhook '{name}' must be a string")
        values["headers"] = decode_headers(webhook["headers"])

    return WebhookSpec(name=name, url=url, **values)


def build_terraform_webhooks(webhooks: Iterable[Dict[str, Any]]) -> List[WebhookSpec]:
    # All or nothing: the first bad record aborts the translation.
    return [build_terraform_webhook(webhook) for webhook in webhooks]


class WebhooksIntegration(BaseResource):
    """Resource class for the Datadog Webhooks Integration.

    Create and delete are serialized through ``lock`` because the remote
    integration is a single object per account. Unless a lock is passed in,
    every adapter on the same event loop shares one lock. Read and exists are
    not guarded.
    """

    resource_type = "webhooks_integration"
    resource_config = ResourceConfig(
        base_path="/api/v1/integration/webhooks",
        excluded_attributes=[],
    )
    # The integration is not individually keyed, this id is a placeholder.
    integration_id = "webhooks"

    def __init__(self, config: Configuration, lock: Optional[asyncio.Lock] = None) -> None:
        super().__init__(config)
        self._lock = lock

    @property
    def lock(self) -> asyncio.Lock:
        if self._lock is not None:
            return self._lock
        return get_integration_lock()

    async def exists(self, client: Optional[CustomClient] = None) -> bool:
        """Check whether the integration exists and holds at least one hook.

        A 404 from the API means the integration does not exist. Any other
        error is raised unchanged.
        """
        client = client or self.config.destination_client
        try:
            resp = await client.get(self.resource_config.base_path)
        except CustomClientHTTPError as e:
            if e.status_code == 404:
                return False
            raise

        return len((resp or {}).get("hooks") or []) > 0

    async def create_resource(self, hooks: List[WebhookSpec]) -> List[WebhookSpec]:
        """Create the integration with the full ordered list of hooks.

        The stored state is then refreshed from the API with ``read_resource``.

        Raises:
            IntegrationError: If the create request fails.
        """
        destination_client = self.config.destination_client
        payload = build_create_request(hooks)

        async with self.lock:
            self.config.logger.debug(f"creating webhooks integration with {len(payload['hooks'])} hook(s)")
            try:
                await destination_client.post(self.resource_config.base_path, payload)
            except Exception as e:
                raise IntegrationError(f"error creating a Webhook integration: {e}") from e

            return await self.read_resource()

    async def read_resource(self) -> List[WebhookSpec]:
        """Fetch the integration and overwrite the stored state with it.

        Raises:
            IntegrationError: If the API call fails.
            TranslationError: If any hook cannot be translated. The stored
                state is left untouched in that case.
        """
        destination_client = self.config.destination_client
        try:
            resp = await destination_client.get(self.resource_config.base_path)
        except Exception as e:
            raise IntegrationError(f"error reading the Webhook integration: {e}") from e

        hooks = self._translate(resp)
        self._save_state(hooks)
        return hooks

    async def delete_resource(self) -> None:
        """Delete the whole integration.

        Deleting an integration that is already gone surfaces the API error.

        Raises:
            IntegrationError: If the delete request fails.
        """
        destination_client = self.config.destination_client

        async with self.lock:
            self.config.logger.debug("deleting webhooks integration")
            try:
                await destination_client.delete(self.resource_config.base_path)
            except Exception as e:
                raise IntegrationError(f"error deleting a Webhook integration: {e}") from e

            self.config.state.destination[self.resource_type].pop(self.integration_id, None)

    async def import_resource(
        self, _id: Optional[str] = None, resource: Optional[Dict] = None
    ) -> Tuple[str, List[WebhookSpec]]:
        """Import the existing integration into the stored state.

        Args:
            _id: Opaque reference to the integration. It is neither parsed nor
                validated.
            resource: Optional pre-fetched API response (``{"hooks": [...]}``).

        Returns:
            A tuple of (integration id, hooks).
        """
        self.config.logger.debug(f"importing webhooks integration '{_id or self.integration_id}'")
        if resource is not None:
            hooks = self._translate(resource)
            self._save_state(hooks)
        else:
            hooks = await self.read_resource()

        return self.integration_id, hooks

    def get_state(self) -> Optional[List[WebhookSpec]]:
        """Return the hooks currently stored for the integration, if any."""
        raw = self.config.state.destination[self.resource_type].get(self.integration_id)
        if raw is None:
            return None
        return [WebhookSpec.from_dict(hook) for hook in raw]

    def _translate(self, resp: Optional[Dict]) -> List[WebhookSpec]:
        records = (resp or {}).get("hooks") or []
        return build_terraform_webhooks(self.remove_excluded_attributes(record) for record in records)

    def _save_state(self, hooks: List[WebhookSpec]) -> None:
        self.config.state.destination[self.resource_type][self.integration_id] = [hook.to_dict() for hook in hooks]
