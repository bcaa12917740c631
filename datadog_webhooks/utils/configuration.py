# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

"""Runtime configuration handed to every resource."""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

from datadog_webhooks.utils.custom_client import CustomClient
from datadog_webhooks.utils.log import Log
from datadog_webhooks.utils.resource_utils import ConfigurationError
from datadog_webhooks.utils.state import State

DEFAULT_API_URL = "https://api.datadoghq.com"


@dataclass
class Configuration:
    logger: Log
    client: CustomClient
    state: State

    @property
    def source_client(self) -> CustomClient:
        return self.client

    @property
    def destination_client(self) -> CustomClient:
        return self.client


def build_config(
    api_key: Optional[str] = None,
    app_key: Optional[str] = None,
    api_url: Optional[str] = None,
    state_path: Optional[str] = None,
    verbose: bool = False,
    timeout: int = 60,
) -> Configuration:
    """Build a Configuration, falling back to ``DD_*`` environment variables.

    Raises:
        ConfigurationError: If no API or application key can be found.
    """
    api_key = api_key or os.environ.get("DD_API_KEY")
    app_key = app_key or os.environ.get("DD_APP_KEY")
    api_url = api_url or os.environ.get("DD_API_URL") or DEFAULT_API_URL
    if not api_key:
        raise ConfigurationError("missing Datadog API key, set DD_API_KEY")
    if not app_key:
        raise ConfigurationError("missing Datadog application key, set DD_APP_KEY")

    logger = Log(verbose)
    client = CustomClient(api_url, {"api_key": api_key, "app_key": app_key}, timeout=timeout)
    state = State(state_path)
    state.load()
    logger.debug(f"configured client for {api_url}")

    return Configuration(logger=logger, client=client, state=state)
