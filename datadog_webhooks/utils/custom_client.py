# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

"""Thin aiohttp client for the Datadog API."""

from __future__ import annotations
from typing import Any, Dict, Optional

import aiohttp

from datadog_webhooks.utils.resource_utils import CustomClientHTTPError


class CustomClient:
    """Asynchronous JSON client bound to one Datadog organization.

    The underlying ``aiohttp.ClientSession`` is opened lazily on the first
    request, or explicitly with ``async with CustomClient(...)``.
    """

    def __init__(self, host: str, auth: Dict[str, str], timeout: int = 60) -> None:
        self.host = host.rstrip("/")
        self.auth = auth
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "CustomClient":
        await self._init_session()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _init_session(self) -> None:
        if self.session is None or self.session.closed:
            headers = {
                "DD-API-KEY": self.auth["api_key"],
                "DD-APPLICATION-KEY": self.auth["app_key"],
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            self.session = aiohttp.ClientSession(headers=headers, timeout=self.timeout)

    async def close(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _request(self, method: str, path: str, body: Optional[Any] = None, **kwargs: Any) -> Any:
        await self._init_session()
        url = self.host + path
        async with self.session.request(method, url, json=body, **kwargs) as resp:
            text = await resp.text()
            if resp.status >= 400:
                raise CustomClientHTTPError(resp.status, resp.reason or "", text)
            if not text:
                return None
            return await resp.json(content_type=None)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self._request("GET", path, **kwargs)

    async def post(self, path: str, body: Any, **kwargs: Any) -> Any:
        return await self._request("POST", path, body, **kwargs)

    async def delete(self, path: str, body: Optional[Any] = None, **kwargs: Any) -> Any:
        return await self._request("DELETE", path, body, **kwargs)
