# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

"""Base class and configuration shared by every resource type."""

from __future__ import annotations
import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from datadog_webhooks.utils.configuration import Configuration


@dataclass
class ResourceConfig:
    """Static description of a resource's API endpoint.

    Attributes:
        base_path: API path of the resource, relative to the API host.
        excluded_attributes: Attributes dropped from API responses before they
            are stored. Given as plain names, normalized to ``root.<name>``.
    """

    base_path: str
    excluded_attributes: Optional[List[str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.excluded_attributes:
            self.excluded_attributes = ["root." + attr for attr in self.excluded_attributes]


class BaseResource(abc.ABC):
    resource_type: str
    resource_config: ResourceConfig

    def __init__(self, config: Configuration) -> None:
        self.config = config

    @abc.abstractmethod
    async def import_resource(self, _id: Optional[str] = None, resource: Optional[Dict] = None) -> Any:
        pass

    @abc.abstractmethod
    async def create_resource(self, *args: Any, **kwargs: Any) -> Any:
        pass

    @abc.abstractmethod
    async def delete_resource(self, *args: Any, **kwargs: Any) -> None:
        pass

    def remove_excluded_attributes(self, resource: Dict) -> Dict:
        """Return a copy of ``resource`` without the excluded top level attributes."""
        excluded = self.resource_config.excluded_attributes or []
        names = {attr[len("root.") :] for attr in excluded}
        return {k: v for k, v in resource.items() if k not in names}
