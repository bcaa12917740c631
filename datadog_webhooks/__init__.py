# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

from datadog_webhooks.model.webhooks_integration import WebhookSpec, WebhooksIntegration
from datadog_webhooks.utils.configuration import Configuration, build_config

__all__ = ["Configuration", "WebhookSpec", "WebhooksIntegration", "build_config"]
