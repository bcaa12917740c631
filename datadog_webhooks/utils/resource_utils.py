# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

"""Errors and small helpers shared by resources and the HTTP client."""

from typing import Any, Optional


class CustomClientHTTPError(Exception):
    """Raised by the client when the API answers with a status >= 400."""

    def __init__(self, status_code: int, message: str = "", body: Optional[Any] = None) -> None:
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(f"{status_code} {message}".strip())

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class IntegrationError(Exception):
    """A remote create, read or delete call of an integration failed."""


class TranslationError(ValueError):
    """A wire record could not be translated into configuration."""


class ConfigurationError(ValueError):
    """Invalid configuration supplied at the boundary."""


# strconv-style textual booleans accepted by the API
_TRUE_STRINGS = frozenset(["1", "t", "T", "TRUE", "true", "True"])
_FALSE_STRINGS = frozenset(["0", "f", "F", "FALSE", "false", "False"])


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def parse_bool(value: str) -> bool:
    """Strictly parse a textual boolean.

    Raises:
        TranslationError: If ``value`` is not one of the accepted spellings.
    """
    if not isinstance(value, str):
        raise TranslationError(f"invalid boolean value {value!r}")
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    raise TranslationError(f"invalid boolean value '{value}'")
