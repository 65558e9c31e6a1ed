"""Checks that a decK state file can be applied to Konnect."""

from __future__ import annotations

import re
import struct
from typing import Any, Iterable, Iterator, Mapping

DEFAULT_FORMAT_VERSION = "1.1"
FORMAT_VERSION_30 = "3.0"

SUPPORTED_VERSION = 3.0

ERR_KONNECT = "[konnect] section not specified - ensure details are set via cli flags"
ERR_WORKSPACE = "[workspaces] not supported by Konnect - use control planes instead"
ERR_NO_VERSION = "[version] unable to determine decK file version"
ERR_BAD_VERSION = f"[version] decK file version must be '{SUPPORTED_VERSION:.1f}' or greater"
ERR_PLUGIN_INCOMPATIBLE = "[{}] plugin is not compatible with Konnect"
ERR_PLUGIN_NO_CLUSTER = "[{}] plugin can't be used with cluster strategy"

_RATE_LIMITING = {
    "rate-limiting",
    "rate-limiting-advanced",
    "response-ratelimiting",
    "graphql-rate-limiting-advanced",
}

_FLOAT_SYNTAX = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)", re.IGNORECASE
)


class CompatibilityError(Exception):
    """A reason why a state file cannot be used with Konnect."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompatibilityError):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


def check_plugin(name: str | None, config: Mapping[str, Any] | None) -> CompatibilityError | None:
    """Return the problem with using this plugin on Konnect, or None."""
    if name in ("jwt-signer", "vault-auth", "oauth2"):
        return CompatibilityError(ERR_PLUGIN_INCOMPATIBLE.format(name))
    if name == "application-registration":
        return CompatibilityError(f"[{name}] available in Konnect, but doesn't require this plugin")
    if name == "key-auth-enc":
        return CompatibilityError(
            f"[{name}] keys are automatically encrypted in Konnect, use the key auth plugin instead"
        )
    if name == "openwhisk":
        return CompatibilityError(
            f"[{name}] plugin not bundled with Kong Gateway - installed as a LuaRocks package"
        )
    if name in _RATE_LIMITING and (config or {}).get("strategy") == "cluster":
        return CompatibilityError(ERR_PLUGIN_NO_CLUSTER.format(name))
    return None


def _parse_version(raw: Any) -> float:
    """Parse a format version as a single-precision float."""
    if isinstance(raw, bool) or raw is None:
        raise ValueError("no version")
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        text = str(raw)
        if not _FLOAT_SYNTAX.fullmatch(text):
            raise ValueError(f"invalid version {text!r}")
        number = float(text)
    try:
        return struct.unpack("f", struct.pack("f", number))[0]
    except OverflowError as exc:
        raise ValueError("version out of range") from exc


def _enabled_plugins(plugins: Iterable[Mapping[str, Any]] | None) -> Iterator[Mapping[str, Any]]:
    for plugin in plugins or ():
        if plugin.get("enabled") is True and plugin.get("config") is not None:
            yield plugin


def _all_plugins_to_check(content: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    yield from _enabled_plugins(content.get("plugins"))
    for consumer in content.get("consumers") or ():
        yield from _enabled_plugins(consumer.get("plugins"))
    for group in content.get("consumer_groups") or ():
        yield from group.get("plugins") or ()
    for service in content.get("services") or ():
        yield from _enabled_plugins(service.get("plugins"))
    for service in content.get("services") or ():
        for route in service.get("routes") or ():
            yield from _enabled_plugins(route.get("plugins"))
    for route in content.get("routes") or ():
        yield from _enabled_plugins(route.get("plugins"))


def konnect_compatibility(
    content: Mapping[str, Any], konnect_control_plane: str = ""
) -> list[CompatibilityError]:
    """Collect every reason the given state file cannot be applied to Konnect."""
    errors: list[CompatibilityError] = []

    if content.get("_workspace"):
        errors.append(CompatibilityError(ERR_WORKSPACE))

    if content.get("_konnect") is None and not konnect_control_plane:
        errors.append(CompatibilityError(ERR_KONNECT))

    try:
        version = _parse_version(content.get("_format_version"))
    except ValueError:
        errors.append(CompatibilityError(ERR_NO_VERSION))
    else:
        if version < SUPPORTED_VERSION:
            errors.append(CompatibilityError(ERR_BAD_VERSION))

    for plugin in _all_plugins_to_check(content):
        problem = check_plugin(plugin.get("name"), plugin.get("config"))
        if problem is not None:
            errors.append(problem)

    return errors