"""Rendering of decK entities as Terraform resources for the Konnect provider."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

_PARENT_KEYS = ("service", "route", "consumer", "upstream", "certificate", "consumer_group")

_CHILD_KEYS = {
    "gateway_service": ("routes", "plugins"),
    "gateway_route": ("plugins", "service"),
    "gateway_plugin": ("service", "route", "consumer"),
    "gateway_consumer": (
        "groups",
        "acls",
        "basicauth_credentials",
        "keyauth_credentials",
        "jwt_secrets",
        "hmacauth_credentials",
        "plugins",
    ),
    "gateway_upstream": ("targets",),
    "gateway_consumer_group": ("consumers", "plugins"),
    "gateway_certificate": ("snis",),
}

_PRIORITY_KEYS = ("enabled", "name", "username")


@dataclass
class ImportConfig:
    """Control plane and key values used to emit Terraform import blocks."""

    control_plane_id: str | None = None
    import_values: dict[str, str | None] = field(default_factory=dict)


def generate_resource(
    entity_type: str,
    name: str,
    entity: Mapping[str, Any],
    parents: Mapping[str, str],
    imports: ImportConfig,
    lifecycle: list[str],
) -> str:
    """Render a resource block with no attribute customizations."""
    return generate_resource_with_customizations(
        entity_type, name, entity, parents, {}, imports, lifecycle
    )


def generate_resource_with_customizations(
    entity_type: str,
    name: str,
    entity: Mapping[str, Any],
    parents: Mapping[str, str],
    customizations: Mapping[str, str],
    imports: ImportConfig,
    lifecycle: list[str],
) -> str:
    """Render a resource block, wrapping attributes named in customizations in a function call."""
    entity = dict(entity)
    parents = dict(parents)

    entity_id = ""
    raw_id = entity.get("id")
    if raw_id is not None:
        if not isinstance(raw_id, str):
            raise TypeError("entity id must be a string")
        entity_id = raw_id

    for key in _PARENT_KEYS:
        value = entity.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            parents[key] = value
        elif isinstance(value, dict):
            parent_name = value.get("name")
            if not isinstance(parent_name, str):
                raise TypeError(f"parent {key} has no name")
            parents[key] = parent_name
        else:
            raise TypeError(f"Unknown type for parent {key}")

    for key in ("id", *_CHILD_KEYS.get(entity_type, ())):
        entity.pop(key, None)

    if entity_type == "gateway_plugin":
        entity_type = f"{entity_type}_{name}"
        entity.pop("name", None)

    if entity_type not in ("gateway_sni", "gateway_route"):
        for parent in parents.values():
            name = f"{parent.replace('-', '_')}_{name}"

    body = render_object(entity_type, entity, 1, True, "\n", customizations).rstrip("\n")
    text = (
        f'\nresource "konnect_{entity_type}" "{name}" {{\n'
        f"{body}\n\n"
        f"{generate_parents(parents)}  control_plane_id = var.control_plane_id"
        f"{generate_lifecycle(lifecycle)}\n}}\n"
    )

    if imports.control_plane_id is not None and entity_id:
        text += generate_imports(
            entity_type, name, imports.import_values, imports.control_plane_id
        )

    return text.strip() + "\n\n"


def generate_relationship(entity_type: str, name: str, relations: Mapping[str, str]) -> str:
    """Render a resource that links entities together by their ids."""
    text = f'resource "konnect_{entity_type}" "{name}" {{'
    for key in sorted(relations):
        text += f"\n  {key}_id = konnect_gateway_{key}.{relations[key]}.id"
    text += "\n  control_plane_id = var.control_plane_id"
    text += "\n}\n\n"
    return text


def generate_imports(
    entity_type: str,
    name: str,
    keys: Mapping[str, str | None],
    control_plane_id: str,
) -> str:
    """Render an import block for a resource, or nothing when there are no keys."""
    if not keys:
        return ""
    return (
        f"\nimport {{\n"
        f"  to = konnect_{entity_type}.{name}\n"
        f'  id = "{generate_import_keys(keys, control_plane_id)}"\n'
        f"}}"
    )


def generate_import_keys(keys: Mapping[str, str | None], control_plane_id: str) -> str:
    """Render the escaped JSON object that identifies an imported resource."""
    if not keys:
        return ""
    parts = []
    for key in sorted(keys):
        value = keys[key]
        if value is None:
            raise ValueError(f"import key {key!r} has no value")
        parts.append(f'\\"{key}\\": \\"{value}\\", ')
    parts.append(f'\\"control_plane_id\\": \\"{control_plane_id}\\"')
    return "{" + "".join(parts) + "}"


def generate_lifecycle(lifecycle: list[str]) -> str:
    """Render a lifecycle block ignoring changes to the given attributes."""
    if not lifecycle:
        return ""
    text = "\n  lifecycle {\n    ignore_changes = ["
    text += "".join(f"\n      {item}," for item in lifecycle)
    text = text.rstrip(",")
    text += "\n    ]\n  }\n"
    return text


def generate_parents(parents: Mapping[str, str]) -> str:
    """Render references from a resource to its parent resources."""
    if not parents:
        return ""
    blocks = []
    for key, value in parents.items():
        value = value.replace("-", "_")
        if key.endswith("_id"):
            blocks.append(f"  {key} = konnect_gateway_{key[:-3]}.{value}.id\n")
        else:
            blocks.append(f"  {key} = {{\n    id = konnect_gateway_{key}.{value}.id\n  }}\n")
    return "\n".join(blocks) + "\n"


def render_object(
    entity_type: str,
    obj: Mapping[str, Any],
    depth: int,
    is_root: bool,
    eol: str,
    customizations: Mapping[str, str],
) -> str:
    """Render the attributes of a mapping, common keys first and the rest sorted."""
    ordered = [key for key in _PRIORITY_KEYS if key in obj]
    ordered += [
        key
        for key in sorted(obj)
        if key not in ordered and key not in ("name", "enabled")
    ]

    parts = []
    for key in ordered:
        value = obj[key]
        if value is None:
            continue
        if isinstance(value, dict):
            parts.append(
                _render_hash(entity_type, key, value, depth, is_root, eol, customizations)
            )
        elif isinstance(value, list):
            parts.append(_render_list(entity_type, key, value, depth))
        else:
            parts.append(_line(f"{key} = {quote(value)}", depth, eol))
    return "".join(parts)


def _render_hash(
    entity_type: str,
    key: str,
    value: Mapping[str, Any],
    depth: int,
    is_root: bool,
    eol: str,
    customizations: Mapping[str, str],
) -> str:
    text = "" if is_root else "\n"
    custom = customizations.get(key, "")
    if custom:
        text += _line(f"{key} = {custom}({{", depth, eol)
    else:
        text += _line(f"{key} = {{", depth, eol)
    text += render_object(entity_type, value, depth + 1, True, eol, customizations)
    text += _line("})" if custom else "}", depth, eol)
    return text


def _render_hash_in_list(entity_type: str, value: Mapping[str, Any], depth: int) -> str:
    text = "\n" + _line("{", depth + 1, "\n")
    text += render_object(entity_type, value, depth + 2, False, "\n", {})
    text += _line("},", depth + 1, "\n")
    return text


def _render_list(entity_type: str, key: str, values: list[Any], depth: int) -> str:
    text = _line(f"{key} = [", depth, "")
    for value in values:
        if isinstance(value, dict):
            text += _render_hash_in_list(entity_type, value, depth)
        else:
            text += f"{quote(value)}, "
    text = text.rstrip(", ")
    return text + _end_list(values, depth)


def _end_list(values: list[Any], depth: int) -> str:
    if not values:
        return "]\n"
    last_line = _line("]", depth, "\n")
    if isinstance(values[-1], dict):
        return last_line
    return last_line.lstrip(" ")


def _line(text: str, depth: int, eol: str) -> str:
    return "  " * depth + text + eol


def quote(value: Any) -> str:
    """Render a scalar as a Terraform value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, str):
        if "\n" in value:
            return f"\n<<EOF\n{value.rstrip(chr(10))}\nEOF\n"
        return '"' + value.replace('"', '\\"') + '"'
    return f'"{_plain(value)}"'


def _plain(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, list):
        return "[" + " ".join(_plain(item) for item in value) + "]"
    if isinstance(value, dict):
        items = " ".join(f"{key}:{_plain(value[key])}" for key in sorted(value))
        return f"map[{items}]"
    return str(value)


def _format_number(value: float) -> str:
    """Format a number the way decoded JSON numbers are shortest-formatted."""
    number = float(value)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "+Inf" if number > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, number) < 0 else ""
    number = abs(number)
    if number == 0:
        return sign + "0"
    decimal = Decimal(repr(number)).normalize()
    _, digits, exponent = decimal.as_tuple()
    exp10 = len(digits) + exponent - 1
    if exp10 < -4 or exp10 >= 6:
        mantissa = str(digits[0])
        if len(digits) > 1:
            mantissa += "." + "".join(str(d) for d in digits[1:])
        exp_sign = "-" if exp10 < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp10):02d}"
    return sign + format(decimal, "f")