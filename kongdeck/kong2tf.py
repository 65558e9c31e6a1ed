"""Conversion of a decK state file into Terraform configuration for the Konnect provider."""

from __future__ import annotations

import copy
import hashlib
from typing import Any, Iterable, Mapping

from kongdeck.terraform_resource import (
    ImportConfig,
    generate_relationship,
    generate_resource,
    generate_resource_with_customizations,
)

_DEFAULT_CONTROL_PLANE_ID = "YOUR_CONTROL_PLANE_ID"


def _required(entity: Mapping[str, Any], key: str, kind: str) -> str:
    value = entity.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{kind} is missing a {key!r} value")
    return value


def _identifier(text: str, *characters: str) -> str:
    for character in characters:
        text = text.replace(character, "_")
    return text


def _items(container: Mapping[str, Any], key: str) -> Iterable[Mapping[str, Any]]:
    return container.get(key) or ()


def _snapshot(entity: Mapping[str, Any]) -> dict[str, Any]:
    return copy.deepcopy(dict(entity))


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()


class TerraformBuilder:
    """Accumulates Terraform resources for the entities of a decK state file.

    Each ``build_*`` method appends its resources and returns the text it added.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []

    def _emit(self, text: str) -> str:
        self._parts.append(text)
        return text

    @staticmethod
    def _imports(control_plane_id: str | None, **values: str | None) -> ImportConfig:
        return ImportConfig(control_plane_id=control_plane_id, import_values=dict(values))

    def build_control_plane_var(self, control_plane_id: str | None) -> str:
        """Declare the variable holding the control plane id."""
        cp_id = _DEFAULT_CONTROL_PLANE_ID if control_plane_id is None else control_plane_id
        return self._emit(
            'variable "control_plane_id" {\n'
            "  type = string\n"
            f'  default = "{cp_id}"\n'
            "}\n\n"
        )

    def _plugin(
        self,
        plugin: Mapping[str, Any],
        parents: dict[str, str],
        control_plane_id: str | None,
    ) -> str:
        name = _identifier(_required(plugin, "name", "plugin"), "-")
        return generate_resource(
            "gateway_plugin",
            name,
            _snapshot(plugin),
            parents,
            self._imports(control_plane_id, id=plugin.get("id")),
            [],
        )

    def build_services(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render services together with their routes and plugins."""
        parts = []
        for service in _items(content, "services"):
            service_name = _identifier(_required(service, "name", "service"), "-")
            parts.append(
                generate_resource(
                    "gateway_service",
                    service_name,
                    _snapshot(service),
                    {},
                    self._imports(control_plane_id, id=service.get("id")),
                    [],
                )
            )
            for route in _items(service, "routes"):
                route_name = _identifier(_required(route, "name", "route"), "-")
                parts.append(
                    generate_resource(
                        "gateway_route",
                        route_name,
                        _snapshot(route),
                        {"service": service_name},
                        self._imports(control_plane_id, id=route.get("id")),
                        [],
                    )
                )
                for plugin in _items(route, "plugins"):
                    parts.append(self._plugin(plugin, {"route": route_name}, control_plane_id))
            for plugin in _items(service, "plugins"):
                parts.append(self._plugin(plugin, {"service": service_name}, control_plane_id))
        return self._emit("".join(parts))

    def build_routes(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render top-level routes and their plugins."""
        parts = []
        for route in _items(content, "routes"):
            route_name = _identifier(_required(route, "name", "route"), "-")
            parents: dict[str, str] = {}
            service = route.get("service")
            if service is not None:
                parents["service"] = _identifier(_required(service, "name", "route service"), "-")
            parts.append(
                generate_resource(
                    "gateway_route",
                    route_name,
                    _snapshot(route),
                    parents,
                    self._imports(control_plane_id, id=route.get("id")),
                    [],
                )
            )
            for plugin in _items(route, "plugins"):
                parts.append(self._plugin(plugin, {"route": route_name}, control_plane_id))
        return self._emit("".join(parts))

    def build_global_plugins(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render plugins that apply to the whole gateway."""
        parts = [self._plugin(plugin, {}, control_plane_id) for plugin in _items(content, "plugins")]
        return self._emit("".join(parts))

    def _credential(
        self,
        entity_type: str,
        resource_name: str,
        credential: Mapping[str, Any],
        consumer_name: str,
        consumer_id: str | None,
        control_plane_id: str | None,
        lifecycle: list[str],
    ) -> str:
        return generate_resource(
            entity_type,
            resource_name,
            _snapshot(credential),
            {"consumer_id": consumer_name},
            self._imports(control_plane_id, id=credential.get("id"), consumer_id=consumer_id),
            lifecycle,
        )

    def build_consumers(
        self,
        content: Mapping[str, Any],
        control_plane_id: str | None,
        ignore_credential_changes: bool,
    ) -> str:
        """Render consumers, their group memberships, credentials and plugins."""
        parts = []
        for consumer in _items(content, "consumers"):
            consumer_name = _identifier(_required(consumer, "username", "consumer"), "-")
            consumer_id = consumer.get("id")
            parts.append(
                generate_resource(
                    "gateway_consumer",
                    consumer_name,
                    _snapshot(consumer),
                    {},
                    self._imports(control_plane_id, id=consumer_id),
                    [],
                )
            )

            for group in _items(consumer, "groups"):
                group_name = _identifier(_required(group, "name", "consumer group"), "-")
                parts.append(
                    generate_relationship(
                        "gateway_consumer_group_member",
                        f"{group_name}_{consumer_name}",
                        {"consumer": consumer_name, "consumer_group": group_name},
                    )
                )

            for acl in _items(consumer, "acls"):
                name = "acl_" + _identifier(_required(acl, "group", "acl"), "-")
                parts.append(
                    self._credential(
                        "gateway_acl", name, acl, consumer_name, consumer_id, control_plane_id, []
                    )
                )

            for basic_auth in _items(consumer, "basicauth_credentials"):
                name = "basic_auth_" + _identifier(
                    _required(basic_auth, "username", "basic-auth credential"), "-"
                )
                lifecycle = ["password"] if ignore_credential_changes else []
                parts.append(
                    self._credential(
                        "gateway_basic_auth",
                        name,
                        basic_auth,
                        consumer_name,
                        consumer_id,
                        control_plane_id,
                        lifecycle,
                    )
                )

            for key_auth in _items(consumer, "keyauth_credentials"):
                name = "key_auth_" + _identifier(_required(key_auth, "key", "key-auth credential"), "-")
                parts.append(
                    self._credential(
                        "gateway_key_auth",
                        name,
                        key_auth,
                        consumer_name,
                        consumer_id,
                        control_plane_id,
                        [],
                    )
                )

            for jwt in _items(consumer, "jwt_secrets"):
                name = "jwt_" + _identifier(_required(jwt, "key", "jwt secret"), "-")
                lifecycle = ["secret", "key"] if ignore_credential_changes else []
                parts.append(
                    self._credential(
                        "gateway_jwt", name, jwt, consumer_name, consumer_id, control_plane_id, lifecycle
                    )
                )

            for hmac_auth in _items(consumer, "hmacauth_credentials"):
                name = "hmac_auth_" + _identifier(
                    _required(hmac_auth, "username", "hmac-auth credential"), "-"
                )
                parts.append(
                    self._credential(
                        "gateway_hmac_auth",
                        name,
                        hmac_auth,
                        consumer_name,
                        consumer_id,
                        control_plane_id,
                        [],
                    )
                )

            for plugin in _items(consumer, "plugins"):
                parts.append(self._plugin(plugin, {"consumer": consumer_name}, control_plane_id))
        return self._emit("".join(parts))

    def build_consumer_groups(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render consumer groups, their memberships and plugins."""
        parts = []
        for group in _items(content, "consumer_groups"):
            group_name = _identifier(_required(group, "name", "consumer group"), "-")
            parts.append(
                generate_resource(
                    "gateway_consumer_group",
                    group_name,
                    _snapshot(group),
                    {},
                    self._imports(control_plane_id, id=group.get("id")),
                    [],
                )
            )
            # Consumers here are references; only the membership is rendered.
            for consumer in _items(group, "consumers"):
                consumer_name = _identifier(_required(consumer, "username", "consumer"), "-")
                parts.append(
                    generate_relationship(
                        "gateway_consumer_group_member",
                        f"{group_name}_{consumer_name}",
                        {"consumer": consumer_name, "consumer_group": group_name},
                    )
                )
            for plugin in _items(group, "plugins"):
                parts.append(self._plugin(plugin, {"consumer_group": group_name}, control_plane_id))
        return self._emit("".join(parts))

    def build_upstreams(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render upstreams and their targets."""
        parts = []
        for upstream in _items(content, "upstreams"):
            upstream_name = "upstream_" + _identifier(
                _required(upstream, "name", "upstream"), "-", "."
            )
            upstream_id = upstream.get("id")
            parts.append(
                generate_resource(
                    "gateway_upstream",
                    upstream_name,
                    _snapshot(upstream),
                    {},
                    self._imports(control_plane_id, id=upstream_id),
                    [],
                )
            )
            for target in _items(upstream, "targets"):
                target_name = "target_" + _identifier(_required(target, "target", "target"), ".", ":")
                parts.append(
                    generate_resource(
                        "gateway_target",
                        target_name,
                        _snapshot(target),
                        {"upstream_id": upstream_name},
                        self._imports(control_plane_id, id=target.get("id"), upstream_id=upstream_id),
                        [],
                    )
                )
        return self._emit("".join(parts))

    def build_ca_certificates(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render CA certificates, named after the MD5 digest of their PEM text."""
        parts = []
        for ca_certificate in _items(content, "ca_certificates"):
            digest = _md5(_required(ca_certificate, "cert", "CA certificate"))
            parts.append(
                generate_resource(
                    "gateway_ca_certificate",
                    "ca_cert_" + digest,
                    _snapshot(ca_certificate),
                    {},
                    self._imports(control_plane_id, id=ca_certificate.get("id")),
                    [],
                )
            )
        return self._emit("".join(parts))

    def build_certificates(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render certificates and their SNIs."""
        parts = []
        for certificate in _items(content, "certificates"):
            cert_name = "cert_" + _md5(_required(certificate, "cert", "certificate"))
            parts.append(
                generate_resource(
                    "gateway_certificate",
                    cert_name,
                    _snapshot(certificate),
                    {},
                    self._imports(control_plane_id, id=certificate.get("id")),
                    [],
                )
            )
            for sni in _items(certificate, "snis"):
                sni_name = "sni_" + _identifier(_required(sni, "name", "SNI"), ".")
                parts.append(
                    generate_resource(
                        "gateway_sni",
                        sni_name,
                        _snapshot(sni),
                        {"certificate": cert_name},
                        self._imports(control_plane_id, id=sni.get("id")),
                        [],
                    )
                )
        return self._emit("".join(parts))

    def build_vaults(self, content: Mapping[str, Any], control_plane_id: str | None) -> str:
        """Render vaults, with their configuration JSON-encoded."""
        parts = []
        for vault in _items(content, "vaults"):
            vault_name = _identifier(_required(vault, "name", "vault"), "-")
            parts.append(
                generate_resource_with_customizations(
                    "gateway_vault",
                    vault_name,
                    _snapshot(vault),
                    {},
                    {"config": "jsonencode"},
                    self._imports(control_plane_id, id=vault.get("id")),
                    [],
                )
            )
        return self._emit("".join(parts))

    def build(
        self,
        content: Mapping[str, Any],
        control_plane_id: str | None,
        ignore_credential_changes: bool,
    ) -> str:
        """Render every kind of entity in order and return all text built so far."""
        self.build_control_plane_var(control_plane_id)
        self.build_global_plugins(content, control_plane_id)
        self.build_services(content, control_plane_id)
        self.build_upstreams(content, control_plane_id)
        self.build_routes(content, control_plane_id)
        self.build_consumers(content, control_plane_id, ignore_credential_changes)
        self.build_consumer_groups(content, control_plane_id)
        self.build_ca_certificates(content, control_plane_id)
        self.build_certificates(content, control_plane_id)
        self.build_vaults(content, control_plane_id)
        return "".join(self._parts)


def convert(
    content: Mapping[str, Any],
    control_plane_id: str | None = None,
    ignore_credential_changes: bool = False,
) -> str:
    """Convert a decK state file into Terraform configuration.

    When ``control_plane_id`` is given, import blocks are emitted for entities with ids.
    """
    return TerraformBuilder().build(content, control_plane_id, ignore_credential_changes)