"""Online validation of decK entities against a Kong Admin API."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Mapping, Sequence

import requests

ENTITY_MAP: dict[str, str] = {
    "ACLGroups": "acls",
    "BasicAuths": "basicauth_credentials",
    "CACertificates": "ca_certificates",
    "Certificates": "certificates",
    "Consumers": "consumers",
    "Documents": "documents",
    "FilterChains": "filter_chains",
    "HMACAuths": "hmacauth_credentials",
    "JWTAuths": "jwt_secrets",
    "KeyAuths": "keyauth_credentials",
    "Oauth2Creds": "oauth2_credentials",
    "Partials": "partials",
    "Plugins": "plugins",
    "RBACEndpointPermissions": "rbac-endpointpermission",
    "RBACRoles": "rbac-role",
    "Routes": "routes",
    "SNIs": "snis",
    "Services": "services",
    "Targets": "targets",
    "Upstreams": "upstreams",
    "Vaults": "vaults",
}


class ValidationErrors(Exception):
    """Several validation failures reported together, one per line."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(error) for error in self.errors))


def get_entity_name_or_id(entity: Any) -> str:
    """Return the entity's name when it has a name field, otherwise its id."""
    if isinstance(entity, Mapping):
        value = entity["name"] if "name" in entity else entity.get("id")
    elif hasattr(entity, "name"):
        value = entity.name
    else:
        value = getattr(entity, "id", None)
    return "" if value is None else str(value)


def _error_reason(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping) and body.get("message") is not None:
        return f"HTTP status {response.status_code} (message: {body['message']!r})"
    return f"HTTP status {response.status_code}"


class Validator:
    """Validates the entities of a state against the schema endpoints of a Kong node.

    ``state`` maps entity field names such as ``"Services"`` or ``"Routes"``
    to sequences of entity mappings.
    """

    def __init__(
        self,
        base_url: str,
        state: Mapping[str, Sequence[Mapping[str, Any]]],
        session: requests.Session | None = None,
        parallelism: int = 10,
        rbac_resources_only: bool = False,
        online_entities_filter: Iterable[str] | None = None,
    ) -> None:
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.state = state
        self.session = session if session is not None else requests.Session()
        self.parallelism = parallelism
        self.rbac_resources_only = rbac_resources_only
        self.online_entities_filter = list(online_entities_filter or ())

    def validate_entity(self, entity_type: str, entity: Mapping[str, Any]) -> bool:
        """Ask Kong to validate one entity; True when it answers 200 OK."""
        name_or_id = get_entity_name_or_id(entity)
        url = f"{self.base_url}/schemas/{entity_type}/validate"
        try:
            response = self.session.post(url, json=dict(entity))
        except requests.RequestException as exc:
            raise ValueError(f"validate entity '{entity_type} ({name_or_id})': {exc}") from exc
        if response.status_code >= 400:
            raise ValueError(
                f"validate entity '{entity_type} ({name_or_id})': {_error_reason(response)}"
            )
        return response.status_code == 200

    def _entities(self, entities: Any, entity_type: str) -> list[Exception]:
        if entities is None:
            return []
        if not isinstance(entities, (list, tuple)):
            return [ValueError(f"cannot list entities of type {entity_type!r}")]
        with ThreadPoolExecutor(max_workers=self.parallelism) as pool:
            futures = [
                pool.submit(self.validate_entity, entity_type, entity) for entity in entities
            ]
            errors: list[Exception] = []
            for future in futures:
                error = future.exception()
                if error is not None:
                    if not isinstance(error, Exception):
                        raise error
                    errors.append(error)
        return errors

    def _field_errors(self, field_name: str, entity_name: str) -> list[Exception]:
        entities = self.state.get(field_name)
        if entities is not None and not isinstance(entities, (list, tuple)):
            return [ValueError(f"invalid field '{field_name}' in state")]
        return self._entities(entities, entity_name)

    def validate(self) -> list[Exception]:
        """Validate every selected kind of entity and return all errors found."""
        errors: list[Exception] = []
        if self.rbac_resources_only:
            errors += self._field_errors("RBACEndpointPermissions", "rbac-endpointpermission")
            errors += self._field_errors("RBACRoles", "rbac-role")
            return errors

        if self.online_entities_filter:
            selected = {
                key: ENTITY_MAP[key] for key in self.online_entities_filter if key in ENTITY_MAP
            }
        else:
            selected = ENTITY_MAP

        for field_name, entity_name in selected.items():
            errors += self._field_errors(field_name, entity_name)
        return errors