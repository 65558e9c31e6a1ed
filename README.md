# kongdeck

Tools for working with Kong declarative configuration (the "decK file")
from Python. It is a library only. It has no command-line interface.

- **Terraform generation**: turns a decK file into resources for the
  Konnect Terraform provider (`kongdeck.kong2tf`, built on
  `kongdeck.terraform_resource`).
- **Konnect compatibility checks**: finds settings and plugins in a decK
  file that Konnect does not support (`kongdeck.compatibility`).
- **Online validation**: sends each entity to a Kong Admin API's schema
  validation endpoint (`kongdeck.validator`).
- **Lint reporting**: counts lint findings, decides which ones are
  failures, and writes the report as plain text, JSON or YAML
  (`kongdeck.lint`).

## Installation

```
pip install kongdeck
```

To run the tests:

```
pip install "kongdeck[test]"
pytest
```

## Generating Terraform

`convert(content, control_plane_id=None, ignore_credential_changes=False)`
takes the decK file's content as a dictionary, in the form a YAML or
JSON parser returns it. It returns the Terraform text as a string.

```python
import yaml
from kongdeck.kong2tf import convert

with open("kong.yaml") as fh:
    content = yaml.safe_load(fh)

print(convert(content))
```

- **`control_plane_id`**: when you pass one, it becomes the default of
  the `control_plane_id` variable. An `import` block is also written for
  every entity that has an `id`. Consumer group memberships never get
  one. Without it, the variable defaults to `YOUR_CONTROL_PLANE_ID`.
- **`ignore_credential_changes=True`**: adds
  `lifecycle { ignore_changes = [...] }` to basic-auth credentials
  (`password`) and JWT secrets (`secret`, `key`).

Resource names come from entity names with `-` replaced by `_`. Some
entities use a different source for the name:

| Entity | Resource name |
| --- | --- |
| Consumers | username |
| Upstreams | prefixed `upstream_` |
| Targets | prefixed `target_` |
| Certificates | `cert_` plus the MD5 digest of the PEM text |
| CA certificates | `ca_cert_` plus the MD5 digest of the PEM text |

`ValueError` is raised when an entity lacks the field its resource name
comes from.

### `TerraformBuilder`

`TerraformBuilder` builds one kind of resource at a time:

- `build_control_plane_var`
- `build_global_plugins`
- `build_services`
- `build_upstreams`
- `build_routes`
- `build_consumers`
- `build_consumer_groups`
- `build_ca_certificates`
- `build_certificates`
- `build_vaults`

Each of these methods appends its text and returns the part it added.

`build(content, control_plane_id, ignore_credential_changes)` runs all
of them in the order listed above. It returns everything built so far.

### `kongdeck.terraform_resource`

The lower-level pieces live in `kongdeck.terraform_resource`:

- `generate_resource`
- `generate_resource_with_customizations` (for example, wrapping a
  vault's `config` in `jsonencode(...)`)
- `generate_relationship`
- `generate_imports`
- `generate_import_keys`
- `generate_lifecycle`
- `generate_parents`
- `render_object`
- `quote`

`ImportConfig(control_plane_id, import_values)` describes the import
block to emit.

## Checking Konnect compatibility

```python
from kongdeck.compatibility import konnect_compatibility

problems = konnect_compatibility(content, konnect_control_plane="")
for problem in problems:
    print(problem)
```

The result is a list of `CompatibilityError`. An empty list means no
problem was found. The check reports:

- a `_workspace` setting;
- a missing `_konnect` section, when no control plane name is passed;
- a `_format_version` that is missing, cannot be parsed, or is below
  `3.0`;
- plugins that Konnect does not support (`jwt-signer`, `vault-auth`,
  `oauth2`, `application-registration`, `key-auth-enc`, `openwhisk`);
- rate-limiting plugins that use the `cluster` strategy.

Plugins are checked only when they are enabled and have a config.
Consumer group plugins are the exception: they are always checked.

`check_plugin(name, config)` checks one plugin. It returns a
`CompatibilityError`, or `None` when the plugin is fine.

## Validating against a running Kong

```python
import requests
from kongdeck.validator import Validator

validator = Validator(
    "http://localhost:8001",
    state,
    requests.Session(),
    parallelism=10,
    rbac_resources_only=False,
    online_entities_filter=["Services", "Routes"],
)
errors = validator.validate()
```

### The `state` argument

`state` maps entity field names to lists of entity dictionaries.
`ENTITY_MAP` lists the accepted field names, for example `Services`,
`Routes` and `Plugins`.

### How validation runs

Each entity is posted to `/schemas/<entity type>/validate`. At most
`parallelism` requests run at once.

`validate_entity`:
- returns `True` for a 200 answer;
- raises `ValueError` for a failed request or an answer of 400 or above.

`validate()` returns all such errors as a list.

`online_entities_filter` limits which field names are checked.
`rbac_resources_only=True` checks only `RBACEndpointPermissions` and
`RBACRoles`.

`ValidationErrors(errors)` wraps a list of errors in one exception. Its
message has one error per line.

`get_entity_name_or_id(entity)` gives the label used in error messages:
the entity's name, or its id when it has no name.

## Lint reports

```python
from kongdeck.lint import LintResult, build_lint_report, get_lint_output

results = [
    LintResult(message="Must use HTTPS protocol", severity="warn",
               line=5, column=13, path="$.services[*].protocol"),
]
report = build_lint_report(results, fail_severity="error", only_failures=False)
has_failures = get_lint_output(report, "plain", "-")
```

### Severities

Severities, from lowest to highest, are `hint`, `info`, `warn` and
`error` (`Severity`). `parse_severity` treats an unknown name as `warn`.

`build_lint_report` counts a result as a failure when its severity is at
least `fail_severity`. With `only_failures=True` it drops the other
results.

### Output formats

`get_lint_output(report, output_format, output_filename="-")` accepts
these formats:

| Format | Output |
| --- | --- |
| `plain` | printed to standard output |
| `json` | written to `output_filename` (`-` means standard output); keys capitalized |
| `yaml` | written to `output_filename` (`-` means standard output); keys in lower case |

Any other format raises `ValueError`. The function returns `True` when
the report holds failures.

`is_openapi_spec(data)` tells whether a YAML or JSON document has an
`openapi` key.

## What this package does not do

- It does not apply lint rulesets or read ruleset files. You supply
  `LintResult` objects, and the package counts them and writes the
  report.
- It does not read decK files from disk and does not resolve their
  references. The functions take data that is already parsed.
- It does not sync, diff, dump or reset a Kong node or a Konnect control
  plane. The only contact with a running Kong is the schema validation
  described above.
- It does not warn about route paths that use the older regex style.