import pytest

from kongdeck.compatibility import (
    ERR_BAD_VERSION,
    ERR_KONNECT,
    ERR_NO_VERSION,
    ERR_WORKSPACE,
    CompatibilityError,
    check_plugin,
    konnect_compatibility,
)

KONNECT = {"runtime_group_name": "s", "control_plane_name": "s"}
KEY_AUTH_ENC = (
    "[key-auth-enc] keys are automatically encrypted in Konnect, use the key auth plugin instead"
)


def _messages(errors):
    return [str(error) for error in errors]


def test_version_invalid():
    content = {"_format_version": "2.9", "_workspace": "test", "_konnect": KONNECT}
    assert _messages(konnect_compatibility(content)) == [ERR_WORKSPACE, ERR_BAD_VERSION]


def test_no_konnect():
    assert _messages(konnect_compatibility({"_format_version": "3.1"})) == [ERR_KONNECT]


def test_incompatible_service_plugin():
    content = {
        "_format_version": "3.1",
        "_konnect": KONNECT,
        "services": [
            {"plugins": [{"name": "oauth2", "enabled": True, "config": {"config": "config"}}]}
        ],
    }
    assert _messages(konnect_compatibility(content)) == [
        "[oauth2] plugin is not compatible with Konnect"
    ]


def test_incompatible_service_route_plugins():
    content = {
        "_format_version": "3.1",
        "_konnect": KONNECT,
        "services": [
            {
                "routes": [
                    {
                        "plugins": [
                            {"name": "oauth2", "enabled": True, "config": {"config": "config"}},
                            {"name": "key-auth-enc", "enabled": True, "config": {"config": "config"}},
                        ]
                    }
                ]
            }
        ],
    }
    assert _messages(konnect_compatibility(content)) == [
        "[oauth2] plugin is not compatible with Konnect",
        KEY_AUTH_ENC,
    ]


def test_incompatible_top_level_and_consumer_group_plugins():
    content = {
        "_format_version": "3.1",
        "_konnect": KONNECT,
        "plugins": [
            {"name": "response-ratelimiting", "enabled": True, "config": {"strategy": "cluster"}}
        ],
        "consumer_groups": [
            {"plugins": [{"name": "key-auth-enc", "config": {"config": "config"}}]}
        ],
    }
    assert _messages(konnect_compatibility(content)) == [
        "[response-ratelimiting] plugin can't be used with cluster strategy",
        KEY_AUTH_ENC,
    ]


def test_konnect_passed_via_flag():
    assert konnect_compatibility({"_format_version": "3.1"}, "default") == []


def test_missing_version():
    assert _messages(konnect_compatibility({"_konnect": KONNECT})) == [ERR_NO_VERSION]


def test_unparsable_version():
    content = {"_konnect": KONNECT, "_format_version": "three"}
    assert _messages(konnect_compatibility(content)) == [ERR_NO_VERSION]


def test_disabled_plugin_is_ignored():
    content = {
        "_format_version": "3.0",
        "_konnect": KONNECT,
        "plugins": [{"name": "oauth2", "enabled": False, "config": {}}],
        "routes": [{"plugins": [{"name": "oauth2", "enabled": True}]}],
    }
    assert konnect_compatibility(content) == []


def test_consumer_and_route_plugins_checked():
    content = {
        "_format_version": "3.0",
        "_konnect": KONNECT,
        "consumers": [{"plugins": [{"name": "vault-auth", "enabled": True, "config": {}}]}],
        "routes": [{"plugins": [{"name": "openwhisk", "enabled": True, "config": {}}]}],
    }
    assert _messages(konnect_compatibility(content)) == [
        "[vault-auth] plugin is not compatible with Konnect",
        "[openwhisk] plugin not bundled with Kong Gateway - installed as a LuaRocks package",
    ]


def test_bad_version_message_text():
    assert ERR_BAD_VERSION == "[version] decK file version must be '3.0' or greater"
    assert _messages(konnect_compatibility({"_format_version": "1.1", "_konnect": KONNECT})) == [
        "[version] decK file version must be '3.0' or greater"
    ]


@pytest.mark.parametrize(
    "name, config, expected",
    [
        ("jwt-signer", {}, "[jwt-signer] plugin is not compatible with Konnect"),
        (
            "application-registration",
            {},
            "[application-registration] available in Konnect, but doesn't require this plugin",
        ),
        ("rate-limiting-advanced", {"strategy": "cluster"}, "[rate-limiting-advanced] plugin can't be used with cluster strategy"),
    ],
)
def test_check_plugin_problems(name, config, expected):
    assert str(check_plugin(name, config)) == expected


@pytest.mark.parametrize(
    "name, config",
    [("rate-limiting", {"strategy": "local"}), ("rate-limiting", None), ("cors", {})],
)
def test_check_plugin_allowed(name, config):
    assert check_plugin(name, config) is None


def test_errors_compare_by_message():
    assert CompatibilityError("x") == CompatibilityError("x")
    assert check_plugin("oauth2", {}) == CompatibilityError(
        "[oauth2] plugin is not compatible with Konnect"
    )