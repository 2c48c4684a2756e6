"""Unit tests for the policy file loader, APIKeys and Resources."""
import json
import pytest

from source_proxy.access.policy import (
    APIKeyEntry,
    APIKeys,
    PermissionRule,
    Policy,
    Resources,
    load_policy,
)
from source_proxy.errors import ConfigurationError


def test_api_keys_resolves_groups():
    keys = APIKeys([APIKeyEntry(key="k-1", groups=["readers", "writers"])])
    assert keys.groups("k-1") == frozenset({"readers", "writers"})


def test_unknown_api_key_has_no_groups():
    keys = APIKeys([APIKeyEntry(key="k-1", groups=["readers"])])
    assert keys.groups("nope") == frozenset()


def test_rule_methods_case_insensitive():
    resources = Resources([PermissionRule(resource="t/*", methods=["get"], groups=["g"])])
    assert resources.can("GET", "t/x", frozenset({"g"}))
    assert resources.can("get", "t/x", frozenset({"g"}))


def test_wildcard_method():
    resources = Resources([PermissionRule(resource="t/*", methods=["*"], groups=["g"])])
    assert resources.can("DELETE", "t/x", frozenset({"g"}))


def test_glob_is_case_sensitive():
    resources = Resources([PermissionRule(resource="tenant-a/*", methods=["GET"], groups=["g"])])
    assert not resources.can("GET", "Tenant-A/x", frozenset({"g"}))


def test_group_required_when_listed():
    resources = Resources([PermissionRule(resource="t/*", methods=["GET"], groups=["g"])])
    assert not resources.can("GET", "t/x", frozenset())
    assert not resources.can("GET", "t/x", frozenset({"other"}))


def test_rule_without_groups_allows_empty_group_set():
    resources = Resources([PermissionRule(resource="public/*", methods=["GET"], groups=[])])
    assert resources.can("GET", "public/x", frozenset())


def test_no_rules_denies():
    assert not Resources([]).can("GET", "t/x", frozenset({"g"}))


def test_load_policy(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({
        "api_keys": [{"key": "k-1", "groups": ["readers"]}],
        "permissions": [{"resource": "t/*", "methods": ["GET"], "groups": ["readers"]}],
    }))

    policy = load_policy(str(path))

    assert isinstance(policy, Policy)
    assert policy.api_keys[0].key == "k-1"
    assert policy.permissions[0].methods == ["GET"]


def test_missing_policy_file_denies_everything(tmp_path):
    policy = load_policy(str(tmp_path / "absent.json"))
    assert policy.api_keys == []
    assert policy.permissions == []


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_policy(str(path))


def test_schema_violation_raises(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"api_keys": [{"groups": ["readers"]}]}))
    with pytest.raises(ConfigurationError):
        load_policy(str(path))
