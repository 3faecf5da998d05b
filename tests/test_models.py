"""Tests for policy input models."""

from __future__ import annotations

import pydantic
import pytest

from csp_policy.models.policy import CompiledPolicy, Directive, PolicyInput, PolicyOptions


class TestDirective:
    @pytest.mark.parametrize("key", ["script_src", "script-src", "SCRIPT_SRC", Directive.SCRIPT_SRC])
    def test_from_key(self, key):
        assert Directive.from_key(key) is Directive.SCRIPT_SRC

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            Directive.from_key("sandbox")

    def test_config_key(self):
        assert Directive.FRAME_ANCESTORS.config_key == "frame_ancestors"


class TestPolicyInputFromConfig:
    def test_splits_directives_options_and_report_uri(self):
        policy = PolicyInput.from_config({
            "default_src": "self",
            "img_src": ["https:", "data:"],
            "report_uri": "/csp_report",
            "enforce": True,
            "forward_endpoint": True,
            "http_additions": {"frame_src": "http:"},
        })
        assert policy.directives == {
            Directive.DEFAULT_SRC: "self",
            Directive.IMG_SRC: ("https:", "data:"),
        }
        assert policy.report_uri == "/csp_report"
        assert policy.options.enforce is True
        assert policy.options.forward_endpoint is True
        assert policy.options.http_additions == {Directive.FRAME_SRC: "http:"}

    def test_unknown_keys_dropped(self):
        policy = PolicyInput.from_config({"default_src": "self", "sandbox": "allow-forms"})
        assert list(policy.directives) == [Directive.DEFAULT_SRC]

    def test_none_options_use_defaults(self):
        policy = PolicyInput.from_config({"default_src": "self", "http_additions": None, "enforce": None})
        assert policy.options == PolicyOptions()

    def test_empty_report_uri_is_none(self):
        assert PolicyInput.from_config({"default_src": "self", "report_uri": ""}).report_uri is None

    def test_source_mapping_not_mutated(self):
        config = {"default_src": "self", "experimental": {"script_src": "https:"}}
        PolicyInput.from_config(config, experimental=True)
        assert config == {"default_src": "self", "experimental": {"script_src": "https:"}}

    def test_frozen(self):
        policy = PolicyInput.from_config({"default_src": "self"})
        with pytest.raises(pydantic.ValidationError):
            policy.report_uri = "/other"


class TestCacheKey:
    def test_equal_inputs_equal_keys(self):
        a = PolicyInput.from_config({"default_src": "self", "script_src": ["https:"]})
        b = PolicyInput.from_config({"script_src": ("https:",), "default_src": "self"})
        assert a.cache_key() == b.cache_key()

    def test_different_inputs_different_keys(self):
        a = PolicyInput.from_config({"default_src": "self"})
        b = PolicyInput.from_config({"default_src": "self", "enforce": True})
        assert a.cache_key() != b.cache_key()


class TestCompiledPolicy:
    def test_as_header(self):
        compiled = CompiledPolicy("Content-Security-Policy", "default-src 'self';")
        assert compiled.as_header() == ("Content-Security-Policy", "default-src 'self';")
