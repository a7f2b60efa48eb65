"""Tests for config.py: PluginConfig validation and validate_config."""
from __future__ import annotations

import dataclasses

import pytest

from imagedrop.config import (
    DEFAULT_CHUNK_SIZE,
    MISSING_APPLY_TRANSFORM,
    MISSING_GET_IMAGE_URL,
    MISSING_UPLOAD_URL,
    PluginConfig,
    collect_config_errors,
    normalize_extensions,
    validate_config,
)
from imagedrop.errors import ConfigError, ErrorCode


def _apply(transform, key, data):
    return transform


def _get_url(response):
    return response["src"]


class TestPluginConfigDefaults:
    def test_defaults(self):
        config = PluginConfig(apply_transform=_apply)
        assert config.upload_enabled is False
        assert config.upload_url is None
        assert config.upload_method == "post"
        assert config.upload_param_name == "file"
        assert dict(config.upload_params) == {}
        assert dict(config.upload_headers) == {}
        assert config.allowed_extensions is None
        assert config.verify_image_url is False
        assert config.timeout_seconds == 30.0
        assert config.upload_chunk_size == DEFAULT_CHUNK_SIZE

    def test_frozen(self):
        config = PluginConfig(apply_transform=_apply)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.upload_url = "https://example.com"  # type: ignore[misc]

    def test_params_are_read_only(self):
        params = {"album": "holiday"}
        config = PluginConfig(apply_transform=_apply, upload_params=params)
        params["album"] = "changed"
        assert config.upload_params["album"] == "holiday"
        with pytest.raises(TypeError):
            config.upload_params["album"] = "x"  # type: ignore[index]


class TestPluginConfigValidation:
    def test_missing_apply_transform(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig()
        assert exc_info.value.errors == [MISSING_APPLY_TRANSFORM]
        assert exc_info.value.code == ErrorCode.CONFIG_ERROR

    def test_non_callable_apply_transform(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(apply_transform="insert")
        assert exc_info.value.errors == [MISSING_APPLY_TRANSFORM]

    def test_upload_without_url(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(apply_transform=_apply, upload_enabled=True, get_image_url=_get_url)
        assert exc_info.value.errors == [MISSING_UPLOAD_URL]

    def test_upload_without_get_image_url(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(
                apply_transform=_apply, upload_enabled=True, upload_url="https://u.example.com",
            )
        assert exc_info.value.errors == [MISSING_GET_IMAGE_URL]

    def test_all_violations_reported_together(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(upload_enabled=True)
        assert exc_info.value.errors == [
            MISSING_APPLY_TRANSFORM,
            MISSING_UPLOAD_URL,
            MISSING_GET_IMAGE_URL,
        ]
        assert exc_info.value.message == "; ".join(exc_info.value.errors)
        assert exc_info.value.context["errors"] == exc_info.value.errors

    def test_upload_settings_ignored_when_upload_disabled(self):
        config = PluginConfig(apply_transform=_apply, upload_enabled=False)
        assert collect_config_errors(config) == []

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(apply_transform=_apply, timeout_seconds=0)
        assert exc_info.value.errors == ["timeout_seconds must be > 0, got 0"]

    def test_zero_chunk_size(self):
        with pytest.raises(ConfigError) as exc_info:
            PluginConfig(apply_transform=_apply, upload_chunk_size=0)
        assert "upload_chunk_size" in exc_info.value.errors[0]

    def test_exact_messages(self):
        assert MISSING_APPLY_TRANSFORM == "You must supply an applyTransform function."
        assert MISSING_UPLOAD_URL == "You must supply uploadUrl to upload images"
        assert MISSING_GET_IMAGE_URL == (
            "You must supply a getImageUrl function to upload images."
        )


class TestExtensions:
    def test_normalised(self):
        config = PluginConfig(apply_transform=_apply, allowed_extensions=[".PNG", "Jpg", " gif "])
        assert config.allowed_extensions == frozenset({"png", "jpg", "gif"})

    def test_single_string_is_one_extension(self):
        assert normalize_extensions("png") == frozenset({"png"})

    def test_none_stays_none(self):
        assert normalize_extensions(None) is None

    def test_empty_list_allows_nothing(self):
        config = PluginConfig(apply_transform=_apply, allowed_extensions=[])
        assert config.allowed_extensions == frozenset()


class TestRepr:
    def test_header_values_masked(self):
        config = PluginConfig(
            apply_transform=_apply,
            upload_headers={"Authorization": "Bearer secret-token"},
        )
        text = repr(config)
        assert "secret-token" not in text
        assert "'Authorization': '****'" in text

    def test_params_shown(self):
        config = PluginConfig(apply_transform=_apply, upload_params={"album": "x"})
        assert "upload_params={'album': 'x'}" in repr(config)


class TestValidateConfig:
    def test_camel_case_options(self):
        config = validate_config({
            "applyTransform": _apply,
            "uploadImages": True,
            "uploadUrl": "https://uploads.example.com",
            "uploadMethod": "put",
            "uploadParamName": "image",
            "uploadParams": {"a": "1"},
            "uploadHeaders": {"X-Token": "t"},
            "getImageUrl": _get_url,
            "extensions": ["PNG"],
        })
        assert config.upload_enabled is True
        assert config.upload_url == "https://uploads.example.com"
        assert config.upload_method == "put"
        assert config.upload_param_name == "image"
        assert dict(config.upload_params) == {"a": "1"}
        assert dict(config.upload_headers) == {"X-Token": "t"}
        assert config.get_image_url is _get_url
        assert config.allowed_extensions == frozenset({"png"})

    def test_camel_and_snake_case_equivalent(self):
        camel = validate_config({"applyTransform": _apply, "extensions": ["png"]})
        snake = validate_config({"apply_transform": _apply, "allowed_extensions": ["png"]})
        assert camel == snake

    def test_none_values_use_defaults(self):
        config = validate_config({
            "applyTransform": _apply,
            "uploadMethod": None,
            "extensions": None,
        })
        assert config.upload_method == "post"
        assert config.allowed_extensions is None

    def test_unknown_option_rejected(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_config({"applyTransform": _apply, "uploadURL": "x"})
        assert exc_info.value.errors == ["Unknown option: uploadURL"]

    def test_unknown_and_missing_reported_together(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_config({"bogus": 1, "uploadImages": True})
        assert exc_info.value.errors == [
            "Unknown option: bogus",
            MISSING_APPLY_TRANSFORM,
            MISSING_UPLOAD_URL,
            MISSING_GET_IMAGE_URL,
        ]

    def test_empty_options(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_config({})
        assert exc_info.value.errors == [MISSING_APPLY_TRANSFORM]
