"""
Modifier — Configuration Tests
================================
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from modifier.config import ModifierConfig, Settings, load_modifier_config
from modifier.exceptions import ConfigurationError
from modifier.middleware import ModifierMiddleware


class TestModifierConfig:

    def test_defaults_are_empty(self):
        config = ModifierConfig()

        assert config.is_empty
        assert config.request is None
        assert config.response == {}

    def test_status_keys_are_coerced(self):
        config = ModifierConfig.model_validate({"response": {"200": "{}", "404": "{}"}})

        assert set(config.response) == {200, 404}

    def test_query_transform_wrapper(self):
        config = ModifierConfig.model_validate({"query": {"transform": {"q": "[[ request.path ]]"}}})

        assert config.query == {"q": "[[ request.path ]]"}

    def test_empty_templates_are_dropped(self):
        config = ModifierConfig(request="", headers={"X-A": "", "X-B": "b"}, query={"q": ""})

        assert config.request is None
        assert config.headers == {"X-B": "b"}
        assert config.is_empty is False

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            ModifierConfig.model_validate({"bodies": {}})

    def test_frozen(self):
        config = ModifierConfig()

        with pytest.raises(ValidationError):
            config.request = "x"


class TestLoadModifierConfig:

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "modifier.json"
        path.write_text(
            json.dumps(
                {
                    "request": '{"q": "[[ request.api.body.ask ]]"}',
                    "response": {"200": '{"a": "[[ response.body.answer ]]"}'},
                    "headers": {"X-Request-ID": "req_[[ context.unixtime ]]"},
                }
            ),
            encoding="utf-8",
        )

        config = load_modifier_config(str(path))

        assert config.request == '{"q": "[[ request.api.body.ask ]]"}'
        assert list(config.response) == [200]
        assert list(config.headers) == ["X-Request-ID"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_modifier_config(str(tmp_path / "absent.json"))

    def test_invalid_content(self, tmp_path):
        path = tmp_path / "modifier.json"
        path.write_text('{"response": {"ok": "x"}}', encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_modifier_config(str(path))

        assert exc_info.value.context["path"] == str(path)
        assert exc_info.value.context["errors"]


class TestSettings:

    def test_log_level_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_no_config_file_means_empty_config(self):
        assert Settings(modifier_config_file=None).load_modifier_config().is_empty

    def test_config_file_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "modifier.json"
        path.write_text('{"headers": {"X-A": "a"}}', encoding="utf-8")
        monkeypatch.setenv("MODIFIER_CONFIG_FILE", str(path))

        assert Settings().load_modifier_config().headers == {"X-A": "a"}


def test_bundled_example_config_compiles():
    """The sample file shipped for local runs loads and every template compiles."""
    path = Path(__file__).resolve().parent.parent / "examples" / "modifier.json"
    config = load_modifier_config(str(path))
    middleware = ModifierMiddleware(app=None, config=config)

    assert middleware.body_modifier.has_request_template
    assert list(middleware.body_modifier.response_templates) == [200]
    assert set(middleware.header_modifier.templates) == {"X-Request-ID", "Authorization"}
    assert list(middleware.query_modifier.templates) == ["question_id"]
