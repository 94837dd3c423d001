"""Tests for compose YAML comparison and rendering."""

import pytest
import yaml

from appctl.core.compose import compose_equal, parse_compose, render_compose

COMPOSE = """\
services:
  web:
    image: nginx:1.27
    ports:
      - "8080:80"
"""


class TestParseCompose:
    def test_empty_is_none(self) -> None:
        assert parse_compose(None) is None
        assert parse_compose("   \n") is None

    def test_invalid_yaml_raises(self) -> None:
        with pytest.raises(yaml.YAMLError):
            parse_compose("services: [unclosed")


class TestComposeEqual:
    def test_key_order_and_formatting_ignored(self) -> None:
        reordered = 'services: {web: {ports: ["8080:80"], image: "nginx:1.27"}}'
        assert compose_equal(COMPOSE, reordered) is True

    def test_value_change(self) -> None:
        assert compose_equal(COMPOSE, COMPOSE.replace("1.27", "1.28")) is False

    def test_none_vs_value(self) -> None:
        assert compose_equal(None, COMPOSE) is False
        assert compose_equal(None, None) is True

    def test_invalid_yaml_falls_back_to_string_compare(self) -> None:
        assert compose_equal("a: [", "a: [") is True
        assert compose_equal("a: [", COMPOSE) is False


class TestRenderCompose:
    def test_empty_config_is_none(self) -> None:
        assert render_compose({}) is None
        assert render_compose(None) is None

    def test_round_trips_semantically(self) -> None:
        rendered = render_compose(yaml.safe_load(COMPOSE))
        assert compose_equal(rendered, COMPOSE)

    def test_sorted_keys(self) -> None:
        rendered = render_compose({"volumes": {}, "services": {"web": {"image": "x"}}})
        assert rendered.index("services") < rendered.index("volumes")
