"""Tests for YAML configuration loading and environment overrides."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from feature_env.config import load, plan
from feature_env.config.loader import ConfigError, load_config
from feature_env.planner.errors import ValidationError
from feature_env.resources import ReferenceRole

if TYPE_CHECKING:
    from collections.abc import Callable

    from feature_env.config.schema import PlanInput


class TestLoadConfig:
    def test_full_document(self, make_config: Callable[..., PlanInput]) -> None:
        cfg = make_config()
        assert cfg.feature_name == "feature-1234"
        assert cfg.deployment.pr_id == "1234"
        assert cfg.deployment.nordic_image.tag == "2024.10.1"
        assert cfg.deployment.feature_flags.enable_playground is True
        assert cfg.deployment.feature_flags.has_custom_jwt_secret is False
        assert cfg.references.identity is not None
        assert cfg.references.identity.role == ReferenceRole.IDENTITY

    def test_config_dir(self, tmp_path: Path, make_config: Callable[..., PlanInput]) -> None:
        assert make_config().config_dir == tmp_path

    def test_accepts_string_path(self, tmp_path: Path, config_yaml: str) -> None:
        (tmp_path / "c.yaml").write_text(config_yaml)
        assert load_config(str(tmp_path / "c.yaml")).feature_name == "feature-1234"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            load_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, make_config: Callable[..., PlanInput]) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            make_config("feature_name: [unclosed\n")

    def test_top_level_must_be_mapping(self, make_config: Callable[..., PlanInput]) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            make_config("- a\n- b\n")

    def test_empty_file(self, make_config: Callable[..., PlanInput]) -> None:
        with pytest.raises(ConfigError, match="feature_name"):
            make_config("")

    def test_unknown_deployment_option(
        self, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        yaml = config_yaml.replace("  pr_id: 1234\n", "  pr_id: 1234\n  region: westeurope\n")
        with pytest.raises(ConfigError, match="region"):
            make_config(yaml)


class TestOverrides:
    def _without(self, yaml: str, line: str) -> str:
        assert line in yaml
        return yaml.replace(line, "")

    def test_env_var_fills_missing_pr_id(
        self,
        monkeypatch: pytest.MonkeyPatch,
        make_config: Callable[..., PlanInput],
        config_yaml: str,
    ) -> None:
        monkeypatch.setenv("FEATURE_ENV_PR_ID", "5678")
        cfg = make_config(self._without(config_yaml, "  pr_id: 1234\n"))
        assert cfg.deployment.pr_id == "5678"

    def test_yaml_wins_over_env_var(
        self, monkeypatch: pytest.MonkeyPatch, make_config: Callable[..., PlanInput]
    ) -> None:
        monkeypatch.setenv("FEATURE_ENV_PR_ID", "5678")
        assert make_config().deployment.pr_id == "1234"

    def test_dotenv_fills_missing_feature_name(
        self, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        yaml = self._without(config_yaml, "feature_name: feature-1234\n")
        cfg = make_config(yaml, dotenv="FEATURE_ENV_FEATURE_NAME=pr-42\n")
        assert cfg.feature_name == "pr-42"

    def test_env_var_wins_over_dotenv(
        self,
        monkeypatch: pytest.MonkeyPatch,
        make_config: Callable[..., PlanInput],
        config_yaml: str,
    ) -> None:
        monkeypatch.setenv("FEATURE_ENV_FEATURE_NAME", "from-env")
        yaml = self._without(config_yaml, "feature_name: feature-1234\n")
        cfg = make_config(yaml, dotenv="FEATURE_ENV_FEATURE_NAME=from-dotenv\n")
        assert cfg.feature_name == "from-env"

    def test_image_tag_override_is_nested(
        self,
        monkeypatch: pytest.MonkeyPatch,
        make_config: Callable[..., PlanInput],
        config_yaml: str,
    ) -> None:
        monkeypatch.setenv("FEATURE_ENV_WORKER_IMAGE_TAG", "sha-abc123")
        yaml = config_yaml.replace(
            '    name: nordic-worker\n    tag: "2024.10.1"\n', "    name: nordic-worker\n"
        )
        cfg = make_config(yaml)
        assert cfg.deployment.worker_image.tag == "sha-abc123"
        assert cfg.deployment.nordic_image.tag == "2024.10.1"

    def test_unrelated_dotenv_keys_ignored(self, make_config: Callable[..., PlanInput]) -> None:
        cfg = make_config(dotenv="FEATURE_ENV_LOG=debug\nOTHER=1\n")
        assert cfg.feature_name == "feature-1234"

    def test_dotenv_with_byte_order_mark(
        self, tmp_path: Path, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        (tmp_path / ".env").write_bytes(b"\xef\xbb\xbfFEATURE_ENV_FEATURE_NAME=pr-7\n")
        cfg = make_config(self._without(config_yaml, "feature_name: feature-1234\n"))
        assert cfg.feature_name == "pr-7"

    def test_dotenv_key_without_value_ignored(
        self, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        yaml = self._without(config_yaml, "  pr_id: 1234\n")
        cfg = make_config(yaml, dotenv="FEATURE_ENV_PR_ID\nFEATURE_ENV_PR_ID=77\n")
        assert cfg.deployment.pr_id == "77"

    def test_non_mapping_section_rejected(
        self, monkeypatch: pytest.MonkeyPatch, make_config: Callable[..., PlanInput]
    ) -> None:
        monkeypatch.setenv("FEATURE_ENV_PR_ID", "1")
        with pytest.raises(ConfigError, match="'deployment' must be a mapping"):
            make_config("feature_name: pr-1\ndeployment: nope\n")


class TestPlanApi:
    def test_load_and_plan(self, make_config: Callable[..., PlanInput]) -> None:
        plan_obj = plan(make_config())
        assert plan_obj.feature == "feature-1234"
        assert plan_obj.outputs.feature_url == "https://feature-1234.cust.nisportal.com"

    def test_load_alias(self, tmp_path: Path, config_yaml: str) -> None:
        (tmp_path / "feature-env.yaml").write_text(config_yaml)
        assert load(tmp_path / "feature-env.yaml").feature_name == "feature-1234"

    def test_missing_reference_surfaces_from_plan(
        self, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        start = config_yaml.index("  dns_zone:")
        cfg = make_config(config_yaml[:start])
        with pytest.raises(ValidationError) as exc_info:
            plan(cfg)
        assert exc_info.value.reason == "missing-reference"

    def test_invalid_feature_name_surfaces_from_plan(
        self, make_config: Callable[..., PlanInput], config_yaml: str
    ) -> None:
        cfg = make_config(config_yaml.replace("feature-1234", "Feature_1234", 1))
        with pytest.raises(ValidationError) as exc_info:
            plan(cfg)
        assert exc_info.value.reason == "invalid-name"
