#!/usr/bin/env python3
"""
Tests for configuration loading, overrides and validation.
"""
import os

import pytest
import yaml

from genebuild.config import ConfigManager, ConfigSchema, DEFAULT_CONFIG
from genebuild.exceptions import ConfigurationError
from genebuild.pipelines.est_discrimination import normalize_coverage_cutoff
from genebuild.pipelines.pseudogene import ClassifierOptions


@pytest.fixture
def config_file(tmp_path):
    def _write(data, name="config.yml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return str(path)
    return _write


class TestConfigManager:

    def test_defaults(self):
        config = ConfigManager()

        assert config.get('pseudogene.min_coverage') == 90.0
        assert config.get('est_discrimination.distance_twilight') == 0.02
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_file_overrides_defaults(self, config_file):
        path = config_file({'pseudogene': {'min_coverage': 85}})
        config = ConfigManager(path)

        assert config.get('pseudogene.min_coverage') == 85
        # untouched values stay at their defaults
        assert config.get('pseudogene.min_percent_id') == 97.0

    def test_local_config_is_merged(self, config_file):
        path = config_file({'pseudogene': {'min_coverage': 85}})
        config_file({'pseudogene': {'min_coverage': 80}}, name="config.local.yml")

        assert ConfigManager(path).get('pseudogene.min_coverage') == 80

    def test_missing_file_keeps_defaults(self, tmp_path):
        config = ConfigManager(str(tmp_path / "absent.yml"))
        assert config.config == DEFAULT_CONFIG

    def test_malformed_file_raises(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("pseudogene: [unclosed")

        with pytest.raises(ConfigurationError):
            ConfigManager(str(path))

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GENEBUILD_PSEUDOGENE__MIN_COVERAGE", "75")
        monkeypatch.setenv("GENEBUILD_PSEUDOGENE__BEST_IN_GENOME", "false")

        config = ConfigManager()

        assert config.get('pseudogene.min_coverage') == 75
        assert config.get('pseudogene.best_in_genome') is False

    def test_flat_option_names(self, config_file):
        path = config_file({'est_discrimination': {'est_coverage_cutoff': 80},
                            'paths': {'genomic_dir': '/data/genome'}})
        config = ConfigManager(path)

        assert config.get_option('EST_COVERAGE_CUTOFF') == 80
        assert config.get_option('est_genomic') == '/data/genome'
        assert normalize_coverage_cutoff(config.get_option('EST_COVERAGE_CUTOFF')) == pytest.approx(0.8)

    def test_unknown_flat_option(self):
        with pytest.raises(ConfigurationError):
            ConfigManager().get_option('NO_SUCH_OPTION')

    def test_sections_and_paths(self):
        config = ConfigManager()

        assert config.get_section('pseudogene')['logic_name'] == 'pseudogene'
        assert config.get_section('nothing') == {}
        assert config.get_db_config('est_database')['database'] == 'genebuild_est'
        assert config.get_tool_path('exonerate') == 'exonerate'

    def test_classifier_options_from_section(self, config_file):
        path = config_file({'pseudogene': {'min_percent_id': 95, 'best_in_genome': False}})
        options = ClassifierOptions.from_config(ConfigManager(path).get_section('pseudogene'))

        assert options.min_percent_id == 95.0
        assert options.best_in_genome is False


class TestConfigSchema:

    def test_defaults_are_valid(self):
        assert ConfigSchema.validate(DEFAULT_CONFIG) == []

    def test_wrong_type(self):
        config = {**DEFAULT_CONFIG, 'pseudogene': {**DEFAULT_CONFIG['pseudogene'], 'min_coverage': 'high'}}
        errors = ConfigSchema.validate(config)

        assert any('pseudogene.min_coverage' in error for error in errors)

    def test_bool_is_not_a_number(self):
        config = {**DEFAULT_CONFIG, 'pseudogene': {**DEFAULT_CONFIG['pseudogene'], 'min_coverage': True}}
        assert ConfigSchema.validate(config)

    def test_unknown_distance_mode(self):
        section = {**DEFAULT_CONFIG['est_discrimination'], 'distance_mode': 'protein'}
        errors = ConfigSchema.validate({**DEFAULT_CONFIG, 'est_discrimination': section})

        assert any('distance_mode' in error for error in errors)

    def test_missing_required_section(self):
        config = {key: value for key, value in DEFAULT_CONFIG.items() if key != 'pseudogene'}
        errors = ConfigSchema.validate(config)

        assert "Missing required configuration section: pseudogene" in errors
