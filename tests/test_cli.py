"""
Tests for the command line interface.
"""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from lumen.cli import main
from lumen.config import load_config


@pytest.fixture
def runner():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield CliRunner()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCli:
    """Test CLI commands."""

    def test_presets(self, runner):
        result = runner.invoke(main, ['-q', 'presets'])
        assert result.exit_code == 0
        assert "Clean Contrast (Neutral)" in result.output
        assert "Golden Hour" in result.output

    def test_presets_json(self, runner):
        result = runner.invoke(main, ['-q', 'presets', '--json'])
        assert result.exit_code == 0
        presets = json.loads(result.output)
        assert presets[0]['globals']['contrast'] == 8

    def test_geometry_json(self, runner):
        result = runner.invoke(main, ['-q', 'geometry', '--viewport', '800x600',
                                      '--natural', '4000x3000', '--json'])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data['fit'] == [800, 600]
        assert data['targetResolution'] == 800
        assert data['options']['debounceMs'] == 80

    def test_geometry_scrubbing_text(self, runner):
        result = runner.invoke(main, ['-q', 'geometry', '-w', '800x600', '-n', '4000x3000',
                                      '--dpr', '2', '--scrubbing'])
        assert result.exit_code == 0
        assert "Target:     1120px" in result.output
        assert "floor only" in result.output

    def test_geometry_bad_size(self, runner):
        result = runner.invoke(main, ['-q', 'geometry', '--viewport', 'wide'])
        assert result.exit_code != 0

    def test_blend_recipe_file(self, runner, tmp_path):
        recipe_path = tmp_path / "recipe.json"
        recipe_path.write_text(json.dumps({'globals': {'contrast': 0}}))

        result = runner.invoke(main, ['-q', 'blend', 'clean contrast',
                                      '--recipe', str(recipe_path), '--intensity', '0.5'])

        assert result.exit_code == 0
        assert json.loads(result.output)['globals']['contrast'] == 4

    def test_blend_to_file(self, runner, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(main, ['-q', 'blend', 'Warm Film', '-o', str(output)])

        assert result.exit_code == 0
        assert json.loads(output.read_text())['globals']['temp'] == 12

    def test_blend_unknown_preset(self, runner):
        result = runner.invoke(main, ['-q', 'blend', 'Nope'])
        assert result.exit_code == 1

    def test_blend_intensity_range(self, runner):
        result = runner.invoke(main, ['-q', 'blend', 'Warm Film', '--intensity', '3'])
        assert result.exit_code != 0

    def test_config_shows_merged_values(self, runner, tmp_path):
        path = tmp_path / "lumen.yaml"
        path.write_text("preview:\n  floor_resolution: 600\n")

        result = runner.invoke(main, ['-q', '-c', str(path), 'config'])

        assert result.exit_code == 0
        config = yaml.safe_load(result.output)
        assert config['preview']['floor_resolution'] == 600
        assert config['sync']['save_delay_ms'] == 300

    def test_config_to_file(self, runner, tmp_path):
        output = tmp_path / "nested" / "effective.yaml"
        result = runner.invoke(main, ['-q', 'config', '-o', str(output)])

        assert result.exit_code == 0
        assert "Configuration written" in result.output
        assert load_config(output) == load_config()
