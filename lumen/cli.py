#!/usr/bin/env python3
"""
Lumen Command Line Interface

Inspection tools for the preview core: list the built-in presets, see what
the geometry resolver decides for a given layout, dump the effective
configuration, and blend a preset into a recipe file.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from .config import get_config_value, load_config, save_config
from .editor.models import EditRecipe
from .editor.presets import INTENSITY_RANGE, PRESETS, get_preset
from .editor.store import RecipeStore
from .preview import geometry
from .preview.models import PreviewPolicy, Size
from .utils.logging import setup_console_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    Lumen - live preview core for a photo editor

    Tools for inspecting presets, preview geometry and edit recipes.
    """
    if ctx.obj is None:
        ctx.obj = {}

    # Configure logging level
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    else:
        level = 'INFO'
    setup_console_logging(level)

    # Load configuration
    ctx.obj['config'] = load_config(config)
    if not (verbose or quiet):
        level = get_config_value(ctx.obj['config'], 'logging.level', level)
    setup_console_logging(level, color=get_config_value(ctx.obj['config'], 'logging.color', True))

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.option('--json', 'as_json', is_flag=True, help='Print presets as JSON')
def presets(as_json: bool = False):
    """List the built-in presets."""
    if as_json:
        click.echo(json.dumps([
            {'name': p.name, 'mood': p.mood, 'notes': p.notes, 'globals': p.globals.to_dict()}
            for p in PRESETS
        ], indent=2))
        return

    for preset in PRESETS:
        click.echo(f"{preset.name} ({preset.mood})")
        click.echo(f"  {preset.notes}")
        changed = {k: v for k, v in preset.globals.to_dict().items() if v}
        click.echo("  " + ", ".join(f"{k}={v:g}" for k, v in changed.items()))


def _parse_size(value: Optional[str]) -> Optional[Size]:
    if value is None:
        return None
    try:
        width, height = value.lower().split('x')
        return Size(float(width), float(height))
    except ValueError:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}")


@main.command('geometry')
@click.option('--viewport', '-w', required=True, help='Viewport size, e.g. 800x600')
@click.option('--natural', '-n', help='Natural image size, e.g. 4000x3000')
@click.option('--zoom', '-z', type=float, help='Zoom percent (omit for fit to window)')
@click.option('--dpr', type=float, default=1.0, show_default=True, help='Device pixel ratio')
@click.option('--scrubbing', is_flag=True, help='Resolve as if a slider is being dragged')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_context
def geometry_command(ctx, viewport: str, natural: Optional[str] = None,
                     zoom: Optional[float] = None, dpr: float = 1.0,
                     scrubbing: bool = False, as_json: bool = False):
    """
    Show the fit, frame, target resolution and request options for a layout.
    """
    policy = PreviewPolicy.from_config(ctx.obj.get('config'))
    result = geometry.resolve(
        viewport=_parse_size(viewport),
        natural=_parse_size(natural),
        zoom_enabled=zoom is not None,
        zoom_percent=zoom if zoom is not None else 100,
        device_pixel_ratio=dpr,
        is_scrubbing=scrubbing,
        policy=policy,
    )

    options = result.options
    if as_json:
        click.echo(json.dumps({
            'fit': [result.fit.width, result.fit.height] if result.fit else None,
            'frame': vars(result.frame) if result.frame else None,
            'zoomScale': result.zoom_scale,
            'targetResolution': result.target_resolution,
            'options': {
                'maxDimension': options.max_dimension,
                'debounceMs': options.debounce_ms,
                'progressive': options.progressive,
                'progressiveFloor': options.progressive_floor,
                'skipHigh': options.skip_high,
            },
        }, indent=2))
        return

    if result.fit:
        click.echo(f"Fit:        {result.fit.width:.0f}x{result.fit.height:.0f}")
    else:
        click.echo("Fit:        unknown (image not measured)")
    if result.frame:
        frame = result.frame
        click.echo(f"Frame:      {frame.width:.0f}x{frame.height:.0f} at ({frame.left:.0f}, {frame.top:.0f})")
    click.echo(f"Zoom scale: {result.zoom_scale:g}")
    click.echo(f"Target:     {result.target_resolution}px")
    mode = 'floor only' if options.skip_high else ('progressive' if options.progressive else 'single pass')
    click.echo(f"Requests:   {mode}, floor {options.progressive_floor}px, "
               f"debounce {options.debounce_ms}ms")


@main.command('config')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write the effective configuration here instead of stdout')
@click.pass_context
def config_command(ctx, output: Optional[str] = None):
    """
    Show the effective configuration (packaged defaults plus --config).
    """
    config = ctx.obj['config']
    if not output:
        click.echo(yaml.safe_dump(config, default_flow_style=False, sort_keys=False), nl=False)
        return

    if not save_config(config, Path(output)):
        click.echo(f"❌ Could not write configuration to {output}", err=True)
        sys.exit(1)
    click.echo(f"✅ Configuration written to {output}")


@main.command()
@click.argument('preset_name')
@click.option('--recipe', '-r', 'recipe_path', type=click.Path(exists=True, dir_okay=False),
              help='Recipe JSON file to blend into (defaults to a new recipe)')
@click.option('--intensity', '-i', type=click.FloatRange(*INTENSITY_RANGE), default=1.0,
              show_default=True, help='Blend strength')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write the result here instead of stdout')
def blend(preset_name: str, recipe_path: Optional[str] = None, intensity: float = 1.0,
          output: Optional[str] = None):
    """
    Apply a preset to a recipe at the given intensity.

    PRESET_NAME: Name of a built-in preset (see `lumen presets`)
    """
    preset = get_preset(preset_name)
    if preset is None:
        click.echo(f"❌ Unknown preset: {preset_name}", err=True)
        sys.exit(1)

    recipe = EditRecipe()
    if recipe_path:
        try:
            recipe = EditRecipe.from_dict(json.loads(Path(recipe_path).read_text()))
        except (ValueError, TypeError, AttributeError) as e:
            click.echo(f"❌ Could not read recipe {recipe_path}: {e}", err=True)
            sys.exit(1)

    store = RecipeStore(recipe)
    store.apply_preset(preset, intensity)
    text = json.dumps(store.recipe.to_dict(), indent=2)

    if output:
        Path(output).write_text(text + "\n")
        logger.info(f"Wrote blended recipe to {output}")
        click.echo(f"✅ Applied {preset.name} at {intensity:g} -> {output}")
    else:
        click.echo(text)


if __name__ == '__main__':
    main()
