"""CLI entry point for borderid.

Commands:
    borderid generate - Print a fresh random UUID
    borderid encode   - Render an image whose border carries a UUID
    borderid decode   - Find and decode border UUIDs in an image
    borderid info     - Show the segment layout for the current config
    borderid diagnose - Explain how a single image row decodes
"""

from __future__ import annotations

import logging

import click
import cv2

from ..visual.codec import EncodingError, generate_uuid, uuid_to_bytes
from ..visual.decoder import (
    BorderDecoder,
    DecodeFailure,
    ImageRowSource,
    find_candidates,
    scan_runs,
)
from ..visual.ecc import ReedSolomonError
from ..visual.renderer import encoded_region, render_border
from ..visual.scanner import scan_image
from .config import AppConfig, load_config, save_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _read_image(path: str):
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise click.ClickException(f"Cannot read image: {path}")
    return image


@click.group()
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Enable verbose/debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """borderid: hide a UUID in the color border of an image."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["config"] = load_config(config)
    ctx.obj["verbose"] = verbose

    app: AppConfig = ctx.obj["config"]
    _setup_logging("DEBUG" if verbose else app.log_level)


@cli.command()
def generate() -> None:
    """Print a random (version 4) UUID."""
    click.echo(generate_uuid())


@cli.command()
@click.argument("uuid", required=False)
@click.option("--output", "-o", type=click.Path(), required=True,
              help="Output image (PNG recommended)")
@click.option("--width", "-W", type=int, default=None,
              help="Image width in pixels")
@click.option("--height", "-H", type=int, default=None,
              help="Image height in pixels")
@click.option("--border", "-b", type=int, default=None,
              help="Border thickness in pixels")
@click.option("--radius", "-r", type=int, default=None,
              help="Corner radius in pixels")
@click.option("--save", "-s", is_flag=True, default=False,
              help="Save the render settings to the config file")
@click.pass_context
def encode(ctx: click.Context, uuid: str | None, output: str,
           width: int | None, height: int | None, border: int | None,
           radius: int | None, save: bool) -> None:
    """Render an image whose top border encodes UUID (random if omitted)."""
    config: AppConfig = ctx.obj["config"]
    if width is not None:
        config.render_width = width
    if height is not None:
        config.render_height = height
    if border is not None:
        config.render_border_px = border
    if radius is not None:
        config.render_border_radius = radius

    logger = logging.getLogger("borderid.encode")
    value = uuid or generate_uuid()
    try:
        image = render_border(uuid_to_bytes(value),
                              config.render_width, config.render_height,
                              config.to_codec_config(),
                              config.to_renderer_config())
    except EncodingError as exc:
        raise click.ClickException(str(exc)) from exc

    if not cv2.imwrite(output, image):
        raise click.ClickException(f"Cannot write image: {output}")
    logger.info("Wrote %s (%dx%d)", output, config.render_width, config.render_height)
    click.echo(value)

    if save:
        save_config(config, ctx.obj["config_path"])


@cli.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--all", "-a", "find_all", is_flag=True, default=False,
              help="Report every distinct UUID instead of the first")
@click.option("--details", "-d", is_flag=True, default=False,
              help="Show row, confidence and correction status")
@click.pass_context
def decode(ctx: click.Context, image_path: str, find_all: bool,
           details: bool) -> None:
    """Find and decode the border UUID in IMAGE_PATH."""
    config: AppConfig = ctx.obj["config"]
    image = _read_image(image_path)

    hits = scan_image(image, config.to_codec_config(), config.to_decoder_config(),
                      max_hits=None if find_all else 1)
    if not hits:
        click.echo("No encoded border found", err=True)
        ctx.exit(1)

    for hit in hits:
        if details:
            res = hit.result
            click.echo(f"{hit.uuid}  row={hit.row} confidence={res.confidence:.2f} "
                       f"corrected={'yes' if res.errors_corrected else 'no'} "
                       f"end_marker={'yes' if res.end_marker_matched else 'no'}")
        else:
            click.echo(hit.uuid)


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show the segment layout for the current configuration."""
    config: AppConfig = ctx.obj["config"]
    codec = config.to_codec_config()
    region_start, region_width = encoded_region(
        config.render_width, codec, config.to_renderer_config())

    click.echo(f"Palette:          {codec.palette_mode.value} ({len(codec.palette)} colors)")
    click.echo(f"Redundancy:       {codec.redundancy_factor}")
    click.echo(f"Parity bytes:     {codec.parity_bytes} "
               f"(corrects {codec.parity_bytes // 2} bytes)")
    click.echo(f"Total segments:   {codec.total_segments}")
    click.echo(f"Interleave:       {codec.interleave_stride or 'off'}")
    click.echo(f"Render width:     {config.render_width}px "
               f"({region_width // codec.total_segments}px per segment, "
               f"encoded x={region_start}..{region_start + region_width})")


@cli.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--row", "-y", type=int, default=0, help="Image row to inspect")
@click.option("--start", type=int, default=0, help="Region start x")
@click.option("--width", type=int, default=None, help="Region width (default: rest of row)")
@click.pass_context
def diagnose(ctx: click.Context, image_path: str, row: int, start: int,
             width: int | None) -> None:
    """Explain how one row of IMAGE_PATH decodes."""
    config: AppConfig = ctx.obj["config"]
    codec = config.to_codec_config()
    dcfg = config.to_decoder_config()
    image = _read_image(image_path)
    if not 0 <= row < image.shape[0]:
        raise click.ClickException(f"Row {row} outside image height {image.shape[0]}")

    source = ImageRowSource(image, row)
    if width is None:
        width = source.width - start

    runs = scan_runs(source, start, start + width, codec.palette, dcfg.tolerance)
    click.echo(f"Runs: {len(runs)}")
    for run in runs[:12]:
        click.echo(f"  x={run.start}..{run.end} index={run.index}")
    if len(runs) > 12:
        click.echo(f"  ... {len(runs) - 12} more")

    candidates = find_candidates(source, start, width, codec, dcfg)
    click.echo(f"Candidates: {len(candidates)}")
    for geom in candidates:
        click.echo(f"  {geom.strategy:<11} start={geom.start_x:.2f} "
                   f"end={geom.end_x(codec.total_segments):.2f} "
                   f"segment={geom.segment_width:.3f}")

    try:
        result = BorderDecoder(codec, dcfg).decode_or_raise(source, start, width)
    except (DecodeFailure, ReedSolomonError) as exc:
        click.echo(f"Decode failed: {type(exc).__name__}: {exc}")
        ctx.exit(1)
    click.echo(f"Decoded: {result.uuid} via {result.geometry.strategy} "
               f"(confidence {result.confidence:.2f}, "
               f"corrected={'yes' if result.errors_corrected else 'no'}, "
               f"end_marker={'yes' if result.end_marker_matched else 'no'})")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
