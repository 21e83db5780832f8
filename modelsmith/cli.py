"""
ModelSmith CLI - developer tools for model assets
"""

import json
import logging
import sys

import click

from modelsmith.assets.container import HEADER_CHUNK, SDF_CHUNK, read_asset
from modelsmith.assets.codec import unpack_model_header
from modelsmith.exceptions import AssetFormatError, SceneImportError
from modelsmith.importer.scene import JsonSceneImporter
from modelsmith.options import ImportOptions, LightmapUVsSource
from modelsmith.texturing.lightmap_atlas import plan_lightmap_atlas, render_atlas_preview


@click.group()
@click.version_option(package_name="modelsmith")
@click.option('--verbose', '-v', is_flag=True, help='Show log output')
def cli(verbose):
    """
    ModelSmith - Inspect model assets and lightmap atlas layouts.

    Examples:
        modelsmith inspect Content/car.msa
        modelsmith atlas car.json -o atlas.png
    """
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


@cli.command()
@click.argument('asset_path')
def inspect(asset_path):
    """
    Show the contents of an asset container.

    Examples:
        modelsmith inspect Content/car.msa
    """
    try:
        container = read_asset(asset_path)
    except FileNotFoundError:
        click.secho(f"Error: Asset file not found: {asset_path}", fg='red', err=True)
        sys.exit(1)
    except AssetFormatError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)

    click.echo(f"Type: {container.type_name} (version {container.serialized_version})")
    for index in sorted(container.chunks):
        if index == HEADER_CHUNK:
            label = "header"
        elif index == SDF_CHUNK:
            label = "SDF"
        else:
            label = f"LOD {index - 1}"
        click.echo(f"  Chunk {index:2d} ({label}): {len(container.chunks[index])} bytes")

    if container.type_name in ("Model", "SkinnedModel") and HEADER_CHUNK in container.chunks:
        try:
            header = unpack_model_header(container.chunks[HEADER_CHUNK])
        except AssetFormatError as e:
            click.secho(f"Error: {e}", fg='red', err=True)
            sys.exit(1)
        click.echo("Material slots:")
        for index, slot in enumerate(header.material_slots):
            material = slot.material_id or "none"
            click.echo(f"  [{index}] {slot.name!r} shadows={slot.shadows_mode.name} material={material}")
        for lod_index, lod in enumerate(header.lods):
            click.echo(f"LOD {lod_index} (screen size {lod.screen_size:.3f}): {', '.join(lod.mesh_names)}")

    if container.metadata:
        try:
            metadata = json.loads(container.metadata.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            click.secho("Warning: import metadata is not valid JSON", fg='yellow', err=True)
        else:
            click.echo("Import options:")
            click.echo(json.dumps(metadata, indent=2))


@cli.command()
@click.argument('scene_path')
@click.option('-o', '--output', required=True, help='Output image path (.png)')
@click.option('--size', default=256, show_default=True, help='Preview image size in pixels')
def atlas(scene_path, output, size):
    """
    Plan the lightmap atlas of a JSON scene and save a preview image.

    Examples:
        modelsmith atlas car.json -o atlas.png --size 512
    """
    options = ImportOptions(lightmap_uvs_source=LightmapUVsSource.GENERATE)
    try:
        data = JsonSceneImporter().import_scene(scene_path, options, "")
    except SceneImportError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)

    if not data.lods or not data.lods[0].meshes:
        click.secho("Error: Scene has no meshes", fg='red', err=True)
        sys.exit(1)

    plan = plan_lightmap_atlas(data.lods[0].meshes)
    if plan is None:
        click.secho("Error: Could not pack lightmap atlas", fg='red', err=True)
        sys.exit(1)

    render_atlas_preview(plan, size=size).save(output)
    click.echo(f"Atlas size {plan.atlas_size:.4f} after {plan.attempts} attempt(s), {len(plan.slots)} chart(s)")
    click.secho(f"✓ Saved atlas preview to {output}", fg='green')


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
