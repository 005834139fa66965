"""Command-line interface for rastermap.

This module provides CLI commands for rendering map images from a CSV
record table using the Typer framework.
"""
from pathlib import Path
from typing import Optional, Tuple

import pandas as pd
import typer

from . import config
from .area_definitions import (BoundingBox, CenterZoom, calc_zoom, make_bbox,
                               resolve)
from .colorscale import ColorScale
from .compositor import compose, compose_facets, save
from .data_sources import PROVIDERS, Provider, TileCache, get_provider
from .exceptions import RasterMapError
from .overlays import FacetGrid, OverlayEngine, PointStyle
from .records import as_frame

app = typer.Typer(help="Static raster maps with point and density overlays.")


@app.callback()
def callback():
    """Static raster maps with point and density overlays."""


@app.command()
def styles(provider: Optional[str] = typer.Argument(None, help="stamen, google or osm")):
    """List the styles each tile provider supports."""
    providers = [Provider(provider)] if provider else list(Provider)
    for member in providers:
        names = ", ".join(s.value for s in PROVIDERS[member].styles)
        typer.echo(f"{member.value}: {names}")


@app.command()
def render(
    csv: Path = typer.Argument(..., exists=True, help="CSV file with longitude/latitude columns"),
    output: Path = typer.Option(Path("map.png"), "--output", "-o"),
    bbox: Optional[Tuple[float, float, float, float]] = typer.Option(
        None, help="left bottom right top"),
    center: Optional[Tuple[float, float]] = typer.Option(None, help="lon lat"),
    zoom: Optional[int] = typer.Option(None, help="zoom level; guessed from the data if omitted"),
    provider: str = typer.Option("stamen"),
    style: str = typer.Option("toner-lite"),
    mode: str = typer.Option("points", help="points, density-contour or density-filled"),
    bins: int = typer.Option(5),
    facet: Optional[str] = typer.Option(None, help="column to facet on"),
    lon: str = typer.Option("longitude", help="longitude column"),
    lat: str = typer.Option("latitude", help="latitude column"),
    cmap: str = typer.Option("viridis"),
    opacity: float = typer.Option(0.5),
    env: str = typer.Option("DEFAULT", help="settings environment"),
):
    """Render CSV records over a base map and write a PNG."""
    if env != "DEFAULT":
        config.change_env(env)
    typer.echo(f"Environment: {env}")

    records = as_frame(pd.read_csv(csv), lon=lon, lat=lat,
                       category=facet or "category")
    try:
        if bbox and None not in bbox:
            left, bottom, right, top = bbox
            request = BoundingBox(left, bottom, right, top,
                                  zoom or calc_zoom(left, bottom, right, top))
        elif center and None not in center:
            if zoom is None:
                raise typer.BadParameter("--center needs --zoom")
            request = CenterZoom(center[0], center[1], zoom)
        else:
            left, bottom, right, top = make_bbox(records["longitude"], records["latitude"])
            request = BoundingBox(left, bottom, right, top,
                                  zoom or calc_zoom(left, bottom, right, top))

        mosaic = TileCache().fetch(get_provider(provider), resolve(request), style)
        engine = OverlayEngine(bins=bins)
        overlay = engine.render(records, mosaic, mode, PointStyle(),
                                group_by="category" if facet else None)
        if isinstance(overlay, FacetGrid):
            image = compose_facets(mosaic, overlay, ColorScale.sequential(cmap),
                                   opacity).image
        else:
            image = compose(mosaic, [overlay], None, opacity)
    except (RasterMapError, ValueError) as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)

    save(image, output)
    typer.echo(f"Wrote {output}")


if __name__ == "__main__":
    app()
