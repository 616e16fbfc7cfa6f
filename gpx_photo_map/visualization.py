"""Render a model snapshot as an interactive Leaflet map."""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Optional, Union

import folium  # Using folium to build an interactive Leaflet map.

from .config import (
    HIGHLIGHT_COLOR,
    HIGHLIGHT_RADIUS,
    IMAGE_MARKER_COLOR,
    MAP_INITIAL_CENTER,
    MAP_INITIAL_ZOOM,
    POPUP_IMAGE_WIDTH,
    SELECTED_PANEL_ID,
    SELECTED_PANEL_WIDTH,
    TRACK_COLOR,
    WAYPOINT_COLOR,
)
from .models import ImageAsset, ImageMarker, ModelSnapshot

PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


def _image_popup(
    marker: ImageMarker, asset: Optional[ImageAsset], *, show: bool = False
) -> folium.Popup:
    caption = f"<div>{html.escape(marker.name)}</div>"
    if asset is None:
        return folium.Popup(html=caption, max_width=POPUP_IMAGE_WIDTH + 20, show=show)
    image = (
        f'<img src="{asset.data_url}" alt="{html.escape(asset.name)}" '
        f'style="width:{POPUP_IMAGE_WIDTH}px;max-width:100%"/>'
    )
    return folium.Popup(
        html=caption + image, max_width=POPUP_IMAGE_WIDTH + 20, show=show
    )


def _selected_image_panel(asset: ImageAsset) -> folium.Element:
    """Fixed overlay showing the selected photo beside the map."""

    name = html.escape(asset.name)
    return folium.Element(
        f'<div id="{SELECTED_PANEL_ID}" style="position:fixed;top:10px;right:10px;'
        f"z-index:1000;background:white;padding:6px;border:1px solid #888;"
        f'max-width:{SELECTED_PANEL_WIDTH}px">'
        f"<h3>Selected Image: {name}</h3>"
        f'<img src="{asset.data_url}" alt="{name}" style="max-width:100%"/>'
        "</div>"
    )


def render_map(snapshot: ModelSnapshot) -> folium.Map:
    """Draw the track, waypoints, photo pins and highlight of ``snapshot``.

    The view starts at the world overview and is fitted to the bounding
    region whenever a track is loaded. A selected photo has its pin popup
    opened and is shown in a panel over the map.
    """

    folium_map = folium.Map(
        location=list(MAP_INITIAL_CENTER), zoom_start=MAP_INITIAL_ZOOM, control_scale=True
    )
    selected = snapshot.selected_image

    if snapshot.track is not None:
        folium.PolyLine(
            snapshot.track.latlon_points(),
            color=TRACK_COLOR,
            weight=3,
            tooltip="Track",
        ).add_to(folium_map)

    for wpt in snapshot.waypoints:
        folium.Marker(
            location=wpt.position.as_tuple(),
            popup=folium.Popup(html=html.escape(wpt.name), max_width=300),
            tooltip=html.escape(wpt.name),
            icon=folium.Icon(color=WAYPOINT_COLOR),
        ).add_to(folium_map)

    for marker in snapshot.image_markers:
        is_selected = selected is not None and marker.name == selected.name
        folium.Marker(
            location=marker.position.as_tuple(),
            popup=_image_popup(
                marker, snapshot.asset_for(marker.name), show=is_selected
            ),
            tooltip=html.escape(marker.name),
            icon=folium.Icon(color=IMAGE_MARKER_COLOR),
        ).add_to(folium_map)

    if snapshot.highlighted is not None:
        folium.CircleMarker(
            location=snapshot.highlighted.position.as_tuple(),
            radius=HIGHLIGHT_RADIUS,
            color=HIGHLIGHT_COLOR,
            weight=1,
            fill=True,
            fill_color=HIGHLIGHT_COLOR,
            tooltip=html.escape(snapshot.highlighted.name),
        ).add_to(folium_map)

    if selected is not None:
        folium_map.get_root().html.add_child(_selected_image_panel(selected))

    if snapshot.bounds is not None:
        folium_map.fit_bounds(snapshot.bounds.as_bounds())

    return folium_map


def save_map(snapshot: ModelSnapshot, output_html_path: PathLike) -> Path:
    """Render ``snapshot`` and write the map as a standalone HTML page."""

    output_path = Path(output_html_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    render_map(snapshot).save(str(output_path))
    LOGGER.info("Map written to %s", output_path)
    return output_path


__all__ = ["render_map", "save_map"]
