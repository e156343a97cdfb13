from __future__ import annotations

import os

from packages.shared.config import AppConfig, TileConfig

from .errors import CatalogError
from .types import LaunchRequest


def _default_match_name(tile: TileConfig) -> str:
    return os.path.basename(tile.command[0]).lower()


def build_request(cfg: AppConfig, tile_id: str) -> LaunchRequest:
    tile = cfg.tile(tile_id)
    if tile is None:
        raise CatalogError(f"unknown tile: {tile_id}")

    if tile.url:
        if not cfg.browser.command:
            raise CatalogError("no browser command configured for URL tiles")
        command = [*cfg.browser.command, tile.url]
        match = tile.process_match_name or cfg.browser.process_match_name
    else:
        command = list(tile.command)
        match = tile.process_match_name or _default_match_name(tile)

    try:
        return LaunchRequest(
            target_id=tile.id,
            command=command,
            process_match_name=match,
            display_name=tile.name,
        )
    except ValueError as e:
        raise CatalogError(str(e)) from e
