from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class TileConfig(BaseModel):
    id: str = Field(min_length=1)
    name: str
    icon: str = "▶"
    url: Optional[str] = None
    command: List[str] = Field(default_factory=list)
    # Substring looked up in the process table; derived from the command when unset
    process_match_name: Optional[str] = None

    @model_validator(mode="after")
    def _url_or_command(self) -> "TileConfig":
        if bool(self.url) == bool(self.command):
            raise ValueError(f"tile {self.id!r} needs exactly one of 'url' or 'command'")
        return self


class BrowserConfig(BaseModel):
    command: List[str] = Field(default_factory=lambda: ["firefox", "--kiosk"])
    process_match_name: str = "firefox"


def _default_tiles() -> List[TileConfig]:
    return [
        TileConfig(id="netflix", name="Netflix", icon="🎬", url="https://www.netflix.com"),
        TileConfig(id="youtube", name="YouTube", icon="📺", url="https://www.youtube.com/tv"),
        TileConfig(id="prime", name="Prime Video", icon="📦", url="https://www.primevideo.com"),
        TileConfig(id="disney", name="Disney+", icon="🏰", url="https://www.disneyplus.com"),
        TileConfig(id="plex", name="Plex", icon="🎞", url="https://app.plex.tv"),
        TileConfig(id="spotify", name="Spotify", icon="🎵", url="https://open.spotify.com"),
        TileConfig(id="twitch", name="Twitch", icon="🎮", url="https://www.twitch.tv"),
        TileConfig(id="stremio", name="Stremio", icon="🍿", command=["stremio"], process_match_name="stremio"),
    ]


class AppConfig(BaseModel):
    tiles: List[TileConfig] = Field(default_factory=_default_tiles)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    show_time: bool = True
    large_tiles: bool = True
    close_app_on_return: bool = False
    poll_interval_ms: int = Field(default=2500, ge=250)
    start_timeout_ticks: int = Field(default=10, ge=1)
    end_debounce_ticks: int = Field(default=2, ge=1)
    ceiling_minutes: int = Field(default=40, ge=1)
    query_timeout_ms: int = Field(default=1000, ge=50)
    max_query_failures: int = Field(default=5, ge=1)

    def tile(self, tile_id: str) -> Optional[TileConfig]:
        for t in self.tiles:
            if t.id == tile_id:
                return t
        return None

    def to_supervisor_config(self) -> dict:
        return {
            "poll_interval_ms": self.poll_interval_ms,
            "start_timeout_ticks": self.start_timeout_ticks,
            "end_debounce_ticks": self.end_debounce_ticks,
            "ceiling_seconds": self.ceiling_minutes * 60,
            "query_timeout_ms": self.query_timeout_ms,
            "max_query_failures": self.max_query_failures,
        }
