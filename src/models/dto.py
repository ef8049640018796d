#!/usr/bin/env python
"""
Pydantic DTOs for song metadata and play records exchanged over the API.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SongInfo(BaseModel):
    """Display metadata for a song on a streaming platform."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    artist: str = Field(min_length=1)
    album: Optional[str] = None
    pic: Optional[str] = None


class PlayRecordDTO(BaseModel):
    """A user's last playback position for one song."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    platform: str = Field(min_length=1)
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    artist: str = Field(min_length=1)
    album: Optional[str] = None
    pic: Optional[str] = None
    play_time: float = Field(default=0, ge=0, alias="playTime")
    duration: float = Field(default=0, ge=0)
    save_time: Optional[int] = Field(default=None, alias="saveTime")

    def song_info(self) -> SongInfo:
        return SongInfo(id=self.id, name=self.name, artist=self.artist, album=self.album, pic=self.pic)


__all__ = ["SongInfo", "PlayRecordDTO"]
