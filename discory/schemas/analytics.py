"""
Discory Backend — Analytics Schemas
====================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from discory.schemas.common import ApiModel


class Bucket(BaseModel):
    label: str
    count: int


class CollectionAnalytics(ApiModel):
    total: int
    by_genre: List[Bucket] = Field(alias="byGenre")
    top_artists: List[Bucket] = Field(alias="topArtists")
    by_year: List[Bucket] = Field(alias="byYear")
    average_rating: Optional[float] = Field(alias="averageRating")
    added_last_7_days: int = Field(alias="addedLast7Days")


class PersonalStats(ApiModel):
    total: int
    distinct_genres: int = Field(alias="distinctGenres")
    distinct_artists: int = Field(alias="distinctArtists")
    distinct_years: int = Field(alias="distinctYears")
    average_rating: Optional[float] = Field(alias="averageRating")
    first_added: Optional[datetime] = Field(alias="firstAdded")
    last_added: Optional[datetime] = Field(alias="lastAdded")


class CompareResult(ApiModel):
    user_a: uuid.UUID = Field(alias="userA")
    user_b: uuid.UUID = Field(alias="userB")
    total_a: int = Field(alias="totalA")
    total_b: int = Field(alias="totalB")
    common_genres: int = Field(alias="commonGenres")
    common_artists: int = Field(alias="commonArtists")
