"""Pydantic schemas for sl_spot API."""
from typing import Self

from pydantic import BaseModel, Field, model_validator


class CreateSpotRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=500)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    price: int = Field(..., gt=0, description="Park Points per booking")
    description: str | None = Field(None, max_length=2000)


class UpdateSpotRequest(BaseModel):
    address: str | None = Field(None, min_length=1, max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    price: int | None = Field(None, gt=0)
    description: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _coordinates_together(self) -> Self:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be updated together")
        return self

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.address, self.latitude, self.price, self.description)
        )


class SpotResponse(BaseModel):
    id: str
    owner_id: str
    address: str
    description: str
    latitude: float
    longitude: float
    price: int
    bookable: bool
    created_at: str | None


class NearbySpotResponse(SpotResponse):
    distance_m: float


class SpotListResponse(BaseModel):
    spots: list[SpotResponse]


class NearbySpotListResponse(BaseModel):
    spots: list[NearbySpotResponse]
