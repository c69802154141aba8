from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


class MediaType(str, Enum):
    MOVIE = "movie"
    SHOW = "show"


class CredentialRecord(BaseModel):
    """
    OAuth token record as persisted on disk. Unknown fields returned by the
    token endpoint (token_type, scope, ...) are kept and written back.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    created_at: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    client_id: str = Field(
        "", validation_alias=AliasChoices("client_id", "CLIENT_ID")
    )
    client_secret: str = Field(
        "", validation_alias=AliasChoices("client_secret", "CLIENT_SECRET")
    )


class TraktIds(BaseModel):
    model_config = ConfigDict(extra="ignore")

    trakt: int


class MediaRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    year: Optional[int] = None
    ids: TraktIds

    @model_validator(mode="before")
    @classmethod
    def _null_title(cls, data):
        if isinstance(data, dict) and data.get("title") is None:
            data = {**data, "title": ""}
        return data


class CreditEntry(BaseModel):
    """One title/role association: exactly one of ``movie`` or ``show``."""

    model_config = ConfigDict(extra="ignore")

    movie: Optional[MediaRef] = None
    show: Optional[MediaRef] = None
    character: Optional[str] = None
    job: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_media(self) -> "CreditEntry":
        if (self.movie is None) == (self.show is None):
            raise ValueError("credit entry must carry exactly one of movie/show")
        return self

    @property
    def media_type(self) -> MediaType:
        return MediaType.MOVIE if self.movie is not None else MediaType.SHOW

    @property
    def media(self) -> MediaRef:
        return self.movie if self.movie is not None else self.show  # type: ignore[return-value]


class PersonCredits(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cast: List[CreditEntry] = Field(default_factory=list)
    crew: Dict[str, List[CreditEntry]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _null_buckets(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("cast") is None:
                data["cast"] = []
            if data.get("crew") is None:
                data["crew"] = {}
        return data

    def merged_with(self, other: "PersonCredits") -> "PersonCredits":
        crew: Dict[str, List[CreditEntry]] = {
            dept: list(entries) for dept, entries in self.crew.items()
        }
        for dept, entries in other.crew.items():
            crew.setdefault(dept, []).extend(entries)
        return PersonCredits(cast=[*self.cast, *other.cast], crew=crew)


class Person(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    ids: TraktIds


class PersonMatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    person: Person


class TraktList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    ids: TraktIds


@dataclass(frozen=True, slots=True)
class FilteredResult:
    title: str
    year: Optional[int]
    catalog_id: int
    media_type: MediaType
    role_label: str
