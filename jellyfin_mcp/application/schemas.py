from typing import Any, Dict, List, Literal, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from jellyfin_mcp.domain.errors import InvalidArguments


View = Literal["Movies", "Shows", "Episodes", "Music", "All"]
Sort = Literal["Random", "CommunityRating", "PremiereDate", "PlayCount", "DateCreated"]


class _Input(BaseModel):
    model_config = ConfigDict(extra='ignore')


class Filters(_Input):
    include_item_types: Optional[List[str]] = None
    genres: Optional[List[str]] = None
    people: Optional[List[str]] = None
    studios: Optional[List[str]] = None
    year_range: Optional[Tuple[int, int]] = None
    runtime_minutes: Optional[Tuple[int, int]] = None
    kid_safe: Optional[bool] = None
    text: Optional[str] = None


class ListItemsInput(_Input):
    view: View = "All"
    filters: Optional[Filters] = None
    sort: Sort = "DateCreated"
    limit: int = Field(gt=0, le=200)
    cursor: Optional[str] = None


class SearchItemsInput(_Input):
    query: Optional[str] = None
    filters: Optional[Filters] = None
    limit: int = Field(default=24, gt=0, le=100)
    cursor: Optional[str] = None


class NextUpInput(_Input):
    series_id: Optional[str] = None
    limit: int = Field(default=10, gt=0, le=50)


class RecommendSimilarInput(_Input):
    seed_item_id: Optional[str] = None
    mood: Optional[str] = None
    limit: int = Field(default=10, gt=0, le=50)

    @model_validator(mode='after')
    def _seed_or_mood(self) -> 'RecommendSimilarInput':
        if not (self.seed_item_id or self.mood):
            raise ValueError("Provide seed_item_id or mood")
        return self


class GetStreamInfoInput(_Input):
    item_id: str = Field(min_length=1)


class AuthenticateUserInput(_Input):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SetTokenInput(_Input):
    access_token: str = Field(min_length=1)
    user_id: Optional[str] = None


M = TypeVar('M', bound=BaseModel)


def _describe(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = '.'.join(str(p) for p in detail.get('loc', ()))
        message = detail.get('msg', 'invalid value')
        parts.append(f"{location}: {message}" if location else message)
    return '; '.join(parts)


def parse_input(model: Type[M], arguments: Optional[Dict[str, Any]]) -> M:
    """Validate raw operation arguments, raising ``InvalidArguments`` on failure."""
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        raise InvalidArguments(_describe(e)) from e
