"""Pydantic schemas for MealPick API.

Request/response models for:
- Recipes
- Recommendations (Quick Pick / Smart Match)
- AI helpers (tag suggestion, usage summaries)
"""

from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Recipe ---

class AITagMetadataOut(BaseModel):
    last_updated: Optional[datetime] = None
    count: int = 0


class RecipeListOut(BaseModel):
    id: str
    name: str
    prep_time: Optional[str]
    cook_time: Optional[str]
    servings: Optional[str]
    tags: Optional[list[str]]

    class Config:
        from_attributes = True


class RecipeOut(RecipeListOut):
    total_time: Optional[str]
    ingredients: Optional[str]
    directions: Optional[str]
    notes: Optional[str]
    source_url: Optional[str]
    photo_url: Optional[str]
    ai_tags: Optional[list[str]]
    ai_tag_metadata: AITagMetadataOut
    created_at: Optional[datetime] = None


class RecipeImportItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    servings: Optional[str] = None
    ingredients: Optional[str] = None
    directions: Optional[str] = None
    notes: Optional[str] = None
    source_url: Optional[str] = None
    photo_url: Optional[str] = None
    tags: Optional[list[str]] = None
    ai_category: Optional[list[str]] = None


class RecipeImportResponse(BaseModel):
    imported: int
    skipped: int
    failed: list[dict]
    ids: list[str]


class RetagResponse(BaseModel):
    recipe_id: str
    updated: bool
    tags: list[str]


# --- Recommendation ---

MatchQuality = Literal["perfect", "great", "close", "inferred", "none"]


class RecommendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: str = "cooking"
    filters: list[str] = Field(default_factory=list, max_length=20)
    smart_match: bool = Field(False, alias="smartMatch")


class RecommendationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    title: str
    recommendation: str  # HTML rendering payload
    recipe: RecipeOut
    source: Literal["quick_pick", "smart_match"]
    filters: list[str]
    match_quality: Optional[MatchQuality] = Field(None, alias="matchQuality")
    match_count: int = Field(0, alias="matchCount")
    inferred_hits: int = Field(0, alias="inferredHits")
    reasoning: Optional[str] = None
    new_tags: Optional[list[str]] = Field(None, alias="newTags")
    downgraded: bool = False
    note: Optional[str] = None


# --- AI ---

class TagSuggestRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    ingredients: Optional[str] = None
    directions: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None


class TagSuggestResponse(BaseModel):
    success: bool = True
    tags: list[str]
    source: Literal["ai", "heuristic"]


class UsageFeatureOut(BaseModel):
    feature: str
    calls: int
    cost: str


class UsageSummaryOut(BaseModel):
    window: Literal["today", "7d", "30d", "all"]
    total_calls: int
    total_cost: str
    by_feature: list[UsageFeatureOut]
