"""Serializers for the AI tool finder."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolPricingTier(BaseModel):
    """Model representing one pricing tier of a tool."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    price: str
    billing_period: Optional[str] = Field(default=None, alias="billingPeriod")
    features: List[str] = Field(default_factory=list)


class AppTool(BaseModel):
    """Model representing a tool record shown to the user."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    url: str
    source: str
    tagline: Optional[str] = None
    pricing: Optional[Union[str, List[ToolPricingTier]]] = None
    categories: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    use_cases: List[str] = Field(default_factory=list, alias="useCases")
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    screenshots: Optional[List[str]] = None
    video_embed: Optional[str] = Field(default=None, alias="videoEmbed")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    upvotes: Optional[int] = None
    rating: Optional[float] = None
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")
    badges: List[str] = Field(default_factory=list)
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")

    def to_response(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the UI expects."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolCandidate(BaseModel):
    """A raw tool reference returned by a source, before enrichment."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    description: str = ""
    url: str = ""
    source: str
    tagline: Optional[str] = None
    upvotes: Optional[int] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    categories: List[str] = Field(default_factory=list)
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")
    directory_url: Optional[str] = Field(default=None, alias="directoryUrl")


class FindToolsRequest(BaseModel):
    """Request model for a tool search."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    request_id: Optional[str] = Field(default=None, alias="requestId")


class FindToolsResponse(BaseModel):
    """Response model for a tool search."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    query: str
    tools: List[Dict[str, Any]]
    count: int
    request_id: Optional[str] = Field(default=None, alias="requestId")


class ChatRequest(BaseModel):
    """Request model for the chat assistant."""

    message: str
    tool: Optional[Dict[str, Any]] = None


class ChatResponse(BaseModel):
    """Response model for the chat assistant."""

    status: str
    reply: str
