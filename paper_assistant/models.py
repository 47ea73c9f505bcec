"""Pydantic Models for the Paper Assistant API

Defines request/response models for API endpoints. JSON field names are
camelCase to match the web client; Python attributes stay snake_case.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


# ============================================================================
# AUTH MODELS
# ============================================================================

class RegisterRequest(BaseModel):
    """Request model for user registration."""
    email: str = Field(..., min_length=1, max_length=255, description="User email address")
    password: str = Field(..., min_length=1, description="Password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "researcher@example.com",
                "password": "correct horse battery staple"
            }
        }


class LoginRequest(BaseModel):
    """Request model for login."""
    email: str = Field(..., min_length=1, description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class UserPublic(BaseModel):
    id: int
    email: str


class UserWithKey(UserPublic):
    external_api_key: str = Field(default="", alias="externalApiKey")

    class Config:
        populate_by_name = True


class RegisterResponse(BaseModel):
    token: str = Field(..., description="Bearer token")
    user: UserPublic


class LoginResponse(BaseModel):
    token: str = Field(..., description="Bearer token")
    user: UserWithKey


# ============================================================================
# USER MODELS
# ============================================================================

class ApiKeyUpdateRequest(BaseModel):
    """Request model for storing the caller's chat provider key.

    ``openrouterApiKey`` is accepted for older clients.
    """
    external_api_key: Optional[str] = Field(default=None, alias="externalApiKey")
    openrouter_api_key: Optional[str] = Field(default=None, alias="openrouterApiKey")

    class Config:
        populate_by_name = True

    @property
    def key(self) -> str:
        if self.external_api_key is not None:
            return self.external_api_key
        return self.openrouter_api_key or ""


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# SEARCH MODELS
# ============================================================================

class SearchRequest(BaseModel):
    """Request model for /api/search."""
    query: str = Field(..., min_length=1, max_length=500, description="Free-text search query")

    class Config:
        json_schema_extra = {"example": {"query": "transformers"}}


class PaperResponse(BaseModel):
    """A paper returned by /api/search."""
    title: str
    authors: List[str] = Field(default_factory=list)
    url: str
    published_date: str = Field(..., alias="publishedDate")
    abstract: str
    summary: str

    class Config:
        populate_by_name = True


class SearchResponse(BaseModel):
    papers: List[PaperResponse]


class QueryResultResponse(BaseModel):
    """A paper as stored in the query history."""
    title: str
    authors: List[str] = Field(default_factory=list)
    summary: str
    url: str
    published_date: str = Field(..., alias="publishedDate")

    class Config:
        populate_by_name = True


class QueryRecordResponse(BaseModel):
    """One entry of /api/queries."""
    id: int
    user_id: int = Field(..., alias="userId")
    query: str
    results: List[QueryResultResponse]
    created_at: str = Field(..., alias="createdAt")

    class Config:
        populate_by_name = True


# ============================================================================
# CHAT MODELS
# ============================================================================

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Message for the research assistant")


class ChatResponse(BaseModel):
    response: str


# ============================================================================
# SERVICE MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str = Field(..., description="System status (healthy/unhealthy)")
    ready: bool = Field(..., description="Whether the database is reachable")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")
