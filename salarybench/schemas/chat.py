import uuid
from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=4000)


class LabourLawChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1, max_length=50)


class MarketAnalysisRequest(BaseModel):
    # Stands in for the caller's profile link to their anonymous submission
    anonymous_id: Optional[uuid.UUID] = None


class MarketAnalysisResponse(BaseModel):
    analysis: str
