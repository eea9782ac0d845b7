"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TurnRequest(BaseModel):
    text: str
    intent: Optional[str] = None
    entities: Dict[str, Any] = Field(default_factory=dict)
    language: Optional[str] = None


class TurnResponse(BaseModel):
    # False means no skill applies: route the intent to one-shot command handling
    handled: bool
    reply: Optional[str] = None
    skill: Optional[str] = None
    state: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    complete: bool = False
    result: Optional[Dict[str, Any]] = None


class SessionRead(BaseModel):
    user_id: str
    skill: str
    state: str
    context: Dict[str, Any]
    created_at: datetime
    last_activity: datetime


class SkillList(BaseModel):
    skills: List[str]
