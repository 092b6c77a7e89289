"""
Knowledge schemas for the admin API
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union
from datetime import datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class KnowledgeCreate(BaseModel):
    """New knowledge entry; keywords as "a,b,c" or a list"""
    category_id: int
    keywords: Union[str, List[str]]
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    priority: int = 1


class KnowledgeUpdate(BaseModel):
    """Partial update, omitted fields stay unchanged"""
    category_id: Optional[int] = None
    keywords: Optional[Union[str, List[str]]] = None
    question: Optional[str] = Field(default=None, min_length=1)
    answer: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class KnowledgeResponse(BaseModel):
    id: int
    category_id: int
    keywords: List[str]
    question: str
    answer: str
    priority: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keywords(cls, value):
        if isinstance(value, str):
            return [k.strip() for k in value.split(",") if k.strip()]
        return value

    class Config:
        from_attributes = True
