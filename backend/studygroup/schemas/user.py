"""Pydantic schemas for Users and authentication."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    display_name: str = Field(min_length=2, max_length=50)
    github_url: Optional[str] = Field(default=None, max_length=255)
    blog_url: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=1000)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    github_url: Optional[str] = Field(default=None, max_length=255)
    blog_url: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=1000)


class UserPublic(BaseModel):
    user_id: str
    display_name: str
    github_url: Optional[str] = None
    blog_url: Optional[str] = None
    bio: Optional[str] = None

    model_config = {"from_attributes": True}


class UserOut(UserPublic):
    email: str
    is_verified: bool
    created_at: datetime
