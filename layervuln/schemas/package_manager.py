"""Schemas for package-manager metadata."""

from __future__ import annotations

from pydantic import BaseModel


class PackageManagerOut(BaseModel):
    name: str
    display_name: str
    description: str
    package_types: list[str]


class PackageManagerList(BaseModel):
    total: int
    items: list[PackageManagerOut]
