"""Schemas for directory listings."""

from pydantic import BaseModel, ConfigDict, Field


class BrowseItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_directory: bool = Field(alias="isDirectory")
    size: int | None = None
    modified: str
    type: str
    path: str
    formatted_size: str | None = Field(default=None, alias="formattedSize")


class BrowseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    current_path: str = Field(alias="currentPath")
    parent_path: str | None = Field(alias="parentPath")
    items: list[BrowseItem]
