"""Schemas for translation and language preference endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LanguageRequest(BaseModel):
    language: str = Field(default="", max_length=10)


class TranslationsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    translations: dict[str, str]
    current_language: str = Field(alias="currentLanguage")
    available_languages: list[str] = Field(alias="availableLanguages")


class LanguageChangedResponse(BaseModel):
    success: bool = True
    message: str
    translations: dict[str, str]
