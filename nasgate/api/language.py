"""Translations and per-session language preference. Reachable during setup."""

from fastapi import APIRouter, Request, Response

from nasgate.gate.outcomes import GateRejected, bad_request
from nasgate.gate.pipeline import get_context
from nasgate.schemas.language import LanguageChangedResponse, LanguageRequest, TranslationsResponse

router = APIRouter()


@router.get("/translations", response_model=TranslationsResponse)
def get_translations(request: Request) -> TranslationsResponse:
    translator = request.app.state.translator
    language = request.state.language
    return TranslationsResponse(
        translations=translator.catalog(language),
        current_language=language,
        available_languages=translator.available_languages,
    )


@router.put("/language", response_model=LanguageChangedResponse)
def set_language(body: LanguageRequest, request: Request, response: Response) -> LanguageChangedResponse:
    """Store the language preference in the session cookie (works for anonymous sessions too)."""
    translator = request.app.state.translator
    language = body.language.strip().lower()
    if not translator.is_supported(language):
        raise GateRejected(bad_request(message_key="invalidLanguage"))

    session = get_context(request).session.with_language(language)
    request.app.state.sessions.save(response, session)
    return LanguageChangedResponse(
        message=translator.translate("languageChanged", language),
        translations=translator.catalog(language),
    )
