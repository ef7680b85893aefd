"""Unit tests for nasgate.services.i18n."""

import unittest

from starlette.requests import Request

from nasgate.core.sessions import SessionData
from nasgate.services.i18n import TRANSLATIONS, Translator


def _request(query: bytes = b"", accept_language: str | None = None) -> Request:
    headers = [(b"accept-language", accept_language.encode())] if accept_language else []
    return Request({"type": "http", "method": "GET", "path": "/", "query_string": query, "headers": headers})


class TestTranslate(unittest.TestCase):
    def setUp(self) -> None:
        self.translator = Translator("en")

    def test_catalogs_share_keys(self) -> None:
        self.assertEqual(set(TRANSLATIONS["en"]), set(TRANSLATIONS["es"]))

    def test_lookup(self) -> None:
        self.assertEqual(self.translator.translate("fileAccessDenied"), "Access denied")
        self.assertEqual(self.translator.translate("fileAccessDenied", "es"), "Acceso denegado")

    def test_unsupported_language_uses_default(self) -> None:
        self.assertEqual(self.translator.translate("notFound", "fr"), "Not found")

    def test_unknown_key_echoes_key(self) -> None:
        self.assertEqual(self.translator.translate("noSuchKey", "es"), "noSuchKey")

    def test_catalog(self) -> None:
        self.assertEqual(self.translator.catalog("es")["logout"], "Cerrar Sesión")
        self.assertEqual(self.translator.catalog("fr")["logout"], "Logout")

    def test_spanish_default(self) -> None:
        self.assertEqual(Translator("es").translate("loginRequired"), "Autenticación requerida")

    def test_unsupported_default_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Translator("fr")


class TestResolveLanguage(unittest.TestCase):
    def setUp(self) -> None:
        self.translator = Translator("en")

    def test_default(self) -> None:
        self.assertEqual(self.translator.resolve_language(_request(), SessionData.anonymous()), "en")

    def test_accept_language(self) -> None:
        request = _request(accept_language="es-ES,es;q=0.9,en;q=0.8")
        self.assertEqual(self.translator.resolve_language(request, SessionData.anonymous()), "es")

    def test_session_beats_header(self) -> None:
        request = _request(accept_language="es-ES")
        self.assertEqual(self.translator.resolve_language(request, SessionData(language="en")), "en")

    def test_query_beats_session(self) -> None:
        request = _request(query=b"lang=es")
        self.assertEqual(self.translator.resolve_language(request, SessionData(language="en")), "es")

    def test_unsupported_values_are_skipped(self) -> None:
        request = _request(query=b"lang=fr", accept_language="de-DE")
        self.assertEqual(self.translator.resolve_language(request, SessionData.anonymous()), "en")


if __name__ == "__main__":
    unittest.main()
