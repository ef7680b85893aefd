"""Message catalog and per-request language resolution (English and Spanish)."""

from starlette.requests import HTTPConnection

from nasgate.core.sessions import SessionData

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "serverName": "NAS File Browser",
        "loading": "Loading...",
        "error": "Error",
        "success": "Success",
        "home": "Home",
        "emptyFolder": "This folder is empty",
        "fileSize": "Size",
        "dateModified": "Modified",
        "download": "Download",
        "login": "Login",
        "logout": "Logout",
        "username": "Username",
        "password": "Password",
        "email": "Email",
        "loginButton": "Sign In",
        "loginRequired": "Authentication required",
        "invalidCredentials": "Invalid username or password",
        "loginSuccess": "Login successful",
        "logoutSuccess": "Logout successful",
        "setupTitle": "Initial Setup - NAS File Server",
        "setupWelcome": "Welcome! Please create your administrator account",
        "createAdmin": "Create Administrator Account",
        "setupComplete": "Setup completed successfully!",
        "setupError": "Error during setup",
        "setupRequired": "Initial setup required",
        "setupAlreadyCompleted": "Setup already completed",
        "setupFieldsRequired": "Username and password are required",
        "adminPanel": "Administration Panel",
        "userCreated": "User created successfully",
        "userUpdated": "User updated successfully",
        "userDeleted": "User deleted successfully",
        "userNotFound": "User not found",
        "usernameTaken": "Username already exists",
        "cannotDeleteSelf": "Cannot delete your own account",
        "cannotDeleteAdmin": "Administrator accounts cannot be deleted",
        "cannotModifySelf": "You cannot change your own role or deactivate your own account",
        "cannotDemoteAdmin": "Administrator accounts cannot be demoted",
        "settingsUpdated": "Settings updated successfully",
        "readOnlySetting": "This setting cannot be changed",
        "admin": "Administrator",
        "user": "User",
        "role": "Role",
        "language": "Language",
        "languageChanged": "Language changed successfully",
        "invalidLanguage": "Invalid language",
        "fileAccessDenied": "Access denied",
        "fileNotFound": "File not found",
        "notADirectory": "Path is not a directory",
        "downloadError": "Error downloading file",
        "directoryError": "Cannot download directory",
        "tooManyRequests": "Too many requests. Please wait a few minutes.",
        "invalidRequest": "Invalid request",
        "internalError": "Internal server error",
        "unauthorizedAccess": "Unauthorized access",
        "adminRequired": "Administrator privileges required",
        "notFound": "Not found",
        "methodNotAllowed": "Method not allowed",
    },
    "es": {
        "serverName": "Explorador de Archivos NAS",
        "loading": "Cargando...",
        "error": "Error",
        "success": "Éxito",
        "home": "Inicio",
        "emptyFolder": "Esta carpeta está vacía",
        "fileSize": "Tamaño",
        "dateModified": "Modificado",
        "download": "Descargar",
        "login": "Iniciar Sesión",
        "logout": "Cerrar Sesión",
        "username": "Usuario",
        "password": "Contraseña",
        "email": "Correo Electrónico",
        "loginButton": "Iniciar Sesión",
        "loginRequired": "Autenticación requerida",
        "invalidCredentials": "Usuario o contraseña incorrectos",
        "loginSuccess": "Inicio de sesión exitoso",
        "logoutSuccess": "Sesión cerrada exitosamente",
        "setupTitle": "Configuración Inicial - Servidor de Archivos NAS",
        "setupWelcome": "¡Bienvenido! Por favor crea tu cuenta de administrador",
        "createAdmin": "Crear Cuenta de Administrador",
        "setupComplete": "¡Configuración completada exitosamente!",
        "setupError": "Error durante la configuración",
        "setupRequired": "Se requiere la configuración inicial",
        "setupAlreadyCompleted": "La configuración ya fue completada",
        "setupFieldsRequired": "Usuario y contraseña son obligatorios",
        "adminPanel": "Panel de Administración",
        "userCreated": "Usuario creado exitosamente",
        "userUpdated": "Usuario actualizado exitosamente",
        "userDeleted": "Usuario eliminado exitosamente",
        "userNotFound": "Usuario no encontrado",
        "usernameTaken": "El nombre de usuario ya existe",
        "cannotDeleteSelf": "No puedes eliminar tu propia cuenta",
        "cannotDeleteAdmin": "Las cuentas de administrador no se pueden eliminar",
        "cannotModifySelf": "No puedes cambiar tu propio rol ni desactivar tu propia cuenta",
        "cannotDemoteAdmin": "Las cuentas de administrador no se pueden degradar",
        "settingsUpdated": "Configuración actualizada exitosamente",
        "readOnlySetting": "Esta configuración no se puede modificar",
        "admin": "Administrador",
        "user": "Usuario",
        "role": "Rol",
        "language": "Idioma",
        "languageChanged": "Idioma cambiado exitosamente",
        "invalidLanguage": "Idioma no válido",
        "fileAccessDenied": "Acceso denegado",
        "fileNotFound": "Archivo no encontrado",
        "notADirectory": "La ruta no es un directorio",
        "downloadError": "Error descargando archivo",
        "directoryError": "No se puede descargar un directorio",
        "tooManyRequests": "Demasiadas solicitudes. Por favor espera unos minutos.",
        "invalidRequest": "Solicitud no válida",
        "internalError": "Error interno del servidor",
        "unauthorizedAccess": "Acceso no autorizado",
        "adminRequired": "Se requieren privilegios de administrador",
        "notFound": "No encontrado",
        "methodNotAllowed": "Método no permitido",
    },
}


class Translator:
    """Stateless lookups; the language is always passed in, never stored."""

    def __init__(self, default_language: str = "en") -> None:
        if default_language not in TRANSLATIONS:
            raise ValueError(f"Unsupported default language: {default_language}")
        self.default_language = default_language

    @property
    def available_languages(self) -> list[str]:
        return list(TRANSLATIONS)

    def is_supported(self, language: str | None) -> bool:
        return language in TRANSLATIONS

    def translate(self, key: str, language: str | None = None) -> str:
        catalog = TRANSLATIONS.get(language or self.default_language, {})
        return catalog.get(key) or TRANSLATIONS[self.default_language].get(key) or key

    def catalog(self, language: str | None = None) -> dict[str, str]:
        return dict(TRANSLATIONS.get(language or "", TRANSLATIONS[self.default_language]))

    def resolve_language(self, connection: HTTPConnection, session: SessionData) -> str:
        """?lang= query, then session preference, then Accept-Language, then the default."""
        accept = connection.headers.get("accept-language", "")
        header_lang = accept.split(",")[0].split(";")[0].split("-")[0].strip().lower()
        for candidate in (connection.query_params.get("lang"), session.language, header_lang):
            if candidate and candidate in TRANSLATIONS:
                return candidate
        return self.default_language
