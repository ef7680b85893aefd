"""
Run the server:

  python -m nasgate

HOST and PORT come from the environment or .env (defaults 0.0.0.0:7070).
"""

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from nasgate.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "nasgate.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
