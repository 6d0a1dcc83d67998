"""
python -m storefront: serveur de développement.
PORT (8000), HOST (127.0.0.1), UVICORN_RELOAD, LOG_LEVEL (info).
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "storefront.asgi:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
