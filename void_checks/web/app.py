from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from void_checks.logging.init import setup_logging
from void_checks.web.routers import imports, reports, submissions

"""FastAPI application factory.

    uvicorn void_checks.web.app:create_app --factory
"""


def create_app() -> FastAPI:
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(dotenv_path=env_file, override=True)
    setup_logging(debug=os.getenv("VOID_CHECKS_DEBUG") == "1")

    app = FastAPI(title="Void Checks", version="0.1.0")
    app.include_router(imports.router)
    app.include_router(submissions.router)
    app.include_router(reports.router)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "void_checks.web.app:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
