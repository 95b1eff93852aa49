"""Main entry point for the gradebook web application."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import gradebook
from gradebook.core import BootConfiguration, di, GradebookContainer
from gradebook.core.config.web import GradebookWebSettings
from gradebook.lib.json import FastAPIJSONResponse
from gradebook.model import DeploymentEnvironment

from .errors import add_error_handlers
from .route import router


def _cors_origins(config: GradebookWebSettings, env: DeploymentEnvironment) -> list[str]:
    origins = list(config.cors_origins)
    if env is DeploymentEnvironment.Local and config.frontend is not None:
        origins += [
            f"http://{config.frontend.host}:{config.frontend.port}",
            f"http://localhost:{config.frontend.port}",
        ]
    return origins


@di.inject
def _create_app(
    config: GradebookWebSettings = di.Provide["config.web.gradebook", di.as_(GradebookWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
) -> FastAPI:
    app = FastAPI(
        title="Gradebook",
        description="Course gradebook and quiz auto-grading",
        version=gradebook.__version__,
        default_response_class=FastAPIJSONResponse,
    )

    if origins := _cors_origins(config, env):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    add_error_handlers(app)

    @app.get("/health", operation_id="health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "env": env.value}

    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__Gradebook_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = GradebookContainer()
        GradebookContainer.boot(ct, **dict(boot_cf))
        return _create_app(
            config=GradebookWebSettings(**ct.config.web.gradebook()),
            env=boot_cf.env,
        )
    return _create_app()
