import os
import typing as t

import uvicorn

import gradebook.lib.cli as click
from gradebook.core import BootConfiguration, di
from gradebook.core.config import LoggingSettings, WebSettings

# uvicorn workers boot their own container from this
BOOT_ENV_VAR = "__Gradebook_BOOT"


class ServeConfig(t.TypedDict):
    host: str
    port: int


def _get_app_config(app_name: str, web_cf: WebSettings) -> tuple[str, ServeConfig]:
    """The uvicorn factory spec and bind address for an app configured under ``web.<app_name>``"""
    cf = getattr(web_cf, app_name, None)
    if cf is None:
        raise click.ClickException(f"unknown app '{app_name}' - not configured in web.yaml")
    return f"gradebook.web.{app_name}.main:create_app", {"host": str(cf.backend.host), "port": cf.backend.port}


@di.inject
def _run(
    app_name: str,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
    **uvicorn_kwargs: t.Any,
) -> None:
    spec, uvi_cf = _get_app_config(app_name, web_cf)
    os.environ[BOOT_ENV_VAR] = boot_cf.model_dump_json()
    uvicorn.run(spec, factory=True, log_config=logging_cf.model_dump(), **uvi_cf, **uvicorn_kwargs)


@click.group()
def web(): ...


@web.command(name="serve")
@click.argument("app_name", default="gradebook")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
def serve(app_name: str, workers: int):
    """Start a web app backend."""
    _run(app_name, workers=workers)


@web.command(name="develop")
@click.argument("app_name", default="gradebook")
def develop(app_name: str):
    """Start a web app backend that reloads on code changes."""
    _run(app_name, reload=True)
