"""``gradebook`` command line: boots the container, then runs a command group.

    gradebook -E development schema up
    gradebook -E production web serve -w 4
"""

from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import gradebook
import gradebook.lib.cli as click
from gradebook.core import GradebookContainer
from gradebook.model import DeploymentEnvironment

COMMAND_GROUPS = ("schema", "web")
DEFAULT_CONFIG_ROOT = Path(gradebook.__file__).resolve().parents[1] / "config"

# command modules loaded while parsing, wired into the container at boot
_command_modules: list[types.ModuleType] = []
_booted = False


class LazyCommandGroup(click.Group):
    """Imports a command group's module only when that group is invoked"""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(COMMAND_GROUPS)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in COMMAND_GROUPS:
            return None
        mod = importlib.import_module(f"gradebook.cli.{cmd_name}")
        _command_modules.append(mod)
        return getattr(mod, cmd_name)


@click.group(cls=LazyCommandGroup)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=DEFAULT_CONFIG_ROOT, type=click.URIParamType(dir_ok=True))
@click.option("-s", "--secrets-path", default=None, type=click.URIParamType(dir_ok=True))
@click.option(
    "-o",
    "--override",
    multiple=True,
    help="override a configuration value, e.g. -o storage.persistent.sqlite.path=/tmp/grades.db",
)
@click.option("-D", "--debug", is_flag=True, default=False)
@click.pass_obj
def main(
    ct: GradebookContainer,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    secrets_path: p.AnyUrl | None,
    override: tuple[str, ...],
    debug: bool,
):
    global _booted
    GradebookContainer.boot(
        ct,
        debug=debug,
        env=env,
        config_root=config_root,
        secrets_path=secrets_path,
        override=override,
        wiring=tuple(_command_modules),
    )
    _booted = True


def _show_traceback(container: GradebookContainer) -> bool:
    if _booted:
        return container.debug()
    return "-D" in sys.argv[1:] or "--debug" in sys.argv[1:]


def execute_command(*_args: str) -> None:
    threading.current_thread().name = "gradebook-0"
    args = list(_args or sys.argv)
    prog = Path(args[0]).name
    container = GradebookContainer()

    try:
        with main.make_context(prog, args=args[1:]) as ctx:
            ctx.obj = container
            sys.exit(t.cast(int, main.invoke(ctx)))
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", file=sys.stderr)
        sys.exit(1)
    except click.exceptions.Exit as ex:
        sys.exit(ex.exit_code)
    except click.ClickException as ex:
        ex.show()
        sys.exit(ex.exit_code)
    except Exception as ex:
        click.echo(click.style("ERROR ", fg="red") + str(ex), file=sys.stderr)
        if _show_traceback(container):
            traceback.print_exc()
        sys.exit(1)
    finally:
        container.shutdown_resources()


if __name__ == "__main__":
    execute_command(*sys.argv)
