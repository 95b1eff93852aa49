import functools
import getpass
import os
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from ansible.parsing.vault import VaultLib, VaultSecret
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import gradebook.lib.util as util
from gradebook.model import DeploymentEnvironment

VAULT_KEY_ENV = "GRADEBOOK_VAULT_KEY"


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def env_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories consulted for an environment, least specific first"""
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        # local/ has no directory of its own, it is just the root
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    skip_keys: t.ClassVar[frozenset[str]] = frozenset({"env", "root", "override"})

    def __call__(self) -> dict[str, t.Any]:
        # we expect init kwargs to have config root and env in them
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except ValueError as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e
            except Exception as e:
                raise SettingsError(f"error getting value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data


class OverrideSettingsSource(SettingsSource):
    """``-o storage.persistent.sqlite.path=/tmp/x.db`` style overrides, values parsed as YAML"""

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]

            target = od
            path = k.split(".")
            for key in path[:-1]:
                target = target.setdefault(key, {})
            target[path[-1]] = yaml.safe_load(v)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in self.skip_keys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        # partial values; pydantic-settings deep-merges them over the YAML sources
        val = self.parsed_options[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLCascadingSettingsSource(SettingsSource):
    """
    Each settings field is read from ``<field>.yaml`` in the config root and
    then ``env.d/<env>/<field>.yaml``; later files are deep-merged over
    earlier ones.
    """

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return env_paths(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        yamls: list[str] = []
        for path in self.load_paths:
            fn = path / f"{field_name}.yaml"
            if fn.exists():
                yamls.append(fn.read_text(encoding="utf8"))
        if not yamls:
            raise KeyError(field_name)
        return yamls, field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        # complex values arrive as the list of YAML documents found along load_paths
        if not isinstance(value, list):
            raise ValueError(field_name)
        merged: t.Any = None
        for doc in (yaml.safe_load(s) for s in t.cast(list[str], value)):
            if isinstance(merged, dict) and isinstance(doc, dict):
                merged = util.deep_update(merged, doc)
            else:
                merged = doc
        return merged


class AnsibleVaultSecretsSource(SettingsSource):
    filename: t.ClassVar[str] = "secrets.vault.yaml"

    @functools.cached_property
    def load_path(self) -> Path:
        current_state = t.cast(CurrentState, self.current_state)
        return env_paths(current_state["root"], current_state["env"])[-1]

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        vp = self.load_path / self.filename

        # no vault file means nothing to unlock, so don't prompt
        if not vp.exists():
            return {}

        key = os.environ.get(VAULT_KEY_ENV)
        if not key:
            key = getpass.getpass(f"provide vault key ({current_state['env'].value}:{self.filename}): ")

        # None is the vault-id; a vault id would need to be named here
        vault = VaultLib(secrets=[(None, VaultSecret(key.encode()))])
        with vp.open() as f:
            return yaml.safe_load(vault.decrypt(f.read())) or {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # skip_keys are checked first: self.secrets needs root to compute load_path
        if field_name in self.skip_keys or field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
