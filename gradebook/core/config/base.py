import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

from gradebook.model import BaseModel


class _DictInitMixin(object):
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict, which is how
        # dependency-injector hands over a Configuration subtree
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


# NOTE: BaseModel sits behind PydanticBaseSettings in the MRO so that its
#       by_alias=True model_dump default applies to every settings object
class BaseSettings(_DictInitMixin, PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    # keep generic names like PATH or PORT in the environment from leaking in
    model_config = SettingsConfigDict(env_prefix="GRADEBOOK_")


class BaseSecrets(_DictInitMixin, PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    model_config = SettingsConfigDict(env_prefix="GRADEBOOK_SECRET_")
