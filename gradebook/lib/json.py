"""JSON codec for stored documents and API responses.

Grade maps, quiz questions and graded answers are persisted as JSON
documents; the engine is handed ``dumps``/``loads`` from here so that
datetimes, enums and models inside them encode the same way the API
renders them.
"""

from __future__ import annotations

import datetime
import enum
import functools
import json as pyjson
import typing as t

import fastapi
import pydantic as p
import starlette.background

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


def encode_datetime(obj: datetime.datetime) -> str:
    if obj.tzinfo is not None:
        obj = obj.astimezone(datetime.UTC)
    return obj.isoformat()


def encode_enum(obj: enum.Enum) -> JSONValue:
    return obj.value


def encode_model(obj: p.BaseModel) -> dict[str, JSONValue]:
    return obj.model_dump(mode="json")


def encode_set(obj: set[t.Any] | frozenset[t.Any]) -> list[t.Any]:
    return sorted(obj)


@functools.cache
def _encoder_map() -> dict[type, t.Callable[[t.Any], JSONValue]]:
    return {
        datetime.datetime: encode_datetime,
        enum.Enum: encode_enum,
        set: encode_set,
        frozenset: encode_set,
    }


class JSONEncoder(pyjson.JSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, p.BaseModel):
            return encode_model(o)

        for tp, encoder in _encoder_map().items():
            if isinstance(o, tp):
                return encoder(o)

        return super().default(o)


def dumps(obj: t.Any, **kw: t.Any) -> str:
    # NaN is not JSON; a stored grade document must load anywhere
    kw.setdefault("allow_nan", False)
    return pyjson.dumps(obj, cls=JSONEncoder, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> JSONValue:
    return pyjson.loads(s, **kw)


class FastAPIJSONResponse(fastapi.responses.JSONResponse):
    """JSONResponse rendered with the project encoder"""

    def __init__(
        self,
        content: t.Any,
        status_code: int = 200,
        headers: t.Mapping[str, str] | None = None,
        media_type: str | None = None,
        background: starlette.background.BackgroundTask | None = None,
    ):
        super().__init__(
            jsonable_encoder(content),
            status_code=status_code,
            headers=headers,
            media_type=media_type,
            background=background,
        )

    def render(self, content: t.Any) -> bytes:
        return dumps(content, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def jsonable_encoder(obj: t.Any) -> JSONValue:
    import fastapi.encoders

    if isinstance(obj, p.BaseModel):
        return encode_model(obj)
    return fastapi.encoders.jsonable_encoder(obj, custom_encoder=_encoder_map())
