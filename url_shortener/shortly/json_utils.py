"""orjson-сериализация для JSON-колонок SQLAlchemy (журнал аналитики)"""
import orjson
from typing import Any, Union

from pydantic import BaseModel

# Наивное время в журнале считается UTC
DUMP_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_NAIVE_UTC


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Тип {type(obj).__name__} не сериализуется в JSON")


def dumps(obj: Any, indent: bool = False) -> str:
    option = DUMP_OPTIONS
    if indent:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, default=_default, option=option).decode("utf-8")


def loads(s: Union[str, bytes]) -> Any:
    return orjson.loads(s)
