from __future__ import annotations
from collections.abc import Hashable, Mapping
from decimal import Decimal
from numbers import Real
from typing import Any
import lupa

import config
from tooling.logger import tl_log


class ConversionCycleError(ValueError):
    """Композит (list/dict или Lua table) содержит сам себя."""

    pass


def _is_lua_table(x: Any) -> bool:
    try:
        return lupa.lua_type(x) == "table"
    except Exception:
        return False


def _fallback(obj: Any, reason: str) -> str:
    if config.LUA_LOG_FALLBACKS:
        tl_log.info("lua_conversion_fallback", type=type(obj).__name__, reason=reason)
    return str(obj)


def _enter(key: Hashable, stack: set[Hashable], what: str) -> Hashable:
    if key in stack:
        raise ConversionCycleError(f"Cycle detected in {what}")
    stack.add(key)
    return key


def py_to_lua(lua, obj: Any, _stack: set[Hashable] | None = None):
    """Python -> Lua. Все числа становятся float, неизвестные типы -> str(obj)."""
    if _stack is None:
        _stack = set()

    if obj is None or isinstance(obj, (bool, str)):
        return obj

    if isinstance(obj, (Real, Decimal)):
        try:
            return float(obj)
        except (OverflowError, ValueError):
            return _fallback(obj, "number out of float range")

    if isinstance(obj, Mapping):
        return dict_to_table(lua, obj, _stack)

    if isinstance(obj, (list, tuple)):
        return list_to_table(lua, obj, _stack)

    return _fallback(obj, "unsupported type")


def dict_to_table(lua, m: Mapping, _stack: set[Hashable] | None = None):
    if _stack is None:
        _stack = set()

    oid = _enter(id(m), _stack, type(m).__name__)
    try:
        t = lua.table()
        for k, v in m.items():
            t[k if isinstance(k, str) else str(k)] = py_to_lua(lua, v, _stack)
        return t
    finally:
        _stack.remove(oid)


def list_to_table(lua, arr: list | tuple, _stack: set[Hashable] | None = None):
    """Lua массивы 1-based: arr[i] -> t[i + 1]."""
    if _stack is None:
        _stack = set()

    oid = _enter(id(arr), _stack, type(arr).__name__)
    try:
        t = lua.table()
        for i, v in enumerate(arr, start=1):
            t[i] = py_to_lua(lua, v, _stack)
        return t
    finally:
        _stack.remove(oid)


def lua_to_py(obj: Any, _stack: set[Hashable] | None = None) -> Any:
    """Lua -> Python. Числа всегда float, таблицы через table_to_py."""
    if _stack is None:
        _stack = set()

    if obj is None or isinstance(obj, (bool, str)):
        return obj

    if isinstance(obj, (int, float)):
        return float(obj)

    if _is_lua_table(obj):
        return table_to_py(obj, _stack)

    # функции, корутины, userdata
    return _fallback(obj, "opaque lua value")


def _array_index(k: Any) -> int | None:
    if isinstance(k, bool) or not isinstance(k, (int, float)):
        return None
    if k <= 0 or not float(k).is_integer():
        return None
    return int(k)


def _key_text(k: Any) -> str:
    if isinstance(k, str):
        return k
    if isinstance(k, bool):
        return "true" if k else "false"
    if isinstance(k, float) and k.is_integer():
        return str(int(k))
    if isinstance(k, (int, float)):
        return repr(k)
    return str(k)


def table_to_py(tbl: Any, _stack: set[Hashable] | None = None) -> list | dict:
    """
    Lua table -> list или dict.

    list только если ключи ровно 1..n (пустая таблица -> []).
    Иначе dict, все ключи приводятся к строке ("1", "name", "true").
    Порядок обхода таблицы на результат не влияет.
    """
    if _stack is None:
        _stack = set()

    # proxy каждый раз новый, таблицу опознаём по адресу в repr
    oid = _enter(repr(tbl), _stack, "Lua table")
    try:
        items = list(tbl.items())

        # 1) list: только положительные целые ключи, без дыр, начиная с 1
        indexed: list[tuple[int, Any]] = []
        is_array = True
        for k, v in items:
            idx = _array_index(k)
            if idx is None:
                is_array = False
                break
            indexed.append((idx, v))

        max_key = 0
        arr: list[Any] = []
        if is_array:
            # по возрастанию ключей, порядок обхода Lua не определён
            for idx, v in sorted(indexed, key=lambda kv: kv[0]):
                max_key = idx
                if idx != len(arr) + 1:
                    is_array = False
                    break
                arr.append(lua_to_py(v, _stack))

        if is_array and max_key == len(arr):
            return arr

        # 2) dict
        out: dict[str, Any] = {}
        for k, v in items:
            out[_key_text(k)] = lua_to_py(v, _stack)
        return out
    finally:
        _stack.remove(oid)
