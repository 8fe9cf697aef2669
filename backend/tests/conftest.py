import pytest
from lupa import LuaRuntime


@pytest.fixture
def lua():
    return LuaRuntime(
        unpack_returned_tuples=True, register_eval=False, register_builtins=False
    )
