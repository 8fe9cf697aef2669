import os
import sys
import typing

import dotenv

dotenv.load_dotenv()

ENVIRONMENT: typing.Literal["dev", "prod"] = os.environ.get("ENVIRONMENT", "dev")
if ENVIRONMENT not in ("dev", "prod"):
    print(f"Unknown environment: {ENVIRONMENT}", file=sys.stderr)
    sys.exit(1)


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "info").lower()
LOG_JSON: bool = _parse_bool_env("LOG_JSON", ENVIRONMENT == "prod")

# Lossy conversions (opaque values, overflowing ints) are logged at info level.
LUA_LOG_FALLBACKS: bool = _parse_bool_env("LUA_LOG_FALLBACKS", False)
