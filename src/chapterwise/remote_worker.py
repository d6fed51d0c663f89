"""
Subprocess entry point for SubprocessRemoteExecutor.

Reads {"handler": "module:function", "args": {...}} from stdin, calls the
handler and writes {"ok": true, "data": ...} or {"ok": false, "error": "..."}
to stdout.
"""

import asyncio
import importlib
import inspect
import json
import sys
from typing import Any, Callable


def resolve_handler(path: str) -> Callable[..., Any]:
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Handler path must look like 'module:function', got {path!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def run(request: dict) -> Any:
    handler = resolve_handler(request["handler"])
    result = handler(**request.get("args", {}))
    if inspect.isawaitable(result):
        result = asyncio.run(result)
    return result


def main() -> int:
    try:
        request = json.loads(sys.stdin.read())
        data = run(request)
    except Exception as e:
        json.dump({"ok": False, "error": f"{type(e).__name__}: {e}"}, sys.stdout)
        return 1
    json.dump({"ok": True, "data": data}, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
