"""``heartline doctor`` — environment health check.

Checks: Python version, deps installed, content tables valid, and
(with ``--url``) a running API answering /health.
"""
from __future__ import annotations

import importlib.util
import sys

# Status tags are colored only on a TTY
_COLOR = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
_TAG_COLORS = {"OK": 32, "WARN": 33, "FAIL": 31}


def _tag(label: str, msg: str) -> str:
    pad = " " * (5 - len(label))
    if not _COLOR:
        return f"  [{label}]{pad}{msg}"
    return f"  \033[{_TAG_COLORS[label]}m[{label}]\033[0m{pad}{msg}"


def _ok(msg: str) -> str:
    return _tag("OK", msg)


def _warn(msg: str) -> str:
    return _tag("WARN", msg)


def _fail(msg: str) -> str:
    return _tag("FAIL", msg)


def _section(title: str) -> str:
    return f"\n{'=' * 60}\n  {title}\n{'=' * 60}"


def register(subparsers) -> None:
    p = subparsers.add_parser("doctor", help="Check environment health")
    p.add_argument("--url", default=None, help="Base URL of a running API to ping (e.g. http://127.0.0.1:8000)")
    p.set_defaults(func=run)


def _check_python() -> bool:
    v = sys.version_info
    ok = v >= (3, 10)
    line = f"Python {v.major}.{v.minor}.{v.micro}"
    print(_ok(line) if ok else _fail(f"{line} — need 3.10+"))
    return ok


def _check_deps() -> list[str]:
    required = ["fastapi", "uvicorn", "pydantic", "yaml", "httpx"]
    missing = []
    for mod in required:
        try:
            if importlib.util.find_spec(mod) is None:
                missing.append(mod)
        except (ImportError, ValueError):
            missing.append(mod)
    if missing:
        print(_fail(f"Missing packages: {', '.join(missing)}"))
        print("         Run: pip install -e .")
    else:
        print(_ok(f"All {len(required)} required packages installed"))
    return missing


def _check_content() -> bool:
    from backend.app.content.repository import ContentRepository

    repo = ContentRepository(strict=False)
    if not repo.content_dir.is_dir():
        print(_fail(f"Content directory missing: {repo.content_dir}"))
        return False
    problems = repo.problems()
    if problems:
        print(_warn(f"Content loaded with {len(problems)} problem(s) — run: heartline content"))
        return True
    tables = repo.tables
    print(_ok(f"Content: {len(tables.characters)} characters, {len(tables.locations)} locations ({repo.content_dir})"))
    return True


def _check_api(base_url: str) -> bool:
    import httpx

    url = base_url.rstrip("/") + "/health"
    try:
        resp = httpx.get(url, timeout=5)
    except httpx.HTTPError as e:
        print(_fail(f"API not reachable at {url}: {e}"))
        print("         Start it: heartline serve")
        return False
    if resp.status_code == 200:
        print(_ok(f"API healthy at {base_url}"))
        return True
    print(_fail(f"API at {base_url} returned {resp.status_code}"))
    return False


def run(args) -> int:
    print(_section("Heartline Doctor"))
    errors = 0

    if not _check_python():
        errors += 1
    if _check_deps():
        errors += 1
    if not _check_content():
        errors += 1
    if args.url and not _check_api(args.url):
        errors += 1

    print()
    if errors:
        print(f"{errors} check(s) failed.")
        return 1
    print("All checks passed.")
    return 0
