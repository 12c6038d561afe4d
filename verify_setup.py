"""
Pre-flight checks for the Bookgen backend.

    python verify_setup.py

Exits non-zero when something the server needs is missing: a dependency, the
completion credential, a launchable Chromium, or a reachable metadata store
(only when DATABASE_URL is set).
"""
import asyncio
import importlib.util
import os
import sys
from typing import Awaitable, Callable, List, Tuple

OK = "\033[92m✓\033[0m"
FAIL = "\033[91m✗\033[0m"
HINT = "\033[93m"
HEADER = "\033[94m"
PLAIN = "\033[0m"

# Import name -> distribution name.
REQUIRED_MODULES = {
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
    "pydantic_settings": "pydantic-settings",
    "sqlalchemy": "sqlalchemy",
    "httpx": "httpx",
    "aiofiles": "aiofiles",
    "docx": "python-docx",
    "markdown": "markdown",
    "pygments": "pygments",
    "playwright": "playwright",
    "supabase": "supabase",
}


def report(ok: bool, message: str, hint: str = "") -> bool:
    print(f"  {OK if ok else FAIL} {message}")
    if hint and not ok:
        print(f"    {HINT}{hint}{PLAIN}")
    return ok


async def check_interpreter() -> bool:
    v = sys.version_info
    return report(
        v >= (3, 11),
        f"Python {v.major}.{v.minor}.{v.micro}",
        hint="Bookgen needs Python 3.11 or newer",
    )


async def check_modules() -> bool:
    missing = [
        dist for mod, dist in REQUIRED_MODULES.items()
        if importlib.util.find_spec(mod) is None
    ]
    if missing:
        return report(False, f"Missing packages: {', '.join(missing)}", hint="pip install -e .")
    return report(True, f"{len(REQUIRED_MODULES)} runtime packages importable")


async def check_dotenv() -> bool:
    # Settings fall back to the process environment, so a missing .env only warns.
    if not os.path.exists(".env"):
        print(f"    {HINT}No .env file; relying on environment variables{PLAIN}")
    return True


async def check_completion_api() -> bool:
    import httpx

    from app.config import settings

    if not settings.COMPLETION_API_KEY:
        return report(False, "COMPLETION_API_KEY is not set", hint="Add it to .env")

    url = f"{settings.COMPLETION_BASE_URL.rstrip('/')}/models"
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(
                url, headers={"Authorization": f"Bearer {settings.COMPLETION_API_KEY}"}
            )
    except httpx.HTTPError as exc:
        return report(False, f"{url} unreachable: {exc}")

    return report(
        resp.status_code == 200,
        f"{url} -> HTTP {resp.status_code} (model {settings.COMPLETION_MODEL})",
        hint="Check COMPLETION_BASE_URL and the API key",
    )


async def check_chromium() -> bool:
    from playwright.async_api import Error as PlaywrightError
    from playwright.async_api import async_playwright

    from app.config import settings

    launch_args = {"args": ["--no-sandbox"]}
    if settings.BROWSER_EXECUTABLE:
        launch_args["executable_path"] = settings.BROWSER_EXECUTABLE

    try:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(**launch_args)
            version = browser.version
            await browser.close()
    except PlaywrightError as exc:
        return report(False, f"Chromium launch failed: {exc}", hint="playwright install chromium")
    return report(True, f"Chromium {version} launches for PDF output")


async def check_metadata_store() -> bool:
    from sqlalchemy import text

    from app import database

    if database.engine is None:
        print(f"    {HINT}DATABASE_URL not set; document history disabled{PLAIN}")
        return True

    async with database.engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await database.close_db()
    return report(True, f"Metadata store reachable ({database.engine.url.get_backend_name()})")


CHECKS: List[Tuple[str, Callable[[], Awaitable[bool]]]] = [
    ("Interpreter", check_interpreter),
    ("Packages", check_modules),
    ("Environment", check_dotenv),
    ("Completion API", check_completion_api),
    ("Headless browser", check_chromium),
    ("Metadata store", check_metadata_store),
]


async def run_checks() -> int:
    print(f"{HEADER}Bookgen setup verification{PLAIN}")
    failures = []
    for name, check in CHECKS:
        print(f"\n{HEADER}{name}{PLAIN}")
        try:
            ok = await check()
        except Exception as exc:
            ok = report(False, f"{type(exc).__name__}: {exc}")
        if not ok:
            failures.append(name)

    print()
    if failures:
        print(f"{FAIL} {len(failures)} of {len(CHECKS)} checks failed: {', '.join(failures)}")
        return 1
    print(f"{OK} Ready. Start with: uvicorn app.main:app --reload --port 5000")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run_checks()))
