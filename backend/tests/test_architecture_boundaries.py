from __future__ import annotations

import re
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = PROJECT_ROOT / "matildus"
API_V1_DIR = PACKAGE_DIR / "api" / "v1"
COMPONENTS_DIR = PACKAGE_DIR / "components"

# Auth wiring owns its own async session for registration side effects.
AUTH_MODULE = "users_fastapi.py"


def _python_files(root: Path) -> list[Path]:
    return sorted(path for path in root.rglob("*.py") if path.is_file())


def test_components_do_not_import_transport() -> None:
    disallowed = re.compile(r"^\s*(?:from|import)\s+(?:fastapi\b|starlette\b|\.\.\.api\b|matildus\.api\b)", re.M)
    violations: list[str] = []
    for path in _python_files(COMPONENTS_DIR):
        if disallowed.search(path.read_text(encoding="utf-8")):
            violations.append(str(path.relative_to(PROJECT_ROOT)))
    assert not violations, f"components must stay transport-free: {violations}"


def test_api_v1_is_transport_only_no_direct_queries() -> None:
    disallowed = re.compile(r"\bdb\.(?:query|add|commit|delete|execute)\(")
    violations: list[str] = []
    for path in _python_files(API_V1_DIR):
        if path.name == AUTH_MODULE:
            continue
        if disallowed.search(path.read_text(encoding="utf-8")):
            violations.append(str(path.relative_to(PROJECT_ROOT)))
    assert not violations, f"api/v1 routers must delegate persistence to components: {violations}"


def test_api_v1_only_imports_user_model() -> None:
    pattern = re.compile(r"from\s+\.\.\.models\.([a-zA-Z0-9_]+)\s+import")
    violations: list[str] = []
    for path in _python_files(API_V1_DIR):
        if path.name == AUTH_MODULE:
            continue
        for module in pattern.findall(path.read_text(encoding="utf-8")):
            if module != "user":
                violations.append(f"{path.name} imports models.{module}")
    assert not violations, f"Routers should work through component services: {violations}"


def test_state_transitions_emit_through_notifications_module() -> None:
    """Only the notifications component knows about Celery delivery."""
    violations: list[str] = []
    for path in _python_files(COMPONENTS_DIR):
        if path.parent.name == "notifications":
            continue
        if "notification_tasks" in path.read_text(encoding="utf-8"):
            violations.append(str(path.relative_to(PROJECT_ROOT)))
    assert not violations, f"Event delivery must go through emit_event: {violations}"
