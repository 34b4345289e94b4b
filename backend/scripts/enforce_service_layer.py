"""
Engineering audit: Enforce the store/recorder layer.

Fails if User or AuditLog rows are written anywhere except the profile
stores, the audit recorders and tests.
Run from the repository root: python backend/scripts/enforce_service_layer.py
"""

import sys
from pathlib import Path

FORBIDDEN_PATTERNS = [
    "User.objects.create(",
    "User.objects.update(",
    ".objects.select_for_update(",
    "AuditLog.objects.create(",
    "AuditLog.objects.bulk_create(",
]

ALLOWED_PATHS = (
    "apps/users/stores.py",
    "apps/audit/recorders.py",
    "/tests/",
    "/migrations/",
    "/scripts/",
)


def scan_file(filepath):
    """Scan Python file for forbidden patterns."""
    path = filepath.as_posix()
    if any(allowed in path for allowed in ALLOWED_PATHS):
        return []

    content = filepath.read_text(encoding="utf-8")
    return [
        f"{filepath}: Found {pattern}"
        for pattern in FORBIDDEN_PATTERNS
        if pattern in content
    ]


def main():
    backend = Path(__file__).resolve().parent.parent
    all_issues = []

    for pyfile in backend.rglob("*.py"):
        if "__pycache__" in pyfile.parts or ".venv" in pyfile.parts:
            continue
        all_issues.extend(scan_file(pyfile))

    if all_issues:
        print("ERROR: Direct User/AuditLog writes detected outside stores and recorders:")
        for issue in all_issues:
            print(f"  {issue}")
        sys.exit(1)

    print("OK: All profile and audit writes go through stores and recorders")


if __name__ == "__main__":
    main()
