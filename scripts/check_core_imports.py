#!/usr/bin/env python3
"""
Fail if the core imports the endpoint wrappers.
Checks all Python files under src/matrix_client/ except endpoints/.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
PACKAGE_DIR = REPO_ROOT / "src" / "matrix_client"
ENDPOINTS_DIR = PACKAGE_DIR / "endpoints"

FORBIDDEN_PREFIXES = ("matrix_client.endpoints",)


def is_forbidden(module: str) -> bool:
    return any(
        module == prefix or module.startswith(prefix + ".")
        for prefix in FORBIDDEN_PREFIXES
    )


def _absolute(node: ast.ImportFrom) -> str:
    mod = node.module or ""
    if not node.level:
        return mod
    # Core modules sit directly in the package, so one dot means matrix_client.
    return f"matrix_client.{mod}" if mod else "matrix_client"


def scan_file(path: Path) -> list[str]:
    errors: list[str] = []
    tree = ast.parse(path.read_text())
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                mod = alias.name
                if is_forbidden(mod):
                    errors.append(f"{path}: forbidden import '{mod}'")
        elif isinstance(node, ast.ImportFrom):
            mod = _absolute(node)
            names = [f"{mod}.{alias.name}" for alias in node.names]
            if is_forbidden(mod) or any(is_forbidden(n) for n in names):
                errors.append(f"{path}: forbidden import '{mod}'")
    return errors


def core_files() -> list[Path]:
    return [p for p in PACKAGE_DIR.rglob("*.py") if ENDPOINTS_DIR not in p.parents]


def main() -> int:
    violations: list[str] = []
    for py_file in core_files():
        violations.extend(scan_file(py_file))

    if violations:
        for v in violations:
            print(v, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
