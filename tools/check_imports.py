"""Validate Python layer import boundaries for photo_story."""

from __future__ import annotations

import ast
from collections.abc import Iterator
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SOURCE_ROOT = PROJECT_ROOT / "src" / "photo_story"
PACKAGE = "photo_story"
KNOWN_LAYERS = {"api", "adapters", "application", "cli", "core", "domain"}
# layer -> layers it must never import
RULES: dict[str, set[str]] = {
    "domain": {"api", "adapters", "application", "cli", "core"},
    "core": {"api", "adapters", "application", "cli"},
    "application": {"api", "adapters", "cli"},
}


def _module_parts(path: Path, source_root: Path) -> list[str] | None:
    try:
        relative = path.relative_to(source_root)
    except ValueError:
        return None
    parts = [PACKAGE, *relative.with_suffix("").parts]
    if parts[-1] == "__init__":
        parts.pop()
    return parts


def _imported_modules(tree: ast.AST, module_parts: list[str], is_package: bool) -> Iterator[str]:
    """Yield absolute dotted names for every import in the tree."""
    package_parts = module_parts if is_package else module_parts[:-1]
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                if node.level - 1 > len(package_parts):
                    continue
                base = package_parts[: len(package_parts) - (node.level - 1)]
            else:
                base = []
            module = [*base, *(node.module.split(".") if node.module else [])]
            if not module:
                continue
            yield ".".join(module)
            # `from photo_story import core` names the layer in the alias.
            for alias in node.names:
                yield ".".join([*module, alias.name])


def _layer_of(module_name: str) -> str | None:
    parts = module_name.split(".")
    if len(parts) < 2 or parts[0] != PACKAGE:
        return None
    return parts[1] if parts[1] in KNOWN_LAYERS else None


def check_file(path: Path, source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    module_parts = _module_parts(path, source_root)
    if module_parts is None or len(module_parts) < 2:
        return []
    layer = module_parts[1]
    banned_layers = RULES.get(layer, set())
    if not banned_layers:
        return []

    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    imported = {
        imported_layer
        for name in _imported_modules(tree, module_parts, path.name == "__init__.py")
        if (imported_layer := _layer_of(name)) is not None
    }
    return [
        f"{path}: {layer} must not import {PACKAGE}.{imported_layer}"
        for imported_layer in sorted(imported & banned_layers)
    ]


def check_import_boundaries(source_root: Path = DEFAULT_SOURCE_ROOT) -> list[str]:
    violations: list[str] = []
    for path in sorted(source_root.rglob("*.py")):
        violations.extend(check_file(path, source_root))
    return violations


def main() -> None:
    violations = check_import_boundaries()
    if violations:
        raise SystemExit("\n".join(violations))
    print("import boundary checks passed")


if __name__ == "__main__":
    main()
