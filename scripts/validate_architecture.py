#!/usr/bin/env python3
"""
Validate three-layer architecture dependencies of the visiondesk package.

Rules:
- core imports nothing from the layered packages
- c1 imports only core (plus stdlib + external)
- c2 imports from c1 and core
- c3 imports from c2, c1 and core

No circular dependencies allowed.
"""

import ast
import sys
from pathlib import Path
from typing import List, Tuple

PACKAGE = "visiondesk"
LAYERED = ("c1", "c2", "c3")


def extract_imports(file_path: Path) -> List[str]:
    """Extract all visiondesk imports from a Python file."""
    try:
        with open(file_path, 'r') as f:
            tree = ast.parse(f.read(), filename=str(file_path))
    except SyntaxError as e:
        print(f"⚠️  Syntax error in {file_path}: {e}")
        return []

    imports = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.name.startswith(f'{PACKAGE}.'):
                    imports.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.module.startswith(f'{PACKAGE}.'):
                imports.append(node.module)

    return imports


def get_layer(package_name: str) -> str:
    """Get layer from a top-level subpackage name (c1_, c2_, c3_, core, api)."""
    if package_name.startswith('c1_'):
        return 'c1'
    elif package_name.startswith('c2_'):
        return 'c2'
    elif package_name.startswith('c3_'):
        return 'c3'
    elif package_name == 'core':
        return 'core'
    else:
        return 'app'


def module_layer(module: str) -> str:
    """Layer of a dotted module path such as ``visiondesk.c2_task_service.task_service``."""
    parts = module.split('.')
    if len(parts) < 2:
        return 'app'
    return get_layer(parts[1])


def validate_layer_dependencies(package_dir: Path = Path(PACKAGE)) -> Tuple[bool, List[str]]:
    """Validate that layer dependencies follow the rules."""
    violations = []

    if not package_dir.exists():
        print(f"❌ Package directory {package_dir} not found")
        return False, [f"missing package directory {package_dir}"]

    for py_file in package_dir.rglob("*.py"):
        package_parts = py_file.relative_to(package_dir).parts
        if len(package_parts) < 2:
            continue

        file_layer = get_layer(package_parts[0])

        for imported_module in extract_imports(py_file):
            imported_layer = module_layer(imported_module)

            if file_layer == 'core' and imported_layer in LAYERED:
                violations.append(f"{py_file}: core cannot import from {imported_layer} ({imported_module})")
            elif file_layer == 'c1' and imported_layer in ['c2', 'c3']:
                violations.append(f"{py_file}: c1 cannot import from {imported_layer} ({imported_module})")
            elif file_layer == 'c2' and imported_layer == 'c3':
                violations.append(f"{py_file}: c2 cannot import from c3 ({imported_module})")
            elif file_layer in LAYERED and imported_layer == 'app':
                violations.append(f"{py_file}: {file_layer} cannot import the application ({imported_module})")

    return len(violations) == 0, violations


def main():
    """Run architecture validation."""
    print("=" * 70)
    print("Three-Layer Architecture Validator")
    print("=" * 70)
    print()

    success, violations = validate_layer_dependencies()

    if success:
        print("✅ All layer dependencies are valid!")
        print()
        print("Layer rules:")
        print("  - core imports: stdlib + external packages only")
        print("  - c1 imports: core + stdlib + external packages")
        print("  - c2 imports: c1 + core + stdlib + external packages")
        print("  - c3 imports: c1 + c2 + core + stdlib + external packages")
        return 0
    else:
        print(f"❌ Found {len(violations)} layer dependency violations:")
        print()
        for violation in violations:
            print(f"  - {violation}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
