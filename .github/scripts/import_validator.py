#!/usr/bin/env python3
"""
Import Validator
Purpose: Detect imports that cross cruisereplay's layer boundaries

Layers (leaves first):
- parsers: instrument line parsers, no knowledge of feeds or replay
- feeds: ingestors and the FeedSequence contract, no knowledge of replay
- replay: scheduler, depends on the FeedSequence contract only
"""

import ast
import sys
from pathlib import Path
from typing import Dict, List, Set, Tuple

# ==============================================================================
# FORBIDDEN IMPORT PATTERNS
# ==============================================================================

FORBIDDEN_IMPORTS: Dict[str, List[str]] = {
    # Parsers are leaves
    'cruisereplay/parsers': [
        'cruisereplay.feeds',
        'cruisereplay.replay',
        'cruisereplay.cli',
    ],

    # Feeds never reach up into the scheduler or the CLI
    'cruisereplay/feeds': [
        'cruisereplay.replay',
        'cruisereplay.cli',
    ],

    # The scheduler sees the contract, never a concrete ingestor or sink
    'cruisereplay/replay': [
        'cruisereplay.feeds.evt',
        'cruisereplay.feeds.sfl',
        'cruisereplay.feeds.underway',
        'cruisereplay.feeds.sealog',
        'cruisereplay.feeds.sinks',
        'cruisereplay.feeds.discovery',
        'cruisereplay.parsers',
        'cruisereplay.cli',
    ],
}

# ==============================================================================
# IMPORT EXTRACTION
# ==============================================================================

def get_imports(filepath: Path, repo_root: Path) -> Set[str]:
    """
    Extract absolute module names imported by a Python file.

    Relative imports are resolved against the file's package.
    """
    imports = set()
    tree = ast.parse(filepath.read_text(encoding='utf-8'), filename=str(filepath))
    package = list(filepath.relative_to(repo_root).parts[:-1])

    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom):
            if node.level:
                base = package[:len(package) - (node.level - 1)]
                if node.module:
                    base = base + [node.module]
                imports.add('.'.join(base))
            elif node.module:
                imports.add(node.module)
        elif isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name)

    return imports


def matches_pattern(import_str: str, pattern: str) -> bool:
    """'cruisereplay.feeds' matches 'cruisereplay.feeds.types'."""
    return import_str == pattern or import_str.startswith(pattern + '.')


# ==============================================================================
# VALIDATOR
# ==============================================================================

def validate_imports(repo_root: Path) -> List[Tuple[str, str, str]]:
    """
    Validate imports across the package.

    Returns:
        List of (filepath, import, rule) violations
    """
    violations = []

    for layer, forbidden in FORBIDDEN_IMPORTS.items():
        layer_dir = repo_root / layer
        if not layer_dir.exists():
            continue
        for pyfile in sorted(layer_dir.rglob('*.py')):
            for imp in sorted(get_imports(pyfile, repo_root)):
                for pattern in forbidden:
                    if matches_pattern(imp, pattern):
                        violations.append((
                            str(pyfile.relative_to(repo_root)),
                            imp,
                            f'Forbidden: {pattern}'
                        ))

    return violations


def main():
    """Main entry point."""
    repo_root = Path(__file__).parent.parent.parent

    violations = validate_imports(repo_root)

    if violations:
        print("=" * 80)
        print("FORBIDDEN IMPORT VIOLATIONS")
        print("=" * 80)

        for filepath, import_str, rule in violations:
            print(f"\n{filepath}:")
            print(f"  imports: {import_str}")
            print(f"  {rule}")

        print("\n" + "=" * 80)
        print(f"Total violations: {len(violations)}")
        print("=" * 80)

        sys.exit(1)

    print("[OK] No forbidden imports detected")
    sys.exit(0)


if __name__ == '__main__':
    main()
