from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, matches_prefix, package_root, parse_imports

# layer -> packages it must not import
FORBIDDEN: dict[str, tuple[str, ...]] = {
    "core": (
        "stencila_action.cli",
        "stencila_action.output",
        "stencila_action.platform",
        "stencila_action.services",
        "stencila_action.tools",
    ),
    "platform": ("stencila_action.cli", "stencila_action.services", "stencila_action.tools"),
    "tools": ("stencila_action.cli", "stencila_action.services"),
    "services": ("stencila_action.cli",),
}


def test_lower_layers_do_not_import_upper_layers() -> None:
    require_arch_checks_enabled()

    root = package_root()
    offenders: list[str] = []

    for layer, forbidden in FORBIDDEN.items():
        for file_path in iter_python_files(root / layer):
            rel = file_path.relative_to(root)
            for item in parse_imports(file_path):
                if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                    offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, "layering violations:\n" + "\n".join(offenders)
