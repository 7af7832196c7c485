"""Locate specification files and load the specifications they declare."""

from __future__ import annotations

import glob
import hashlib
import importlib.util
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from spexrun.core.models import Specification
from spexrun.dsl import SpecRegistry, SpecificationBuilder, use_registry
from spexrun.errors import SpecLoadError

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "spec/**/*_spec.py"


def find_spec_files(
    files: Sequence[str] = (),
    pattern: str = DEFAULT_PATTERN,
    root: str | Path = ".",
) -> list[Path]:
    """Resolve the spec files of a run.

    Explicit ``files`` win over ``pattern``; ones that do not exist are
    skipped with a warning. The result is sorted and free of duplicates.
    """
    if files:
        found: list[Path] = []
        for name in files:
            path = Path(name)
            if not path.is_absolute():
                path = Path(root) / path
            if path.is_file():
                found.append(path)
            else:
                logger.warning(f"Spec file not found, skipping: {name}")
    else:
        full_pattern = pattern if os.path.isabs(pattern) else os.path.join(str(root), pattern)
        found = [Path(p) for p in glob.glob(full_pattern, recursive=True) if os.path.isfile(p)]

    return sorted(set(found))


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path.resolve()).encode()).hexdigest()[:10]
    return f"spexrun_specs.{path.stem}_{digest}"


def load_spec_file(path: str | Path) -> list[Specification]:
    """Import one spec file and return the specifications it declares.

    Both ``define_spec`` declarations and module-level Specification or
    SpecificationBuilder objects are collected, in declaration order.

    Raises:
        SpecLoadError: If the file cannot be imported.
    """
    path = Path(path)
    module_name = _module_name(path)
    registry = SpecRegistry()

    try:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create an import spec for {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        with use_registry(registry):
            spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise SpecLoadError(
            message=f"Failed to load {path}: {type(e).__name__}: {e}",
            cause=e,
            path=str(path),
        ) from e

    specifications = registry.specifications()
    seen = set(registry.names())
    for attr_name, value in vars(module).items():
        if attr_name.startswith("_"):
            continue
        if isinstance(value, SpecificationBuilder) and value.name not in seen:
            value = value.build()
        if isinstance(value, Specification) and value.name not in seen:
            specifications.append(value)
            seen.add(value.name)

    logger.debug(f"Loaded {len(specifications)} specification(s) from {path}")
    return [s.model_copy(update={"source": str(path)}) for s in specifications]


def discover_specifications(
    files: Sequence[str] = (),
    pattern: str = DEFAULT_PATTERN,
    root: str | Path = ".",
) -> list[Specification]:
    """Load every specification of a run.

    Raises:
        SpecLoadError: If any file fails to import, or two files declare a
            specification with the same name.
    """
    specifications: list[Specification] = []
    sources: dict[str, str | None] = {}

    for path in find_spec_files(files, pattern, root):
        for spec in load_spec_file(path):
            if spec.name in sources:
                raise SpecLoadError(
                    message=(
                        f"Specification '{spec.name}' is declared in both "
                        f"{sources[spec.name]} and {spec.source}"
                    ),
                    path=str(path),
                )
            sources[spec.name] = spec.source
            specifications.append(spec)

    logger.info(f"Discovered {len(specifications)} specification(s)")
    return specifications
