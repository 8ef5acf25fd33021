"""Top-level package for the IGCSE grade threshold toolkit.

Provides subpackages:
- threshold_toolkit.extractor – grade threshold document parsing
- threshold_toolkit.estimator – threshold aggregation and grade estimation
- threshold_toolkit.core – immutable data models and schemas
- threshold_toolkit.common – shared configuration and helpers
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"

    if pyproject.exists():
        try:
            content = pyproject.read_text()
        except OSError:
            content = ""
        for line in content.splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version

    try:
        return pkg_version("threshold-toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
