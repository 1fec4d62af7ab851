# armafit/version.py
"""
armafit Version Information

This module contains version information, metadata, and release history for
armafit. It centralizes version tracking, making it accessible programmatically
via armafit.__version__.

armafit follows semantic versioning (MAJOR.MINOR.PATCH):
- MAJOR: Incompatible API changes
- MINOR: Backwards-compatible functionality additions
- PATCH: Backwards-compatible bug fixes
"""

from typing import Any, Dict, List, Tuple

# Version components
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "armafit"
__description__ = "Maximum likelihood ARMA estimation with BFGS and an exact Kalman filter likelihood"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
}

# Version history with release dates and major changes
VERSION_HISTORY = [
    {
        "version": "1.0.0",
        "release_date": "2026-10-18",
        "changes": [
            "Strong Wolfe line search with safeguarded cubic and quadratic interpolation",
            "BFGS minimizer with curvature guarded inverse Hessian updates",
            "Exact ARMA likelihood through a Numba-accelerated Kalman filter",
            "Seasonal ARIMA likelihood objective and maximum likelihood driver",
        ]
    },
]


def get_version_info() -> Dict[str, Any]:
    """
    Get detailed version information about armafit.

    Returns:
        Dict containing version information, including version string,
        version components, release date, and recent changes.
    """
    current_version = VERSION_HISTORY[0]

    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "release_date": current_version["release_date"],
        "changes": current_version["changes"],
        "python_requires": __python_requires__,
        "dependencies": __dependencies__,
        "license": __license__
    }


def get_version_tuple() -> Tuple[int, int, int]:
    """Return the version as a ``(major, minor, patch)`` tuple."""
    return (VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)


def get_release_notes(version: str = __version__) -> List[str]:
    """
    Return the list of changes recorded for ``version``.

    Raises:
        KeyError: If the version is not in the release history
    """
    for entry in VERSION_HISTORY:
        if entry["version"] == version:
            return list(entry["changes"])
    raise KeyError(f"No release notes for version {version}")
