"""
Reach Set Ingestion

Converts precomputed value functions dumped by a level-set toolbox into
GridMetadata. Two on-disk formats are understood:

    <name>_reachset.json   {"gmin", "gdx", "gN", "gperiodicity", "data"}
    <name>_reachset.mat    same fields as MATLAB variables

Loading happens in an explicit phase before the control loop starts;
ReachsetLoader can also hand out unloaded GridValueFunctions and fill
them in later (load_pending), mirroring an asynchronous fetch.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

try:
    from scipy.io import loadmat

    HAS_SCIPY = True
except ImportError:
    HAS_SCIPY = False

from ..errors import GridLoadError
from .grid import GridMetadata, GridValueFunction

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("gmin", "gdx", "gN", "gperiodicity", "data")
REACHSET_SUFFIX = "_reachset"


def grid_from_dict(reachset: Mapping[str, Any]) -> GridMetadata:
    """
    Build GridMetadata from a reachset mapping.

    Args:
        reachset: Mapping with gmin, gdx, gN, gperiodicity and nested data

    Returns:
        Validated, immutable grid metadata
    """
    missing = [key for key in REQUIRED_FIELDS if key not in reachset]
    if missing:
        raise GridLoadError(f"Reachset is missing fields: {missing}")

    try:
        data = np.asarray(reachset["data"], dtype=float)
    except (TypeError, ValueError) as exc:
        raise GridLoadError(f"Reachset data is not a rectangular numeric array: {exc}") from exc

    return GridMetadata(
        gmin=np.ravel(reachset["gmin"]),
        gdx=np.ravel(reachset["gdx"]),
        gN=np.ravel(reachset["gN"]),
        gperiodicity=np.ravel(reachset["gperiodicity"]).astype(bool),
        data=data,
    )


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise GridLoadError(f"Could not read reachset {path}: {exc}") from exc


def _read_mat(path: Path) -> Dict[str, Any]:
    if not HAS_SCIPY:
        raise ImportError("scipy is required to read .mat reachsets. Install with: pip install scipy")
    try:
        contents = loadmat(str(path), squeeze_me=False)
    except (OSError, ValueError) as exc:
        raise GridLoadError(f"Could not read reachset {path}: {exc}") from exc
    reachset = {key: contents[key] for key in REQUIRED_FIELDS if key in contents}
    if "data" in reachset and "gN" in reachset:
        # MATLAB keeps trailing singleton axes; restore the declared shape
        shape = tuple(int(n) for n in np.ravel(reachset["gN"]))
        if reachset["data"].size == int(np.prod(shape)):
            reachset["data"] = np.reshape(reachset["data"], shape)
    return reachset


def load_reachset(
    path: Union[str, Path],
    name: Optional[str] = None,
    gradient_method: str = "centered",
) -> GridValueFunction:
    """
    Load a reachset file into a ready GridValueFunction.

    Args:
        path: .json or .mat file
        name: Set name (defaults to the file stem without "_reachset")
        gradient_method: Gradient strategy for the returned value function

    Returns:
        Loaded GridValueFunction
    """
    path = Path(path)
    if name is None:
        name = path.stem.removesuffix(REACHSET_SUFFIX)
    if path.suffix == ".json":
        reachset = _read_json(path)
    elif path.suffix == ".mat":
        reachset = _read_mat(path)
    else:
        raise GridLoadError(f"Unknown reachset format: {path.suffix}")
    return GridValueFunction(grid_from_dict(reachset), name=name, gradient_method=gradient_method)


class ReachsetLoader:
    """
    Resolves set names to reachset files under a root directory.

    Example:
        >>> loader = ReachsetLoader("reachableSets")
        >>> palette = learned_palette("dubins", loader)
    """

    def __init__(
        self,
        root: Union[str, Path],
        extension: str = ".json",
        gradient_method: str = "centered",
        deferred: bool = False,
    ):
        """
        Initialize loader.

        Args:
            root: Directory containing <name>_reachset files
            extension: ".json" or ".mat"
            gradient_method: Gradient strategy for produced value functions
            deferred: If True, calls return unloaded value functions that are
                filled in by load_pending()
        """
        self.root = Path(root)
        self.extension = extension
        self.gradient_method = gradient_method
        self.deferred = deferred
        self._pending: List[GridValueFunction] = []
        self._cache: Dict[str, GridValueFunction] = {}

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}{REACHSET_SUFFIX}{self.extension}"

    def __call__(self, name: str) -> GridValueFunction:
        if name in self._cache:
            return self._cache[name]
        if self.deferred:
            value_function = GridValueFunction(name=name, gradient_method=self.gradient_method)
            self._pending.append(value_function)
        else:
            value_function = load_reachset(self.path_for(name), name, self.gradient_method)
        self._cache[name] = value_function
        return value_function

    @property
    def n_pending(self) -> int:
        return len(self._pending)

    def load_pending(self) -> int:
        """
        Load every value function handed out in deferred mode.

        Returns:
            Number of grids loaded
        """
        count = 0
        while self._pending:
            # Drop a grid from the queue only once it has loaded, so a failed
            # load can be retried
            value_function = self._pending[0]
            loaded = load_reachset(self.path_for(value_function.name), value_function.name)
            value_function.load(loaded.metadata)
            self._pending.pop(0)
            count += 1
        logger.info("Loaded %d pending reachsets from %s", count, self.root)
        return count
