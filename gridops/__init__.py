from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gridops")  # Matches the name in pyproject.toml
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0-dev"

from .core import Axis, AxisGrid, CellLocation, Field, Mesh  # noqa: E402
from .config import (  # noqa: E402
    AxisSchemes,
    DifferencingConfig,
    DifferencingMethods,
    load_differencing_config,
    resolve_differencing,
    save_differencing_config,
)
from .operators import DiffMethod, interp_to  # noqa: E402
from .operators.differential import (  # noqa: E402
    DerivativeEngine,
    DerivativeOperator,
    get_default_engine,
    set_default_engine,
)
from .utils import (  # noqa: E402
    GridOpsError,
    StencilUnderReadError,
    UnsatisfiableRequestError,
    configure_logging,
    get_logger,
    set_fatal_error_hook,
)

__all__ = [
    "Axis",
    "AxisGrid",
    "AxisSchemes",
    "CellLocation",
    "DerivativeEngine",
    "DerivativeOperator",
    "DiffMethod",
    "DifferencingConfig",
    "DifferencingMethods",
    "Field",
    "GridOpsError",
    "Mesh",
    "StencilUnderReadError",
    "UnsatisfiableRequestError",
    "__version__",
    "configure_logging",
    "get_default_engine",
    "get_logger",
    "interp_to",
    "load_differencing_config",
    "resolve_differencing",
    "save_differencing_config",
    "set_default_engine",
    "set_fatal_error_hook",
]
