"""pycfpages - deploy static sites to Cloudflare Pages via direct upload."""

__version__ = "0.1.0"

from .api import PagesClient  # noqa: E402
from .auth import TokenCache  # noqa: E402
from .deploy import PagesDeployer  # noqa: E402
from .exceptions import (  # noqa: E402
    PagesAPIError,
    PagesAuthenticationError,
    PagesConfigError,
    PagesDeploymentError,
    PagesError,
    PagesInvalidResponseError,
    PagesNetworkError,
    PagesUploadError,
)
from .models import Deployment, DeploymentFile, DeploymentOptions  # noqa: E402
from .utils import compute_hash  # noqa: E402

__all__ = [
    "PagesClient",
    "PagesDeployer",
    "TokenCache",
    "Deployment",
    "DeploymentFile",
    "DeploymentOptions",
    "PagesError",
    "PagesAPIError",
    "PagesAuthenticationError",
    "PagesConfigError",
    "PagesDeploymentError",
    "PagesInvalidResponseError",
    "PagesNetworkError",
    "PagesUploadError",
    "compute_hash",
    "__version__",
]
