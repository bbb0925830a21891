# gpdb/__init__.py
# An AI assistant for the Python interactive console and the pdb debugger.

__version__ = "0.1.0"

from gpdb.core.errors import ConfigurationError, GpdbError, ToolRegistrationError
from gpdb.core.session import Session
from gpdb.integrations.console import AiConsole, interact
from gpdb.integrations.pdb_integration import AiPdb, set_trace
from gpdb.models.common import Capabilities, Mode

__all__ = [
    "__version__",
    "AiConsole",
    "AiPdb",
    "Capabilities",
    "ConfigurationError",
    "GpdbError",
    "Mode",
    "Session",
    "ToolRegistrationError",
    "interact",
    "set_trace",
]
