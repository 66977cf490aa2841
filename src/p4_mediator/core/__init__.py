from .cli import FILE_ACTIONS, CliWrapper
from .confirm import ClickConfirmationProvider, ConfirmationProvider, StaticConfirmationProvider
from .engine import PerforceEngine, open_engine
from .executor import CommandExecutor, CommandResult, SubprocessExecutor
from .interceptor import InterceptionPolicy
from .routing import ConnectionStore, RoutingEngine, RoutingSnapshot, canonical_path
from .status import FileStatusProvider, parse_fstat
