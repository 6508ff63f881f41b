from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


DEFAULT_MAX_CALL_DEPTH = 50
DEFAULT_MAX_NESTING_DEPTH = 800


@dataclass
class Config:
    """Settings for one interpreter session.

    ``asset_root`` and ``module_suffix`` decide where ``require`` looks for
    modules: ``require("lib/core")`` reads ``assets/lib/core.lua`` with the
    defaults. ``debug_file`` receives verbose diagnostics; stderr is used
    when it is None.

    ``max_call_depth`` bounds nested function calls. ``max_nesting_depth``
    bounds everything the evaluator recurses into (calls, blocks and
    operator chains together).
    """
    log_level: LogLevel = LogLevel.NORMAL
    asset_root: str = 'assets'
    module_suffix: str = '.lua'
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH
    cache_modules: bool = False
    debug_file: Optional[str] = None

    @property
    def verbose(self) -> bool:
        return self.log_level == LogLevel.VERBOSE

    @property
    def quiet(self) -> bool:
        return self.log_level == LogLevel.QUIET
