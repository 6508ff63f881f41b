from .loader import FileLoader
from aurora.types import to_string, type_name
from typing import Any, List


def install_core_library(interpreter) -> None:
        """Register print, fail and require on ``interpreter``."""

        def std_print(args: List[Any], interp) -> Any:
            print('\t'.join(to_string(a) for a in args))
            return None

        def std_fail(args: List[Any], interp) -> Any:
            message = args[0]
            if not isinstance(message, str):
                raise interp.error(f"fail expects a string, found {type_name(message)}")
            raise interp.error(message)

        def std_require(args: List[Any], interp) -> Any:
            path = args[0]
            if not isinstance(path, str):
                raise interp.error(f"require expects a string, found {type_name(path)}")
            return interp.require(path)

        interpreter.register_native('print', std_print)
        interpreter.register_native('fail', std_fail, arity=1)
        interpreter.register_native('require', std_require, arity=1)


__all__ = ['install_core_library', 'FileLoader']
