import pathlib
from aurora.errors import AuroraRuntimeError
from aurora.types import ErrorVal


class FileLoader:
    """Maps module paths to source text read from disk."""
    def __init__(self, root: str = 'assets', suffix: str = '.lua'):
        self.root = pathlib.Path(root)
        self.suffix = suffix

    def resolve(self, path: str) -> pathlib.Path:
        return self.root / f"{path}{self.suffix}"

    def __call__(self, path: str) -> str:
        file_path = self.resolve(path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            raise AuroraRuntimeError(ErrorVal('Runtime', f'Unable to open lua source file: {file_path}'))
        except PermissionError:
            raise AuroraRuntimeError(ErrorVal('Runtime', f'Permission denied: {file_path}'))
        except OSError as e:
            raise AuroraRuntimeError(ErrorVal('Runtime', f'Error reading {file_path}: {e.strerror}'))
