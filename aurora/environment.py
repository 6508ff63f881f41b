from typing import Any, Dict, List, Optional


class Environment:
    """Variable storage: one global scope plus a stack of call frames.

    Only the top frame is visible at any time. There is no lexical nesting,
    so a function body sees its own locals and the globals, nothing else.
    """
    def __init__(self):
        self.globals: Dict[str, Any] = {}
        self.frames: List[Dict[str, Any]] = [{}]

    @property
    def frame(self) -> Dict[str, Any]:
        return self.frames[-1]

    @property
    def depth(self) -> int:
        return len(self.frames)

    def push_frame(self):
        self.frames.append({})

    def pop_frame(self) -> Dict[str, Any]:
        if len(self.frames) == 1:
            raise IndexError('cannot pop the top-level frame')
        return self.frames.pop()

    def get(self, name: str) -> Optional[Any]:
        if name in self.frame:
            return self.frame[name]
        return self.globals.get(name)

    def set(self, name: str, value: Any, is_local: bool = False):
        # A name already bound in the current frame stays local.
        if is_local or name in self.frame:
            self.frame[name] = value
        else:
            self.globals[name] = value
