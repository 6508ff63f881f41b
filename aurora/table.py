from typing import Any, Dict, Optional

from .types import TableRef


class Table:
    """String-keyed table. There is no array part and no metatable."""
    def __init__(self, table_id: int):
        self.id = table_id
        self.fields: Dict[str, Any] = {}

    def get(self, name: str) -> Optional[Any]:
        return self.fields.get(name)

    def set(self, name: str, value: Any):
        self.fields[name] = value

    def has(self, name: str) -> bool:
        return name in self.fields

    def __repr__(self) -> str:
        return f"Table({self.id}, {self.fields!r})"


class TableRegistry:
    def __init__(self):
        self.tables: Dict[int, Table] = {}
        self.next_id = 0

    def create(self) -> TableRef:
        table_id = self.next_id
        self.next_id += 1
        self.tables[table_id] = Table(table_id)
        return TableRef(table_id)

    def get(self, table_id: int) -> Table:
        return self.tables[table_id]

    def __len__(self) -> int:
        return len(self.tables)
