from typing import List, Optional
from pydantic import BaseModel, Field


class Todo(BaseModel):
    id: int
    name: str
    completed: bool = False


class TodoList(BaseModel):
    id: int
    # Name uniqueness within a session is enforced by the repository.
    name: str
    todos: List[Todo] = Field(default_factory=list)


class Flash(BaseModel):
    """One-shot notices shown on the next rendered page."""
    error: Optional[str] = None
    success: Optional[str] = None

    def pop(self) -> dict:
        out = {'error': self.error, 'success': self.success}
        self.error = None
        self.success = None
        return out


class SessionState(BaseModel):
    lists: List[TodoList] = Field(default_factory=list)
    # Session-wide id counters. Ids are handed out in order and never reused,
    # so they stay unique after deletions but are not contiguous.
    list_id_counter: int = 0
    todo_id_counter: int = 0
    flash: Flash = Field(default_factory=Flash)

    def next_list_id(self) -> int:
        value = self.list_id_counter
        self.list_id_counter += 1
        return value

    def next_todo_id(self) -> int:
        value = self.todo_id_counter
        self.todo_id_counter += 1
        return value

    def list_names(self) -> List[str]:
        return [lst.name for lst in self.lists]
