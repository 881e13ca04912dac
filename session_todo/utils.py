import logging
from typing import Iterable, List, Optional

from . import config
from .models import Todo, TodoList

logger = logging.getLogger(__name__)

LIST_NAME_LENGTH_ERROR = (
    f'List name must be between {config.NAME_MIN_LENGTH} and {config.NAME_MAX_LENGTH} characters.'
)
TODO_LENGTH_ERROR = (
    f'Todo must be between {config.NAME_MIN_LENGTH} and {config.NAME_MAX_LENGTH} characters.'
)


def _length_ok(text: str) -> bool:
    return config.NAME_MIN_LENGTH <= len(text.strip()) <= config.NAME_MAX_LENGTH


def validate_list_name(name: str, existing_names: Iterable[str]) -> Optional[str]:
    """Return the error message for an invalid list name, or None if valid.

    Uniqueness is an exact, case-sensitive match against `existing_names`.
    Callers renaming a list pass the names of the *other* lists only.
    """
    if not _length_ok(name or ''):
        return LIST_NAME_LENGTH_ERROR
    if name in set(existing_names):
        return f"'{name}' is already a list. Name must be unique."
    return None


def valid_todo_text(text: Optional[str]) -> bool:
    return text is not None and _length_ok(text)


# --- view predicates ---

def is_list_empty(lst: TodoList) -> bool:
    return not lst.todos


def count_incomplete(lst: TodoList) -> int:
    return sum(1 for t in lst.todos if not t.completed)


def count_total(lst: TodoList) -> int:
    return len(lst.todos)


def is_list_complete(lst: TodoList) -> bool:
    """A list is complete when it has todos and none of them is open."""
    return not is_list_empty(lst) and count_incomplete(lst) == 0


def list_class(lst: TodoList) -> Optional[str]:
    return 'complete' if is_list_complete(lst) else None


def sort_lists_for_display(lists: Iterable[TodoList]) -> List[TodoList]:
    # sorted() is stable: relative order is kept within each group
    return sorted(lists, key=lambda lst: 1 if is_list_complete(lst) else 0)


def sort_todos_for_display(todos: Iterable[Todo]) -> List[Todo]:
    return sorted(todos, key=lambda t: 1 if t.completed else 0)


# --- request parsing ---

def parse_id(raw) -> Optional[int]:
    """Parse a path segment into an id; None when it is not a plain integer."""
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    s = str(raw).strip()
    if not (s.isascii() and s.isdigit()):
        logger.debug('rejecting malformed id %r', raw)
        return None
    return int(s)


def parse_completed(raw: Optional[str]) -> bool:
    """Form value for a todo's completion: only 'true' means completed."""
    if raw is None:
        return False
    return str(raw).strip().lower() == 'true'
