"""Session-scoped list and todo operations.

Every operation works on the `SessionState` handed to `ListRepository`; there
is no other storage. Outcomes are reported through the session flash:
successful operations set `flash.success`, rejected ones set `flash.error` and
raise `ValidationError` or `NotFoundError` so the route can decide whether to
redisplay a form or redirect.
"""
import logging
from typing import Optional

from .errors import NotFoundError, ValidationError
from .models import SessionState, Todo, TodoList
from .utils import TODO_LENGTH_ERROR, valid_todo_text, validate_list_name

logger = logging.getLogger(__name__)

LIST_NOT_FOUND = 'The specified list was not found.'
TODO_NOT_FOUND = 'The specified todo was not found.'


class ListRepository:
    def __init__(self, state: SessionState):
        self.state = state

    @property
    def lists(self) -> list[TodoList]:
        return self.state.lists

    # --- lookups ---

    def find_list(self, list_id: Optional[int]) -> Optional[TodoList]:
        if list_id is None:
            return None
        for lst in self.state.lists:
            if lst.id == list_id:
                return lst
        return None

    def get_list(self, list_id: Optional[int]) -> TodoList:
        lst = self.find_list(list_id)
        if lst is None:
            logger.info('list %s not found', list_id)
            self.state.flash.error = LIST_NOT_FOUND
            raise NotFoundError(LIST_NOT_FOUND, redirect='/lists')
        return lst

    @staticmethod
    def find_todo(lst: TodoList, todo_id: Optional[int]) -> Optional[Todo]:
        if todo_id is None:
            return None
        for todo in lst.todos:
            if todo.id == todo_id:
                return todo
        return None

    def get_todo(self, lst: TodoList, todo_id: Optional[int]) -> Todo:
        todo = self.find_todo(lst, todo_id)
        if todo is None:
            logger.info('todo %s not found in list %s', todo_id, lst.id)
            self.state.flash.error = TODO_NOT_FOUND
            raise NotFoundError(TODO_NOT_FOUND, redirect=f'/lists/{lst.id}')
        return todo

    # --- lists ---

    def _reject(self, message: str):
        self.state.flash.error = message
        raise ValidationError(message)

    def create_list(self, name: str) -> TodoList:
        name = (name or '').strip()
        error = validate_list_name(name, self.state.list_names())
        if error:
            logger.debug('create_list rejected: %s', error)
            self._reject(error)
        lst = TodoList(id=self.state.next_list_id(), name=name)
        self.state.lists.append(lst)
        self.state.flash.success = 'The list has been created.'
        logger.info('created list id=%s name=%r', lst.id, lst.name)
        return lst

    def rename_list(self, list_id: Optional[int], new_name: str) -> TodoList:
        lst = self.get_list(list_id)
        new_name = (new_name or '').strip()
        others = [other.name for other in self.state.lists if other.id != lst.id]
        error = validate_list_name(new_name, others)
        if error:
            logger.debug('rename_list %s rejected: %s', lst.id, error)
            self._reject(error)
        old_name = lst.name
        lst.name = new_name
        self.state.flash.success = f"The list '{old_name}' has been renamed to '{new_name}'"
        logger.info('renamed list id=%s %r -> %r', lst.id, old_name, new_name)
        return lst

    def delete_list(self, list_id: Optional[int]) -> TodoList:
        lst = self.get_list(list_id)
        self.state.lists.remove(lst)
        self.state.flash.success = f"'{lst.name}' has been deleted."
        logger.info('deleted list id=%s name=%r', lst.id, lst.name)
        return lst

    # --- todos ---

    def add_todo(self, list_id: Optional[int], text: str) -> Todo:
        lst = self.get_list(list_id)
        if not valid_todo_text(text):
            self._reject(TODO_LENGTH_ERROR)
        todo = Todo(id=self.state.next_todo_id(), name=text.strip(), completed=False)
        lst.todos.append(todo)
        self.state.flash.success = 'The todo was added'
        logger.info('added todo id=%s to list id=%s', todo.id, lst.id)
        return todo

    def delete_todo(self, list_id: Optional[int], todo_id: Optional[int]) -> Optional[Todo]:
        """Remove a todo; an unknown todo id leaves the list untouched."""
        lst = self.get_list(list_id)
        todo = self.find_todo(lst, todo_id)
        if todo is not None:
            lst.todos.remove(todo)
            logger.info('deleted todo id=%s from list id=%s', todo.id, lst.id)
        self.state.flash.success = 'The todo has been deleted.'
        return todo

    def toggle_todo(self, list_id: Optional[int], todo_id: Optional[int], completed: bool) -> Todo:
        lst = self.get_list(list_id)
        todo = self.get_todo(lst, todo_id)
        todo.completed = bool(completed)
        return todo

    def complete_all(self, list_id: Optional[int]) -> TodoList:
        lst = self.get_list(list_id)
        for todo in lst.todos:
            todo.completed = True
        self.state.flash.success = 'All todos have been completed.'
        return lst
