import pytest

from session_todo.models import Todo, TodoList
from session_todo.utils import (
    count_incomplete,
    count_total,
    is_list_complete,
    is_list_empty,
    list_class,
    parse_completed,
    parse_id,
    sort_lists_for_display,
    sort_todos_for_display,
    valid_todo_text,
    validate_list_name,
)


def _list(*completed, id=0, name='l'):
    return TodoList(id=id, name=name, todos=[Todo(id=i, name=f't{i}', completed=c) for i, c in enumerate(completed)])


def test_validate_list_name_ok():
    assert validate_list_name('Groceries', ['Work']) is None


@pytest.mark.parametrize('name', ['', '   ', 'x' * 101])
def test_validate_list_name_length(name):
    assert validate_list_name(name, []) == 'List name must be between 1 and 100 characters.'


def test_validate_list_name_boundaries():
    assert validate_list_name('x', []) is None
    assert validate_list_name('x' * 100, []) is None


def test_validate_list_name_duplicate_is_case_sensitive():
    assert validate_list_name('A', ['A']) == "'A' is already a list. Name must be unique."
    assert validate_list_name('a', ['A']) is None


def test_valid_todo_text():
    assert valid_todo_text('Milk')
    assert valid_todo_text('  Milk  ')
    assert valid_todo_text('x' * 100)
    assert not valid_todo_text('')
    assert not valid_todo_text('    ')
    assert not valid_todo_text('x' * 101)
    assert not valid_todo_text(None)


def test_is_list_complete():
    assert is_list_complete(_list()) is False
    assert is_list_complete(_list(True)) is True
    assert is_list_complete(_list(True, False)) is False


def test_counts_and_empty():
    lst = _list(True, False, False)
    assert count_incomplete(lst) == 2
    assert count_total(lst) == 3
    assert not is_list_empty(lst)
    assert is_list_empty(_list())
    assert count_incomplete(_list()) == 0


def test_list_class():
    assert list_class(_list(True)) == 'complete'
    assert list_class(_list(False)) is None
    assert list_class(_list()) is None


def test_sort_lists_incomplete_first_and_stable():
    done_a = _list(True, id=0, name='done-a')
    open_b = _list(False, id=1, name='open-b')
    empty_c = _list(id=2, name='empty-c')
    done_d = _list(True, id=3, name='done-d')
    ordered = sort_lists_for_display([done_a, open_b, empty_c, done_d])
    assert [lst.name for lst in ordered] == ['open-b', 'empty-c', 'done-a', 'done-d']


def test_sort_todos_incomplete_first_and_stable():
    todos = [
        Todo(id=0, name='a', completed=True),
        Todo(id=1, name='b', completed=False),
        Todo(id=2, name='c', completed=True),
        Todo(id=3, name='d', completed=False),
    ]
    assert [t.name for t in sort_todos_for_display(todos)] == ['b', 'd', 'a', 'c']
    # input order untouched
    assert [t.name for t in todos] == ['a', 'b', 'c', 'd']


@pytest.mark.parametrize('raw,expected', [
    ('0', 0), ('42', 42), (' 7 ', 7), (3, 3),
    ('abc', None), ('-1', None), ('1.5', None), ('', None), (None, None), ('²', None),
])
def test_parse_id(raw, expected):
    assert parse_id(raw) == expected


@pytest.mark.parametrize('raw,expected', [
    ('true', True), ('TRUE', True), (' true ', True),
    ('false', False), ('1', False), ('', False), (None, False), ('yes', False),
])
def test_parse_completed(raw, expected):
    assert parse_completed(raw) is expected
