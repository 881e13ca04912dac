import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from . import config
from . import utils
from .errors import NotFoundError, ValidationError
from .models import SessionState, TodoList
from .repository import ListRepository
from .sessions import SessionMiddleware, get_secret_key, get_session, store

logger = logging.getLogger(__name__)
# Ensure INFO-level messages from the package appear on the server console
# when no handlers are configured (safe fallback for development/testing).
_pkg_logger = logging.getLogger('session_todo')
if not _pkg_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s %(levelname)s:%(name)s: %(message)s')
    handler.setFormatter(formatter)
    _pkg_logger.addHandler(handler)
_pkg_logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

# Seconds between sweeps that drop expired sessions from memory.
SESSION_PURGE_INTERVAL_SECONDS = 300


TEMPLATES = Jinja2Templates(directory=str(Path(__file__).resolve().parent / 'templates'))
TEMPLATES.env.auto_reload = config.DEV_MODE
TEMPLATES.env.globals['config'] = config
TEMPLATES.env.globals['list_complete'] = utils.is_list_complete
TEMPLATES.env.globals['empty_list'] = utils.is_list_empty
TEMPLATES.env.globals['total_incomplete_todos'] = utils.count_incomplete
TEMPLATES.env.globals['total_todos'] = utils.count_total
TEMPLATES.env.globals['list_class'] = utils.list_class
TEMPLATES.env.globals['sorted_lists'] = utils.sort_lists_for_display
TEMPLATES.env.globals['sorted_todos'] = utils.sort_todos_for_display


async def _purge_sessions_periodically():
    while True:
        await asyncio.sleep(SESSION_PURGE_INTERVAL_SECONDS)
        removed = store.purge_expired()
        if removed:
            logger.info('purged %d expired sessions', removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # resolve the signing secret up front so a missing SECRET_KEY is logged at startup
    get_secret_key()
    logger.info('starting session todo (session lifetime %d minutes)', config.SESSION_EXPIRE_MINUTES)
    purge_task = asyncio.create_task(_purge_sessions_periodically())
    try:
        yield
    finally:
        purge_task.cancel()
        try:
            await purge_task
        except asyncio.CancelledError:
            pass
        logger.info('session todo stopped')


app = FastAPI(lifespan=lifespan)
app.add_middleware(SessionMiddleware, store=store)


def get_repository(state: SessionState = Depends(get_session)) -> ListRepository:
    return ListRepository(state)


def _wants_json(request: Request) -> bool:
    accept = (request.headers.get('Accept') or '')
    return 'application/json' in accept.lower()


def _redirect_or_json(request: Request, url: str, extra: dict | None = None, status: int = 303):
    """Return JSON when client asked for application/json, otherwise a RedirectResponse.

    JSON payload is {'ok': True, 'redirect': url, 'flash': {...}, **extra}.
    """
    if _wants_json(request):
        payload = {'ok': True, 'redirect': url, 'flash': request.state.session.flash.pop()}
        if extra:
            payload.update(extra)
        return JSONResponse(payload)
    return RedirectResponse(url=url, status_code=status)


def _list_payload(lst: TodoList) -> dict:
    data = lst.model_dump()
    data['complete'] = utils.is_list_complete(lst)
    data['incomplete'] = utils.count_incomplete(lst)
    data['total'] = utils.count_total(lst)
    return data


def _render(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    """Render a template, consuming the session's flash messages."""
    ctx = {'request': request, 'flash': request.state.session.flash.pop()}
    if context:
        ctx.update(context)
    return TEMPLATES.TemplateResponse(request, name, ctx, status_code=status_code)


def _invalid(request: Request, exc: ValidationError, name: str, context: dict):
    if _wants_json(request):
        request.state.session.flash.pop()
        return JSONResponse({'ok': False, 'error': exc.message}, status_code=422)
    return _render(request, name, context, status_code=422)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    if _wants_json(request):
        request.state.session.flash.pop()
        return JSONResponse({'ok': False, 'error': exc.message, 'redirect': exc.redirect}, status_code=404)
    return RedirectResponse(url=exc.redirect, status_code=303)


### GET ROUTES ###

@app.get('/')
async def index():
    return RedirectResponse(url='/lists', status_code=303)


@app.get('/lists')
async def view_lists(request: Request, repo: ListRepository = Depends(get_repository)):
    if _wants_json(request):
        return {
            'lists': [_list_payload(lst) for lst in repo.lists],
            'flash': repo.state.flash.pop(),
        }
    return _render(request, 'lists.html', {'lists': repo.lists})


@app.get('/lists/new')
async def new_list_form(request: Request):
    return _render(request, 'new_list.html', {'list_name': ''})


@app.get('/lists/{list_id}')
async def view_list(request: Request, list_id: str, repo: ListRepository = Depends(get_repository)):
    lst = repo.get_list(utils.parse_id(list_id))
    if _wants_json(request):
        return {'list': _list_payload(lst), 'flash': repo.state.flash.pop()}
    return _render(request, 'list.html', {'list': lst, 'todo_text': ''})


@app.get('/lists/{list_id}/edit')
async def edit_list_form(request: Request, list_id: str, repo: ListRepository = Depends(get_repository)):
    lst = repo.get_list(utils.parse_id(list_id))
    return _render(request, 'edit_list.html', {'list': lst, 'list_name': lst.name})


### POST ROUTES ###

@app.post('/lists')
async def create_list(request: Request, list_name: str = Form(''), repo: ListRepository = Depends(get_repository)):
    try:
        lst = repo.create_list(list_name)
    except ValidationError as exc:
        return _invalid(request, exc, 'new_list.html', {'list_name': list_name.strip()})
    return _redirect_or_json(request, '/lists', {'id': lst.id, 'name': lst.name})


@app.post('/lists/{list_id}/edit')
async def rename_list(request: Request, list_id: str, list_name: str = Form(''), repo: ListRepository = Depends(get_repository)):
    lid = utils.parse_id(list_id)
    try:
        lst = repo.rename_list(lid, list_name)
    except ValidationError as exc:
        return _invalid(request, exc, 'edit_list.html', {'list': repo.get_list(lid), 'list_name': list_name.strip()})
    return _redirect_or_json(request, f'/lists/{lst.id}', {'id': lst.id, 'name': lst.name})


# '/destory' is the path older clients post to; both spellings delete.
@app.post('/lists/{list_id}/destroy')
@app.post('/lists/{list_id}/destory')
async def delete_list(request: Request, list_id: str, repo: ListRepository = Depends(get_repository)):
    lst = repo.delete_list(utils.parse_id(list_id))
    return _redirect_or_json(request, '/lists', {'deleted': lst.id})


@app.post('/lists/{list_id}/todos')
async def add_todo(request: Request, list_id: str, todo: str = Form(''), repo: ListRepository = Depends(get_repository)):
    lid = utils.parse_id(list_id)
    try:
        created = repo.add_todo(lid, todo)
    except ValidationError as exc:
        return _invalid(request, exc, 'list.html', {'list': repo.get_list(lid), 'todo_text': todo})
    return _redirect_or_json(request, f'/lists/{lid}', {'id': created.id, 'name': created.name})


@app.post('/lists/{list_id}/todos/{todo_id}/destroy')
async def delete_todo(request: Request, list_id: str, todo_id: str, repo: ListRepository = Depends(get_repository)):
    lid = utils.parse_id(list_id)
    repo.delete_todo(lid, utils.parse_id(todo_id))
    return _redirect_or_json(request, f'/lists/{lid}')


@app.post('/lists/{list_id}/todos/{todo_id}')
async def toggle_todo(request: Request, list_id: str, todo_id: str, completed: str | None = Form(None), repo: ListRepository = Depends(get_repository)):
    lid = utils.parse_id(list_id)
    todo = repo.toggle_todo(lid, utils.parse_id(todo_id), utils.parse_completed(completed))
    return _redirect_or_json(request, f'/lists/{lid}', {'id': todo.id, 'completed': todo.completed})


@app.post('/lists/{list_id}/complete_all')
async def complete_all(request: Request, list_id: str, repo: ListRepository = Depends(get_repository)):
    lid = utils.parse_id(list_id)
    repo.complete_all(lid)
    return _redirect_or_json(request, f'/lists/{lid}')
