import asyncio
import json
import logging

from aiohttp import web

from .handlers import Handlers, Shell

logger = logging.getLogger("CreatorTank")

STORE_KEY = web.AppKey("store", object)
RESTART_KEY = web.AppKey("restart", object)

RESTART_DELAY = 0.5


def _json_response(obj, status=200):
    return web.Response(
        status=status,
        text=json.dumps(obj, ensure_ascii=False),
        content_type="application/json",
    )


def _bad_request(msg):
    return _json_response({"success": False, "error": msg}, status=400)


class RequestShell(Shell):
    """Shell primitives answered by the request body.

    The desktop shell runs its own dialogs and posts the outcome: a missing
    ``path`` means the user canceled, ``confirm`` must be true for
    destructive operations.
    """

    def __init__(self, payload, app):
        self.payload = payload or {}
        self.app = app

    def _path(self):
        path = self.payload.get("path")
        return str(path) if path else None

    def pick_file(self, title=None):
        return self._path()

    def pick_directory(self, title=None, create=False):
        return self._path()

    def save_file(self, default_name, extension):
        return self._path()

    def confirm(self, message, detail=""):
        return bool(self.payload.get("confirm"))

    def restart(self):
        hook = self.app.get(RESTART_KEY)
        if hook is None:
            super().restart()
            return
        # Give the response a chance to reach the shell first.
        asyncio.get_running_loop().call_later(RESTART_DELAY, hook)


async def _read_json(request):
    if not request.can_read_body:
        return {}
    try:
        payload = await request.json()
    except Exception:
        return None
    return payload if isinstance(payload, dict) else None


def _int_param(request, name):
    try:
        return int(request.match_info[name])
    except (KeyError, TypeError, ValueError):
        return None


def _handlers(request, payload=None):
    return Handlers(request.app[STORE_KEY], RequestShell(payload, request.app))


routes = web.RouteTableDef()


@routes.get("/api/health")
async def health(request):
    store = request.app[STORE_KEY]
    return _json_response(
        {
            "success": True,
            "data": {
                "data_dir": store.data_dir,
                "db_path": store.db_path,
                "fts_available": bool(store.index.available),
            },
        }
    )


# -- projects ---------------------------------------------------------------


@routes.get("/api/projects")
async def list_projects(request):
    return _json_response(_handlers(request).list_projects())


@routes.post("/api/projects")
async def create_project(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request).create_project(payload.get("name"), payload.get("platform")))


@routes.put(r"/api/projects/{project_id:\d+}")
async def update_project(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request).update_project(_int_param(request, "project_id"), payload))


@routes.delete(r"/api/projects/{project_id:\d+}")
async def delete_project(request):
    return _json_response(_handlers(request).delete_project(_int_param(request, "project_id")))


@routes.get(r"/api/projects/{project_id:\d+}/ideas")
async def list_ideas(request):
    return _json_response(_handlers(request).list_ideas(_int_param(request, "project_id")))


# -- ideas ------------------------------------------------------------------


@routes.post("/api/ideas")
async def create_idea(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(
        _handlers(request).create_idea(
            payload.get("projectId"),
            payload.get("title"),
            payload.get("description"),
            payload.get("priority"),
        )
    )


@routes.get("/api/ideas/scheduled")
async def list_scheduled(request):
    return _json_response(_handlers(request).list_scheduled())


@routes.post("/api/ideas/output-path")
async def pick_output_path(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request, payload).pick_output_path())


@routes.get(r"/api/ideas/{idea_id:\d+}")
async def get_idea(request):
    return _json_response(_handlers(request).get_idea(_int_param(request, "idea_id")))


@routes.put(r"/api/ideas/{idea_id:\d+}")
async def update_idea(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request).update_idea(_int_param(request, "idea_id"), payload))


@routes.delete(r"/api/ideas/{idea_id:\d+}")
async def delete_idea(request):
    return _json_response(_handlers(request).delete_idea(_int_param(request, "idea_id")))


# -- scripts ----------------------------------------------------------------


@routes.get(r"/api/ideas/{idea_id:\d+}/script")
async def get_script(request):
    return _json_response(_handlers(request).get_script(_int_param(request, "idea_id")))


@routes.put(r"/api/ideas/{idea_id:\d+}/script")
async def save_script(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(
        _handlers(request).save_script(
            _int_param(request, "idea_id"),
            payload.get("content", ""),
            payload.get("notes"),
            payload.get("wordCount"),
        )
    )


# -- assets -----------------------------------------------------------------


@routes.get(r"/api/ideas/{idea_id:\d+}/assets")
async def list_assets(request):
    return _json_response(_handlers(request).list_assets(_int_param(request, "idea_id")))


@routes.post(r"/api/ideas/{idea_id:\d+}/assets/file")
async def add_asset_file(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request, payload).add_asset_file(_int_param(request, "idea_id")))


@routes.post(r"/api/ideas/{idea_id:\d+}/assets/link")
async def add_asset_link(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(
        _handlers(request).add_asset_link(
            _int_param(request, "idea_id"), payload.get("label"), payload.get("url")
        )
    )


@routes.delete(r"/api/assets/{asset_id:\d+}")
async def delete_asset(request):
    return _json_response(
        _handlers(request).delete_asset(
            _int_param(request, "asset_id"),
            request.query.get("path"),
            request.query.get("type"),
        )
    )


# -- search -----------------------------------------------------------------


@routes.get("/api/search")
async def search(request):
    return _json_response(_handlers(request).search(request.query.get("q", "")))


@routes.post("/api/search/rebuild")
async def rebuild_index(request):
    return _json_response(_handlers(request).rebuild_index())


# -- backup / export ----------------------------------------------------------


@routes.post("/api/backup")
async def create_backup(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request, payload).create_backup())


@routes.post("/api/backup/restore")
async def restore_backup(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request, payload).restore_backup())


@routes.post("/api/export/script")
async def export_script(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(
        _handlers(request, payload).export_script(
            payload.get("title", ""), payload.get("content", ""), payload.get("format", "txt")
        )
    )


@routes.post("/api/export/metadata")
async def export_metadata(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    rows = payload.get("data") or []
    if not isinstance(rows, list):
        return _bad_request("data must be a list of objects")
    return _json_response(
        _handlers(request, payload).export_metadata(
            rows, payload.get("format", "json"), payload.get("filename") or "export"
        )
    )


# -- settings ---------------------------------------------------------------


@routes.get("/api/settings")
async def get_settings(request):
    return _json_response(_handlers(request).get_settings())


@routes.put("/api/settings")
async def update_setting(request):
    payload = await _read_json(request)
    if payload is None:
        return _bad_request("invalid JSON body")
    return _json_response(_handlers(request).update_setting(payload.get("key"), payload.get("value")))


def setup_routes(app):
    app.add_routes(routes)


def create_app(store, restart=None):
    app = web.Application()
    app[STORE_KEY] = store
    app[RESTART_KEY] = restart

    async def _close_store(_app):
        store.close()

    app.on_cleanup.append(_close_store)
    setup_routes(app)
    logger.info("API routes registered successfully")
    return app
