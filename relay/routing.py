import os
import pkgutil
from importlib import import_module

from fastapi import APIRouter

from relay.logging import logger

# Track registered modules to prevent duplicate logging
_registered_http_modules: set[str] = set()
_registered_ws_modules: set[str] = set()


def _include_modules(
    main_router: APIRouter, package: str, registered: set[str], kind: str
) -> None:
    """
    Imports every module of ``package`` and includes its ``router``.

    Args:
        main_router: Router that collects the discovered routers.
        package: Dotted package path, relative to the application package.
        registered: Module names already announced in the log.
        kind: Label used in the registration log line.
    """
    app_dir = os.path.dirname(__file__)
    app_name = os.path.basename(app_dir)
    package_dir = os.path.join(app_dir, *package.split("."))

    for _, module, _ in pkgutil.iter_modules([package_dir]):
        api = import_module(f".{module}", package=f"{app_name}.{package}")
        main_router.include_router(api.router)

        # Only log on first registration
        if module not in registered:
            logger.info(f'Register "{module}" {kind}')
            registered.add(module)


def collect_subrouters() -> APIRouter:
    """
    Collects all HTTP and WebSocket routers of the application.

    Every module in `api/http` and `api/ws/consumers` must expose a
    module-level `router`; they are all included into one `APIRouter`,
    which is returned as the application's entry point.
    """
    main_router: APIRouter = APIRouter()

    _include_modules(main_router, "api.http", _registered_http_modules, "api")
    _include_modules(
        main_router,
        "api.ws.consumers",
        _registered_ws_modules,
        "websocket consumer",
    )

    return main_router
