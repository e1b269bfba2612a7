"""Wiring: builds the components from settings and registers link handlers."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_LINK_PREFIX, Settings
from .drawings import ChangeRouter, DrawingFactory, LinkHandler
from .links import LinkRegistry
from .process import ProcessInvoker
from .watcher import DrawingWatcher

logger = logging.getLogger(__name__)

PREVIEW_FILE_PATTERN = r"\.excalidraw\.svg\Z"


@dataclass
class OrgExcalidraw:
    settings: Settings
    registry: LinkRegistry
    invoker: ProcessInvoker
    factory: DrawingFactory
    links: LinkHandler
    router: ChangeRouter
    watcher: Optional[DrawingWatcher] = None

    def close(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()


def setup(
    settings: Settings,
    registry: Optional[LinkRegistry] = None,
    invoker: Optional[ProcessInvoker] = None,
    watch: bool = True,
    **strategies,
) -> OrgExcalidraw:
    """Initialize once at startup.

    Raises FileNotFoundError before anything is registered if the storage
    directory is missing. ``strategies`` may supply ``id_generator`` and
    ``opener`` for the drawing factory (``opener`` also for the link handler).
    """
    directory = settings.storage_dir
    if not directory.is_dir():
        raise FileNotFoundError(f"Drawing directory does not exist: {directory}")

    registry = registry if registry is not None else LinkRegistry()
    invoker = invoker if invoker is not None else ProcessInvoker()

    factory = DrawingFactory(settings, invoker, **strategies)
    link_kwargs = {"opener": strategies["opener"]} if "opener" in strategies else {}
    links = LinkHandler(settings, invoker, **link_kwargs)
    router = ChangeRouter(settings, invoker)

    watcher = None
    if watch:
        watcher = DrawingWatcher(directory, router.route)
        watcher.start()

    registry.register_file_app(PREVIEW_FILE_PATTERN, links.follow)
    if settings.inline_previews and settings.link_prefix == DEFAULT_LINK_PREFIX:
        registry.register_link_type(settings.link_prefix, links.follow, links.preview_data)
    else:
        logger.info("Link type %r not registered", settings.link_prefix)

    return OrgExcalidraw(
        settings=settings,
        registry=registry,
        invoker=invoker,
        factory=factory,
        links=links,
        router=router,
        watcher=watcher,
    )
