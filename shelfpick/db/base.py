# shelfpick/db/base.py
from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Iterable, Iterator, List, Set

from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("shelfpick.models")


class Base(DeclarativeBase):
    """Single ORM Base for every shelfpick model."""

    pass


_INITIALIZED: bool = False


def _iter_model_modules(pkg_name: str = "shelfpick.models") -> Iterator[str]:
    """Yield shelfpick.models.* module names, skipping private ones."""
    pkg = importlib.import_module(pkg_name)
    for _, name, _ in pkgutil.walk_packages(list(getattr(pkg, "__path__", [])), prefix=pkg_name + "."):
        if name.rsplit(".", 1)[-1].startswith("_"):
            continue
        yield name


def init_models(*, extra_modules: Iterable[str] | None = None, force: bool = False) -> None:
    """
    Import every model module and configure mappers once:
      1) explicit chain first, so string relationship targets resolve
      2) then everything else under shelfpick.models
      3) configure_mappers()
    """
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    loaded: List[str] = []
    seen: Set[str] = set()

    explicit_chain = [
        "shelfpick.models.product",
        "shelfpick.models.shelf",
        "shelfpick.models.order",
        "shelfpick.models.order_item",
        "shelfpick.models.pick",
        "shelfpick.models.pick_scan",
        "shelfpick.models.sync_job",
    ]
    for mod in [*explicit_chain, *_iter_model_modules(), *(extra_modules or [])]:
        if mod in seen:
            continue
        seen.add(mod)
        importlib.import_module(mod)
        loaded.append(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (loaded %d modules)", len(loaded))
