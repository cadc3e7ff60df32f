"""
Exclusive edit scope.

Every host pixel read, content insertion and geometric transform runs inside
an exclusive edit scope: a single-slot lock per document. Callers from other
threads wait for the slot; a second acquisition from inside an active scope
is refused instead of deadlocking.

Functions:
    execute_as_modal: Run a callback inside the document's edit scope
    in_edit_scope: Whether the current thread holds any edit scope
    ensure_outside_edit_scope: Guard for network stages
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional, TypeVar

from AYA_Libs.errors import EditScopeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_registry_lock = threading.Lock()
_document_locks: Dict[Hashable, threading.Lock] = {}
_held = threading.local()


def _lock_for(document_id: Hashable) -> threading.Lock:
    with _registry_lock:
        lock = _document_locks.get(document_id)
        if lock is None:
            lock = threading.Lock()
            _document_locks[document_id] = lock
        return lock


def _held_scopes() -> list:
    scopes = getattr(_held, "scopes", None)
    if scopes is None:
        scopes = []
        _held.scopes = scopes
    return scopes


def in_edit_scope() -> bool:
    return bool(_held_scopes())


def current_scope_name() -> Optional[str]:
    scopes = _held_scopes()
    return scopes[-1][1] if scopes else None


def ensure_outside_edit_scope(operation: str) -> None:
    """
    Refuse to run `operation` from inside an edit scope.

    Raises:
        EditScopeError: If the current thread holds an edit scope
    """
    if in_edit_scope():
        raise EditScopeError(
            f"{operation} cannot run inside the edit scope '{current_scope_name()}'"
        )


def execute_as_modal(
    document_id: Hashable,
    callback: Callable[[], T],
    command_name: str = "Edit",
    timeout: Optional[float] = None,
) -> T:
    """
    Run `callback` to completion inside the exclusive edit scope of a document.

    Args:
        document_id: Identity of the document the scope guards
        callback: Zero-argument callable doing the host work
        command_name: Name recorded for logging and error messages
        timeout: Seconds to wait for the slot (None waits forever)

    Returns:
        Whatever `callback` returns

    Raises:
        EditScopeError: On reentry from inside an active scope, or when the
            slot cannot be acquired within `timeout`
    """
    scopes = _held_scopes()
    if scopes:
        raise EditScopeError(
            f"Cannot start '{command_name}' inside the active edit scope "
            f"'{scopes[-1][1]}'"
        )

    lock = _lock_for(document_id)
    acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
    if not acquired:
        raise EditScopeError(
            f"Timed out waiting for the edit scope of document {document_id!r}"
        )

    scopes.append((document_id, command_name))
    logger.debug(f"Entered edit scope '{command_name}' for document {document_id!r}")
    try:
        return callback()
    finally:
        scopes.pop()
        lock.release()
        logger.debug(f"Left edit scope '{command_name}' for document {document_id!r}")
