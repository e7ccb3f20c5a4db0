# pos/services/session_lock.py

"""
PER-SESSION SERIALIZATION

The current cart reference and the name cache are read-modify-write state.

Rules:
- Requests for the same Django session key run one at a time: an in-process
  lock per key, plus a row lock on the session (select_for_update) so
  separate worker processes also queue up.
- request.session is already loaded by authentication/permissions before a
  view runs, so the cart cycle works on a fresh store read under the lock
  and saved before the lock is released.
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager

from django.contrib.sessions.models import Session
from django.db import transaction

_registry_lock = threading.Lock()
_session_locks: "weakref.WeakValueDictionary[str, threading.RLock]" = (
    weakref.WeakValueDictionary()
)


def _lock_for(session_key: str):
    with _registry_lock:
        lock = _session_locks.get(session_key)
        if lock is None:
            lock = threading.RLock()
            _session_locks[session_key] = lock
        return lock


@contextmanager
def session_lock(session_key: str | None):
    # Sessions without a key are not shared by any other request yet.
    if not session_key:
        yield
        return

    lock = _lock_for(str(session_key))
    with lock:
        yield


@contextmanager
def locked_session(session):
    """
    Yield a freshly loaded store for `session`'s key and save it on exit,
    all while holding the per-key lock and the session row lock.
    The request's own (possibly stale) store is left untouched.
    """
    session_key = session.session_key
    if not session_key:
        yield session
        return

    with session_lock(session_key), transaction.atomic():
        Session.objects.select_for_update().filter(session_key=session_key).first()

        store = session.__class__(session_key)
        yield store
        store.save()
