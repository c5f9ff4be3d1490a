import logging

logger = logging.getLogger(__name__)


class HandleGuard:
    """Owns exactly one native handle (``sqlite3*`` or ``sqlite3_stmt*``).

    ``release()`` calls the native release function at most once; later calls
    are no-ops. Objects that copy a guard reference share it, so a close seen
    through one copy is seen through all of them, and the handle is released
    when the last reference is dropped if nobody released it first.

    ``get()`` never hands out a released handle: it raises ``closed_error``
    instead.
    """

    __slots__ = ("_handle", "_release", "_closed_error", "__weakref__")

    def __init__(self, handle, release, closed_error):
        self._handle = handle
        self._release = release
        self._closed_error = closed_error

    @property
    def closed(self):
        return self._handle is None

    def get(self):
        if self._handle is None:
            raise self._closed_error()
        return self._handle

    def release(self):
        handle, self._handle = self._handle, None
        if handle is None:
            return
        rc = self._release(handle)
        if rc:
            logger.debug("Native release of handle %#x returned %s", handle, rc)

    def __del__(self):
        self.release()

    def __repr__(self):
        if self._handle is None:
            return "<HandleGuard released>"
        return f"<HandleGuard {self._handle:#x}>"
