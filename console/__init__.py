"""
DavPanel - Console Package
============================
Client side of the administration panel: the editable form sections and
the controller that loads them from, and saves them to, the REST API.

    forms.py  -> Typed form sections (server, log, CORS, user)
    notify.py -> Auto-dismissing notifications
    sync.py   -> FormSyncController (async, httpx)
"""

from console.sync import ApiError, FormSyncController, NetworkError

__all__ = ["ApiError", "FormSyncController", "NetworkError"]
