import logging


class Notifier:
    """Outbound event sink used by the registries.

    Sends are fire-and-forget: a failed delivery is logged and dropped, it
    never undoes the state change that produced the event.
    """

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)

    def send(self, handle, event: str, data, request_id: int = 0) -> None:
        try:
            self._deliver(handle, event, {'data': data, 'id': request_id})
        except Exception as exc:
            self.logger.warning(f"[send-failed] handle={handle} event={event} error={exc}")

    def broadcast(self, event: str, data) -> None:
        try:
            self._deliver(None, event, {'data': data, 'id': 0})
        except Exception as exc:
            self.logger.warning(f"[broadcast-failed] event={event} error={exc}")

    def _deliver(self, handle, event: str, payload: dict) -> None:
        raise NotImplementedError


class SocketIONotifier(Notifier):
    """Delivers events through Flask-SocketIO; a handle is a session id."""

    def __init__(self, socketio, namespace: str = '/ws', logger=None):
        super().__init__(logger)
        self.socketio = socketio
        self.namespace = namespace

    def _deliver(self, handle, event, payload):
        if handle is None:
            self.socketio.emit(event, payload, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=handle, namespace=self.namespace)

