import inspect
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from socketio.exceptions import ConnectionError as SocketConnectionError

VALID_TOKEN = 'valid-token'
BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_notification(
    notification_id: int,
    *,
    is_read: bool = False,
    type: str = 'message',
    minutes: int = 0,
    priority: str = 'normal',
    title: Optional[str] = None,
) -> dict[str, Any]:
    return {
        'id': notification_id,
        'user_id': 7,
        'type': type,
        'title': title or f"Notification {notification_id}",
        'message': f"Body {notification_id}",
        'priority': priority,
        'is_read': is_read,
        'action_url': None,
        'created_at': (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
    }


class TokenHolder:
    def __init__(self, token: Optional[str] = VALID_TOKEN) -> None:
        self.token = token

    def __call__(self) -> Optional[str]:
        return self.token


class FakeNotificationService:
    """In-memory stand-in for the notification REST service."""

    def __init__(self) -> None:
        self.notifications: list[dict[str, Any]] = []
        self.preferences: dict[str, Any] = {
            'id': 1,
            'user_id': 7,
            'email_enabled': True,
            'push_enabled': True,
            'in_app_enabled': True,
            'quiet_hours_enabled': False,
        }
        self.rejections: dict[str, str] = {}
        self.requests: list[tuple[str, str, dict[str, str]]] = []
        self.before_response: dict[str, Callable[[], Any]] = {}
        self.app = self._build_app()

    def add(self, notification_id: int, **kwargs: Any) -> dict[str, Any]:
        record = make_notification(notification_id, **kwargs)
        self.notifications.append(record)
        return record

    def get(self, notification_id: int) -> Optional[dict[str, Any]]:
        for record in self.notifications:
            if record['id'] == notification_id:
                return record
        return None

    def unread_count(self) -> int:
        return sum(1 for record in self.notifications if not record['is_read'])

    def reject(self, operation: str, error: str = 'Request rejected') -> None:
        self.rejections[operation] = error

    async def _respond(self, operation: str, data: Any = None) -> JSONResponse:
        hook = self.before_response.get(operation)
        if hook is not None:
            result = hook()
            if inspect.isawaitable(result):
                await result
        if operation in self.rejections:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={'success': False, 'error': self.rejections[operation]},
            )
        content: dict[str, Any] = {'success': True}
        if data is not None:
            content['data'] = data
        return JSONResponse(content=content)

    def _build_app(self) -> FastAPI:
        service = self
        app = FastAPI()
        router = APIRouter(prefix='/api/notifications')

        async def require_token(request: Request, authorization: Optional[str] = Header(default=None)) -> None:
            service.requests.append((request.method, request.url.path, dict(request.query_params)))
            if authorization != f"Bearer {VALID_TOKEN}":
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Unauthorized')

        @router.get('', dependencies=[Depends(require_token)])
        async def list_notifications(
            unread_only: bool = False,
            limit: int = 20,
            offset: int = 0,
            type: Optional[str] = None,
        ) -> JSONResponse:
            records = sorted(service.notifications, key=lambda item: item['created_at'], reverse=True)
            if unread_only:
                records = [item for item in records if not item['is_read']]
            if type:
                records = [item for item in records if item['type'] == type]
            page = [dict(item) for item in records[offset : offset + limit]]
            return await service._respond('list', {'notifications': page, 'unread_count': service.unread_count()})

        @router.get('/unread-count', dependencies=[Depends(require_token)])
        async def unread_count() -> JSONResponse:
            return await service._respond('unread_count', {'unread_count': service.unread_count()})

        @router.post('/mark-all-read', dependencies=[Depends(require_token)])
        async def mark_all_read() -> JSONResponse:
            response = await service._respond('mark_all_read')
            if response.status_code == 200:
                for record in service.notifications:
                    record['is_read'] = True
            return response

        @router.get('/preferences', dependencies=[Depends(require_token)])
        async def get_preferences() -> JSONResponse:
            return await service._respond('get_preferences', dict(service.preferences))

        @router.put('/preferences', dependencies=[Depends(require_token)])
        async def update_preferences(payload: dict[str, Any]) -> JSONResponse:
            if 'update_preferences' not in service.rejections:
                service.preferences.update(payload)
            return await service._respond('update_preferences', dict(service.preferences))

        @router.post('/test', dependencies=[Depends(require_token)])
        async def send_test(payload: dict[str, Any]) -> JSONResponse:
            next_id = max((item['id'] for item in service.notifications), default=0) + 1
            service.add(next_id, title=payload.get('title'), type=payload.get('type') or 'system_announcement')
            return await service._respond('test')

        @router.post('/{notification_id}/read', dependencies=[Depends(require_token)])
        async def mark_read(notification_id: int) -> JSONResponse:
            record = service.get(notification_id)
            if record is None:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={'success': False, 'error': 'Notification not found or unauthorized'},
                )
            response = await service._respond('mark_read')
            if response.status_code == 200:
                record['is_read'] = True
            return response

        @router.delete('/{notification_id}', dependencies=[Depends(require_token)])
        async def delete(notification_id: int) -> JSONResponse:
            response = await service._respond('delete')
            if response.status_code == 200:
                service.notifications = [item for item in service.notifications if item['id'] != notification_id]
            return response

        app.include_router(router)
        return app


class FakeSocket:
    """Mimics the parts of ``socketio.AsyncClient`` the realtime channel uses."""

    def __init__(self, *, refuse: bool = False) -> None:
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.namespaces: dict[str, Optional[str]] = {}
        self.connected = False
        self.refuse = refuse
        self.url: Optional[str] = None
        self.connect_kwargs: dict[str, Any] = {}
        self.disconnect_calls = 0

    def on(self, event: str, handler: Callable[..., Any], namespace: Optional[str] = None) -> None:
        self.handlers[event] = handler
        self.namespaces[event] = namespace

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.url = url
        self.connect_kwargs = kwargs
        if self.refuse:
            self.trigger('connect_error', {'message': 'Authentication error'})
            raise SocketConnectionError('One or more namespaces failed to connect')
        self.connected = True
        self.trigger('connect')

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.connected:
            self.connected = False
            self.trigger('disconnect', 'client disconnect')

    def trigger(self, event: str, *args: Any) -> Any:
        return self.handlers[event](*args)

    def drop(self) -> None:
        self.connected = False
        self.trigger('disconnect', 'transport close')

    def push(self, payload: dict[str, Any]) -> None:
        self.trigger('notification', payload)


class FakeSocketFactory:
    def __init__(self, *, refuse: bool = False) -> None:
        self.refuse = refuse
        self.sockets: list[FakeSocket] = []

    def __call__(self) -> FakeSocket:
        sock = FakeSocket(refuse=self.refuse)
        self.sockets.append(sock)
        return sock

    @property
    def latest(self) -> FakeSocket:
        return self.sockets[-1]
