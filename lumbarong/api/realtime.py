# lumbarong/api/realtime.py
# WebSocket для дашбордов: сервер присылает {"event": "dashboard_update"} после изменений заказов.
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from lumbarong.services.notifications import dashboard_broadcaster

router = APIRouter()


@router.websocket("/ws/dashboard")
async def dashboard_socket(websocket: WebSocket):
    await dashboard_broadcaster.connect(websocket)
    try:
        # Клиент ничего не шлёт; receive держит соединение и ловит disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        dashboard_broadcaster.disconnect(websocket)
