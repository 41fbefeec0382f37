from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response

router = APIRouter(prefix="/metrics", tags=["metrics"])

ORDERS_OPENED = Counter("md_orders_opened_total", "Option orders opened")
ORDERS_SETTLED = Counter("md_orders_settled_total", "Option orders settled")
SETTLEMENT_CONFLICTS = Counter("md_settlement_conflicts_total", "Settle attempts refused because the order was no longer active")
CHAT_MESSAGES = Counter("md_chat_messages_total", "Chat messages relayed", ["channel"])
SOCKET_CONNECTIONS = Gauge("md_socket_connections", "Authenticated realtime connections")

@router.get("")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
