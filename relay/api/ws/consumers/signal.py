from fastapi import APIRouter

from relay.api.ws.websocket import SignalingEndpoint
from relay.settings import app_settings

router = APIRouter()


@router.websocket_route(app_settings.SIGNAL_PATH)
class Signal(SignalingEndpoint):
    """
    Signaling endpoint for WebRTC based video conferences.

    Browsers exchange SDP offers, answers and ICE candidates through it;
    the relay never looks inside those messages.
    """
