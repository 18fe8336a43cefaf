"""
Webhook HTTP app.

Two routes:
- POST /{bot_token}: Telegram pushes one update per request
- GET /: health check for load balancers

Unlike long polling, the update is handled inside the request: Telegram
gets 400 when the body cannot be decoded or the dispatch fails, and an
empty 200 otherwise.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse

from lumber_bot import __version__
from lumber_bot.errors import DecodeError, DispatchError
from .dispatcher import Dispatcher
from .models import InboundEvent

logger = logging.getLogger(__name__)


def create_webhook_app(dispatcher: Dispatcher, route: str) -> FastAPI:
    """
    Build the FastAPI app serving the bot's receive path.

    Args:
        dispatcher: Handles each decoded update
        route: Receive path, "/{bot_token}" so only Telegram knows it
    """
    app = FastAPI(
        title="Lumber Bot",
        description="Top Reddit posts for Telegram chats",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/", response_class=PlainTextResponse)
    async def health_check():
        """Health check endpoint."""
        return "healthy"

    async def receive_update(request: Request):
        """Webhook endpoint for Telegram updates."""
        try:
            update_data = await request.json()
            event = InboundEvent.from_dict(update_data)
        except (ValueError, DecodeError) as e:
            logger.warning(f"Could not decode update: {e}")
            raise HTTPException(status_code=400, detail="Invalid update")

        try:
            await dispatcher.handle(event)
        except DispatchError as e:
            logger.error(f"Error handling update {event.event_id}: {e}")
            raise HTTPException(status_code=400, detail="Could not handle update")

        return Response(status_code=200)

    app.add_api_route(route, receive_update, methods=["POST"])

    return app
