"""
Partner dashboard endpoints

GET loads the dashboard once. The WebSocket keeps a dashboard open for
the connection: it loads and starts listening on connect, accepts events
as JSON messages and pushes every state the dashboard emits.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from carenow.api.v1.dependencies import get_container
from carenow.core.container import Container
from carenow.schemas.dashboard import (
    DashboardError,
    LoadPartnerDashboard,
    StartListeningToUpdates,
    dashboard_event_adapter,
)
from carenow.services.dashboard_bloc import state_payload

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{partner_id}/dashboard")
async def get_dashboard(partner_id: str, container: Container = Depends(get_container)):
    """
    Pending, accepted and active jobs with earnings, availability and unread count.
    """
    bloc = container.dashboard_bloc(partner_id)
    try:
        bloc.add(LoadPartnerDashboard(partner_id=partner_id))
        await bloc.drain()
        state = bloc.state
    finally:
        await bloc.close()

    if isinstance(state, DashboardError):
        raise HTTPException(status_code=500, detail=state.message)
    return state_payload(state)


@router.websocket("/{partner_id}/dashboard/ws")
async def dashboard_socket(websocket: WebSocket, partner_id: str):
    container: Container = websocket.app.state.container
    await websocket.accept()

    bloc = container.dashboard_bloc(partner_id)
    states = bloc.subscribe()

    async def push_states():
        while True:
            state = await states.get()
            if state is None:
                return
            await websocket.send_json(state_payload(state))

    def reject(message: str):
        logger.warning(f"Invalid dashboard event from partner {partner_id}: {message}")
        # Goes out through the pusher so sends never overlap
        states.put_nowait(DashboardError(message=message, error_code="invalid_event"))

    pusher = asyncio.create_task(push_states())
    bloc.add(LoadPartnerDashboard(partner_id=partner_id))
    bloc.add(StartListeningToUpdates(partner_id=partner_id))
    logger.info(f"Dashboard socket opened for partner {partner_id}")

    try:
        while True:
            try:
                message = await websocket.receive_json()
                event = dashboard_event_adapter.validate_python(message)
            except ValidationError as e:
                reject(f"Invalid event: {e.errors()[0]['msg']}")
                continue
            except ValueError as e:
                reject(f"Invalid event: message is not JSON ({e})")
                continue
            bloc.add(event)
    except WebSocketDisconnect:
        logger.info(f"Dashboard socket closed for partner {partner_id}")
    finally:
        await bloc.close()
        pusher.cancel()
        try:
            await pusher
        except asyncio.CancelledError:
            pass
