"""Notifications router: hands pending toast messages to the client once."""

from fastapi import APIRouter, Depends
from typing import List

from api.deps import get_notifier
from services.notifications import NotificationCenter

router = APIRouter(prefix="/api", tags=["notifications"])


@router.get("/notifications")
def drain_notifications(notifier: NotificationCenter = Depends(get_notifier)) -> List[dict]:
    return [n.to_dict() for n in notifier.drain()]
