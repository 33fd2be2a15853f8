from typing import Optional

from fastapi import Request

from giftcart.config import settings


def get_current_host_id(request: Request) -> Optional[str]:
    """
    Signed-in host id as forwarded by the auth layer in front of this service.
    Session validation happens upstream; a missing or blank header means an
    anonymous visitor.
    """
    value = request.headers.get(settings.HOST_ID_HEADER)
    if value and value.strip():
        return value.strip()
    return None
