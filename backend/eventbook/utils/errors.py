from typing import Dict
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException carrying the message/field_errors envelope."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def not_found(entity: str, entity_id: object) -> HTTPException:
    return error_response(
        f"{entity} not found",
        {"id": str(entity_id)},
        status.HTTP_404_NOT_FOUND,
    )
