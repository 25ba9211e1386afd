"""
Request bodies
JSON or HTML form posts, validated into a pydantic model
"""

import json
import logging
from typing import Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError as SchemaError

from partner_portal.core.errors import BadRequest

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

Model = TypeVar("Model", bound=BaseModel)


async def read_body(request: Request) -> dict:
    """
    Raw body as a dict

    Form posts become a dict of strings; anything else is read as JSON.
    An empty body is an empty dict.

    Raises:
        BadRequest: undecodable body, or JSON that is not an object
    """
    content_type = request.headers.get("content-type", "").lower()

    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            return {key: value for key, value in form.items() if isinstance(value, str)}

        raw = await request.body()
        data = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        logger.warning(f"⚠️ Unreadable request body on {request.url.path}: {e}")
        raise BadRequest() from e

    if not isinstance(data, dict):
        raise BadRequest()

    return data


def body_of(schema: Type[Model]):
    """
    Dependency that parses the request body into `schema`

    Usage:
        request: LoginRequest = Depends(body_of(LoginRequest))
    """
    async def dependency(request: Request) -> Model:
        data = await read_body(request)

        try:
            return schema.model_validate(data)
        except SchemaError as e:
            logger.warning(f"⚠️ Invalid {schema.__name__} on {request.url.path}: {e.error_count()} error(s)")
            raise BadRequest() from e

    return dependency
