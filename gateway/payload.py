from typing import List, Optional

from pydantic import BaseModel, ValidationError

from gateway.errors import MalformedPayload


class ChatMessage(BaseModel):
    # null is allowed, e.g. assistant tool-call turns carry "content": null
    role: Optional[str] = None
    content: Optional[str] = None


class ChatPayload(BaseModel):
    """The part of a chat completion request the router looks at; other keys are ignored."""

    messages: Optional[List[ChatMessage]] = None


def prompt_length(payload: ChatPayload) -> int:
    # UTF-8 byte length is our character count proxy for token usage
    return sum(len((m.content or "").encode("utf-8")) for m in (payload.messages or []) if m.role == "user")


def analyze(raw_body: bytes) -> int:
    """
    Size the user prompt of a raw chat completion body.

    Only messages with role "user" count. Messages with other roles are
    ignored, not rejected. A null role or content counts as empty.

    Args:
        raw_body (bytes): the request body exactly as received

    Returns:
        int: total length of user message content

    Raises:
        MalformedPayload: body is not valid JSON or not shaped like
            {"messages": [{"role": str, "content": str}, ...]}.
            Callers must stop here and never route the request.
    """
    try:
        payload = ChatPayload.model_validate_json(raw_body)
    except ValidationError as e:
        raise MalformedPayload(
            "invalid request format: must be a valid chat completion JSON payload"
        ) from e
    return prompt_length(payload)
