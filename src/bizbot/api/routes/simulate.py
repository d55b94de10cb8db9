"""Demo route: generate the reply a business bot would send, without sending.

Used by the dashboard chat preview. Completion errors come back as a
labeled "Error: ..." response instead of a failure status.
"""

import dataclasses

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from bizbot.llm.completion import BusinessPrompt, CompletionError, PreparedPrompt
from bizbot.observability.correlation import get_correlation_id
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import safe_log_context

router = APIRouter(prefix="/whatsapp", tags=["simulate"])

logger = get_logger(__name__)


class SimulateRequest(BaseModel):
    message: str = Field(min_length=1)
    bot_id: str | None = None
    prompt_template: str | None = None


class SimulateResponse(BaseModel):
    response: str


@router.post("/simulate-response", response_model=SimulateResponse)
async def simulate_response(body: SimulateRequest, request: Request) -> SimulateResponse:
    """Preview a reply.

    With bot_id the reply is grounded in that business (404 if unknown) and
    prompt_template replaces its special instructions. Without bot_id,
    prompt_template is used as the whole system prompt, falling back to the
    general assistant prompt.
    """
    directory = request.app.state.directory
    completion_client = request.app.state.completion_client

    business = None
    if body.bot_id:
        business = await run_in_threadpool(directory.find_by_bot_id, body.bot_id)
        if business is None:
            raise HTTPException(status_code=404, detail="Business not found")
        if body.prompt_template:
            business = dataclasses.replace(business, prompt_template=body.prompt_template)

    if business is None and body.prompt_template:
        prompt = PreparedPrompt(system_prompt=body.prompt_template, user_message=body.message)
    else:
        prompt = BusinessPrompt(prompt=body.message, business=business)

    try:
        reply = await run_in_threadpool(completion_client.get_response, prompt)
    except CompletionError as e:
        logger.warning(
            "simulated completion failed",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    business_id=business.id if business else None,
                    error_type=type(e).__name__,
                )
            },
        )
        reply = f"Error: {e}"

    return SimulateResponse(response=reply)
