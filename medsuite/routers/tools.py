"""
Tool endpoint.

A single path accepts every method; the dispatcher decides what each one
means (OPTIONS preflight, GET capability listing, POST tool run, anything
else 405) so the JSON contract stays the same for all of them.
"""
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

from medsuite.services.dispatcher import RequestDispatcher

router = APIRouter(prefix="/api", tags=["tools"])

ROUTED_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE", "HEAD"]


async def read_json_body(request: Request):
    """
    Parse the request body as JSON.

    Returns:
        Parsed body, or None when the body is empty or not valid JSON
    """
    try:
        return await request.json()
    except ValueError:
        logger.debug("Request body is empty or not valid JSON")
        return None


@router.api_route("", methods=ROUTED_METHODS, response_model=None)
async def tool_endpoint(request: Request) -> Response:
    """
    Run a clinical document generation tool or list the available ones.

    - OPTIONS: empty 200 (CORS preflight)
    - GET: gateway status and registered tool ids
    - POST {"toolType": ..., "inputData": {...}}: generated document
    - other methods: 405
    """
    dispatcher: RequestDispatcher = request.app.state.dispatcher

    body = await read_json_body(request) if request.method == "POST" else None
    result = await dispatcher.dispatch(request.method, body)

    if result.payload is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.payload)
