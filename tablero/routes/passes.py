"""
routes/passes.py
----------------

Wallet pass download.  Both URL shapes are served: the query-string form
and the ``/{passTypeIdentifier}/{serialNumber}`` path form.  Any failure
while building the pass becomes a ``500`` with an ``{error, detail}``
JSON body.
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from tablero.exceptions import PassError
from tablero.logging_config import logger
from tablero.services.pass_service import PKPASS_MEDIA_TYPE, PassBuilder

router = APIRouter(prefix="/api/passkit/v1")


def get_pass_builder(request: Request) -> PassBuilder:
    return request.app.state.pass_builder


def _pass_response(builder: PassBuilder, pass_type_identifier: Optional[str], serial_number: Optional[str]):
    logger.info(json.dumps({
        "event": "pass_request",
        "pass_type_identifier": pass_type_identifier,
        "serial_number": serial_number,
    }))
    try:
        if not serial_number:
            raise PassError("serialNumber es obligatorio")
        content = builder.build(serial_number, pass_type_identifier)
    except Exception as exc:
        logger.exception(json.dumps({"event": "pass_failed", "serial_number": serial_number}))
        return JSONResponse(status_code=500, content={"error": "Error generando pase", "detail": str(exc)})
    return Response(
        content=content,
        media_type=PKPASS_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=tarjeta-{serial_number}.pkpass"},
    )


@router.get("/passes")
def get_pass(
    serialNumber: Optional[str] = Query(None),
    passTypeIdentifier: Optional[str] = Query(None),
    builder: PassBuilder = Depends(get_pass_builder),
):
    return _pass_response(builder, passTypeIdentifier, serialNumber)


@router.get("/passes/{passTypeIdentifier}/{serialNumber}")
def get_pass_by_path(
    passTypeIdentifier: str,
    serialNumber: str,
    builder: PassBuilder = Depends(get_pass_builder),
):
    return _pass_response(builder, passTypeIdentifier, serialNumber)
