# lead_intake/routes/lead.py
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from lead_intake.services.intake import LeadIntake, parse_body
from lead_intake.services.store import RowStore, get_store

router = APIRouter()

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


async def get_intake(store: RowStore = Depends(get_store)) -> LeadIntake:
    return LeadIntake(store)


@router.post(
    "/lead",
    status_code=status.HTTP_200_OK,
    summary="Accept a landing-page lead submission",
)
async def submit_lead(
    request: Request,
    intake: LeadIntake = Depends(get_intake),
) -> JSONResponse:
    # The body is parsed by hand so that malformed JSON maps to bad_json
    # and non-string fields can be normalized instead of rejected.
    payload = parse_body(await request.body())

    result = await intake.handle(payload, request.headers)

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=result.body(),
        headers=NO_STORE_HEADERS,
    )
