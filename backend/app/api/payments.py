"""Payments API (mocked processor)."""
import logging
from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_payment_processor, get_principal
from app.core.security import Principal
from app.schemas.common import ApiResponse
from app.schemas.services import PaymentMethod, PaymentRequest, PaymentResult
from app.services.payments import PaymentProcessor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/methods", response_model=ApiResponse[List[PaymentMethod]])
def get_methods(processor: PaymentProcessor = Depends(get_payment_processor)):
    return ApiResponse(message="Payment methods retrieved", data=processor.methods())


@router.post("/process", response_model=ApiResponse[PaymentResult])
async def process_payment(
    body: PaymentRequest,
    principal: Principal = Depends(get_principal),
    processor: PaymentProcessor = Depends(get_payment_processor),
):
    logger.info(f"Processing {body.service_type} payment of {body.amount} {body.currency} for {principal}")
    result = await processor.process(body)
    return ApiResponse(message="Payment processed successfully", data=result)
