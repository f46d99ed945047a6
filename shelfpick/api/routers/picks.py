# shelfpick/api/routers/picks.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.api.deps import get_ecommerce_client, get_erp_client
from shelfpick.api.routers.picks_helpers import raise_pick_error
from shelfpick.api.routers.picks_schemas import (
    LocationVerdictOut,
    PickCreateIn,
    PickDetailOut,
    PickOut,
    PickPartialOut,
    PickResetOut,
    PickScanIn,
    PickScanResult,
    ScanItemOut,
    VerifyLocationIn,
)
from shelfpick.db.session import get_session
from shelfpick.integrations.ecommerce_client import EcommerceClient
from shelfpick.integrations.erp_client import ErpClient
from shelfpick.jobs.order_sync_dispatch import dispatch_sync_job
from shelfpick.services.pick_errors import PickError
from shelfpick.services.pick_session_service import PickSessionService

router = APIRouter(prefix="/picks", tags=["picks"])


@router.post("", response_model=PickOut, status_code=201)
async def create_pick(
    payload: PickCreateIn,
    session: AsyncSession = Depends(get_session),
) -> PickOut:
    svc = PickSessionService(session)
    try:
        pick = await svc.create(order_id=payload.order_id)
        await session.commit()
    except PickError as e:
        await session.rollback()
        raise_pick_error(e)
    except Exception:
        await session.rollback()
        raise

    return PickOut.model_validate(pick)


@router.get("/{pick_id}", response_model=PickDetailOut)
async def get_pick(
    pick_id: int = Path(..., description="Pick id"),
    session: AsyncSession = Depends(get_session),
) -> PickDetailOut:
    svc = PickSessionService(session)
    try:
        detail = await svc.get_detail(pick_id=pick_id)
    except PickError as e:
        raise_pick_error(e)
    return PickDetailOut.model_validate(detail)


@router.post("/{pick_id}/verify-location", response_model=LocationVerdictOut)
async def verify_location(
    pick_id: int,
    payload: VerifyLocationIn,
    session: AsyncSession = Depends(get_session),
) -> LocationVerdictOut:
    svc = PickSessionService(session)
    try:
        verdict = await svc.verify_location(
            pick_id=pick_id,
            package_barcode=payload.package_barcode,
            shelf_code=payload.shelf_code,
        )
    except PickError as e:
        raise_pick_error(e)
    return LocationVerdictOut.model_validate(verdict)


@router.post("/{pick_id}/scan", response_model=PickScanResult)
async def scan(
    pick_id: int,
    payload: PickScanIn,
    session: AsyncSession = Depends(get_session),
    erp_client: ErpClient = Depends(get_erp_client),
    ecommerce_client: EcommerceClient = Depends(get_ecommerce_client),
) -> PickScanResult:
    svc = PickSessionService(session)
    try:
        outcome = await svc.scan(pick_id=pick_id, barcode=payload.barcode)
        await session.commit()
    except PickError as e:
        await session.rollback()
        raise_pick_error(e)
    except HTTPException:
        await session.rollback()
        raise
    except Exception:
        await session.rollback()
        raise

    await dispatch_sync_job(
        session,
        outcome.sync_job_id,
        erp_client=erp_client,
        ecommerce_client=ecommerce_client,
    )

    return PickScanResult(
        item=ScanItemOut(
            id=outcome.order_item_id,
            picked_qty=outcome.picked_qty,
            quantity=outcome.quantity,
        ),
        order_completed=outcome.order_completed,
    )


@router.post("/{pick_id}/partial", response_model=PickPartialOut)
async def mark_partial(
    pick_id: int,
    session: AsyncSession = Depends(get_session),
    erp_client: ErpClient = Depends(get_erp_client),
    ecommerce_client: EcommerceClient = Depends(get_ecommerce_client),
) -> PickPartialOut:
    svc = PickSessionService(session)
    try:
        result = await svc.partial(pick_id=pick_id)
        await session.commit()
    except PickError as e:
        await session.rollback()
        raise_pick_error(e)
    except Exception:
        await session.rollback()
        raise

    out = PickPartialOut(
        pick=PickOut.model_validate(result.pick),
        fulfillment_status=result.fulfillment_status,
        message="Pick set to partial status and order updated",
    )
    await dispatch_sync_job(
        session,
        result.sync_job_id,
        erp_client=erp_client,
        ecommerce_client=ecommerce_client,
    )
    return out


@router.post("/{pick_id}/reset", response_model=PickResetOut)
async def reset_pick(
    pick_id: int,
    session: AsyncSession = Depends(get_session),
    erp_client: ErpClient = Depends(get_erp_client),
    ecommerce_client: EcommerceClient = Depends(get_ecommerce_client),
) -> PickResetOut:
    svc = PickSessionService(session)
    try:
        result = await svc.reset(pick_id=pick_id)
        await session.commit()
    except PickError as e:
        await session.rollback()
        raise_pick_error(e)
    except Exception:
        await session.rollback()
        raise

    out = PickResetOut(
        pick=PickOut.model_validate(result.pick),
        scans_deleted=result.scans_deleted,
        units_replenished=result.units_replenished,
        message="Pick reset, all scans removed",
    )
    await dispatch_sync_job(
        session,
        result.sync_job_id,
        erp_client=erp_client,
        ecommerce_client=ecommerce_client,
    )
    return out
