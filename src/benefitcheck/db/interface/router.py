"""
Admin router for the call interface tables.

Snapshot identifiers stay encrypted at rest; these endpoints return them
masked.
"""

from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from benefitcheck.auth.dependencies import require_admin
from benefitcheck.auth.schemas import User
from benefitcheck.crypto.service import FieldKind, mask
from benefitcheck.db.dependencies import get_interface_repository
from benefitcheck.db.interface.model import IfCallTransaction
from benefitcheck.db.interface.repository import InterfaceRepository
from benefitcheck.db.interface.schemas import InterfaceDeleteResponse, InterfaceListResponse

router = APIRouter(prefix="/admin/interface", tags=["Interface"])

SNAPSHOT_IDENTIFIERS = ("policy_number", "group_number", "subscriber_id")


def _masked_snapshot(snapshot: IfCallTransaction) -> dict[str, Any]:
    data = snapshot.to_dict()
    for key in SNAPSHOT_IDENTIFIERS:
        data[key] = mask(data[key], FieldKind.IDENTIFIER) or None
    return data


@router.get("/transactions", response_model=InterfaceListResponse)
async def list_snapshots(
    patient_id: str | None = Query(None, description="Filter by patient ID"),
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceListResponse:
    """List call transaction snapshots, oldest first."""
    snapshots = await interface_repository.list_snapshots(patient_id=patient_id)
    items = [_masked_snapshot(snapshot) for snapshot in snapshots]
    return InterfaceListResponse(items=items, total=len(items))


@router.get("/coverage-codes", response_model=InterfaceListResponse)
async def list_coverage_codes(
    transaction_id: str | None = Query(None, description="Filter by snapshot ID"),
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceListResponse:
    """List coverage code rows copied into snapshots."""
    rows = await interface_repository.list_coverage_codes(snapshot_id=transaction_id)
    return InterfaceListResponse(items=[row.to_dict() for row in rows], total=len(rows))


@router.get("/messages", response_model=InterfaceListResponse)
async def list_messages(
    transaction_id: str | None = Query(None, description="Filter by snapshot ID"),
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceListResponse:
    """List transcript messages copied into snapshots."""
    rows = await interface_repository.list_messages(snapshot_id=transaction_id)
    return InterfaceListResponse(items=[row.to_dict() for row in rows], total=len(rows))


async def _delete_row(
    interface_repository: InterfaceRepository,
    delete: Callable[[str], Awaitable[bool]],
    label: str,
    row_id: str,
) -> InterfaceDeleteResponse:
    try:
        deleted = await delete(row_id)
        if not deleted:
            raise HTTPException(
                status_code=HTTPStatus.NOT_FOUND,
                detail=f"{label} {row_id} not found",
            )

        await interface_repository.session.commit()
        return InterfaceDeleteResponse(message=f"{label} {row_id} deleted")

    except HTTPException:
        raise
    except Exception as e:
        await interface_repository.session.rollback()
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete {label.lower()}: {str(e)}",
        )


@router.delete("/transactions/{snapshot_id}", response_model=InterfaceDeleteResponse)
async def delete_snapshot(
    snapshot_id: str,
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceDeleteResponse:
    """
    Delete a snapshot together with its coverage codes and messages.

    Raises:
        HTTPException: 404 if the snapshot does not exist
    """
    return await _delete_row(
        interface_repository, interface_repository.delete_snapshot, "Snapshot", snapshot_id
    )


@router.delete("/coverage/{coverage_code_id}", response_model=InterfaceDeleteResponse)
async def delete_coverage_code(
    coverage_code_id: str,
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceDeleteResponse:
    """Delete one coverage code row; its snapshot stays."""
    return await _delete_row(
        interface_repository,
        interface_repository.delete_coverage_code,
        "Coverage code",
        coverage_code_id,
    )


@router.delete("/messages/{message_id}", response_model=InterfaceDeleteResponse)
async def delete_message(
    message_id: str,
    _admin: User = Depends(require_admin),
    interface_repository: InterfaceRepository = Depends(get_interface_repository),
) -> InterfaceDeleteResponse:
    """Delete one transcript message; its snapshot stays."""
    return await _delete_row(
        interface_repository, interface_repository.delete_message, "Message", message_id
    )
