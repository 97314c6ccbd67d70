from fastapi import APIRouter, Depends, HTTPException

from stockroom.core.api_docs import error_responses
from stockroom.core.security_current import get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.identity import Identity, UserRole
from stockroom.schemas.common import DeletedOut
from stockroom.schemas.roles import RoleAssignmentCreate, RoleAssignmentListOut, RoleAssignmentOut

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get(
    "/roles",
    response_model=RoleAssignmentListOut,
    summary="List role assignments",
    description="Admins see every assignment; other callers get an empty list.",
    responses=error_responses(401, 500),
)
def list_roles(gateway: DataGateway = Depends(get_gateway)):
    rows = gateway.select(UserRole)
    return RoleAssignmentListOut(items=[RoleAssignmentOut.model_validate(row) for row in rows])


@router.post(
    "/roles",
    response_model=RoleAssignmentOut,
    status_code=201,
    summary="Assign role",
    description="Admin only. Assigning a role the user already holds is a conflict.",
    responses=error_responses(401, 403, 404, 409, 422, 500),
)
def assign_role(payload: RoleAssignmentCreate, gateway: DataGateway = Depends(get_gateway)):
    # Identities are outside the policy layer; only existence is checked here.
    if not gateway.db.get(Identity, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    assignment = gateway.insert(UserRole, {"user_id": payload.user_id, "role": payload.role})
    gateway.db.commit()
    return RoleAssignmentOut.model_validate(assignment)


@router.delete(
    "/roles/{assignment_id}",
    response_model=DeletedOut,
    summary="Revoke role",
    description="Admin only.",
    responses=error_responses(401, 403, 404, 500),
)
def revoke_role(assignment_id: str, gateway: DataGateway = Depends(get_gateway)):
    assignment = gateway.get(UserRole, assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Role assignment not found")
    gateway.delete(assignment)
    gateway.db.commit()
    return DeletedOut()
