"""Read-only view of the allowance rules in force."""
from fastapi import APIRouter, Depends

from allowance_server.core.security import get_current_principal
from allowance_server.interfaces.http.deps import get_allowance_rules
from allowance_server.modules.allowances import AllowanceRules
from allowance_server.schemas import AllowanceRulesResponse, TokenData

router = APIRouter()


@router.get("/allowance", response_model=AllowanceRulesResponse, summary="Get the allowance rules")
async def get_allowance_settings(
    _: TokenData = Depends(get_current_principal),
    rules: AllowanceRules = Depends(get_allowance_rules),
) -> AllowanceRulesResponse:
    return AllowanceRulesResponse.model_validate(rules)
