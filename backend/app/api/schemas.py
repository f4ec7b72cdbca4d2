"""
Pydantic schemas for API request/response validation

Token amounts, liquidity and Q64.96 prices are integers of arbitrary precision.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class DepositRequest(BaseModel):
    """Request payload for POST /api/v1/vault/deposit"""
    amount0_desired: int = Field(..., ge=0, description="Maximum token0 to spend")
    amount1_desired: int = Field(..., ge=0, description="Maximum token1 to spend")
    amount0_min: int = Field(default=0, ge=0, description="Revert if less token0 is used")
    amount1_min: int = Field(default=0, ge=0, description="Revert if less token1 is used")
    to: str = Field(..., description="Share recipient")
    sender: str = Field(..., description="Address paying the tokens")

    class Config:
        json_schema_extra = {
            "example": {
                "amount0_desired": 1000000,
                "amount1_desired": 1000000,
                "amount0_min": 0,
                "amount1_min": 0,
                "to": "alice",
                "sender": "alice"
            }
        }


class DepositResponse(BaseModel):
    """Response payload for POST /api/v1/vault/deposit"""
    shares: int = Field(..., description="Shares minted to the recipient")
    amount0: int = Field(..., description="token0 actually paid")
    amount1: int = Field(..., description="token1 actually paid")


class WithdrawRequest(BaseModel):
    """Request payload for POST /api/v1/vault/withdraw"""
    shares: int = Field(..., gt=0, description="Shares to burn")
    amount0_min: int = Field(default=0, ge=0)
    amount1_min: int = Field(default=0, ge=0)
    to: str = Field(..., description="Token recipient")
    sender: str = Field(..., description="Share holder")

    class Config:
        json_schema_extra = {
            "example": {
                "shares": 500000,
                "amount0_min": 0,
                "amount1_min": 0,
                "to": "alice",
                "sender": "alice"
            }
        }


class WithdrawResponse(BaseModel):
    amount0: int
    amount1: int


class RebalanceRequest(BaseModel):
    """Request payload for POST /api/v1/vault/rebalance"""
    swap_amount: int = Field(default=0, description="Positive sells token0, negative sells token1")
    sqrt_price_limit_x96: int = Field(default=0, ge=0, description="Swap price limit (0 = no limit)")
    sender: str = Field(..., description="Keeper address")

    class Config:
        json_schema_extra = {
            "example": {
                "swap_amount": 0,
                "sqrt_price_limit_x96": 0,
                "sender": "keeper"
            }
        }


class RangeInfo(BaseModel):
    tick_lower: int
    tick_upper: int


class RebalanceResponse(BaseModel):
    """Response payload for POST /api/v1/vault/rebalance"""
    tick: int
    twap: int
    base_range: RangeInfo
    limit_range: RangeInfo
    base_liquidity: int
    limit_liquidity: int
    fees0: int = Field(..., description="Depositor share of collected token0 fees")
    fees1: int = Field(..., description="Depositor share of collected token1 fees")


class CollectFeesRequest(BaseModel):
    """Request payload for POST /api/v1/vault/fees/{bucket}"""
    amount0: int = Field(..., ge=0)
    amount1: int = Field(..., ge=0)
    to: str
    sender: str


class ConfigUpdateRequest(BaseModel):
    """Request payload for POST /api/v1/vault/config"""
    sender: str = Field(..., description="Governance address")
    changes: Dict[str, Any] = Field(..., description="Config fields to replace")

    class Config:
        json_schema_extra = {
            "example": {
                "sender": "governance",
                "changes": {"protocol_fee": 50000, "rebalance_cooldown": 3600}
            }
        }


class VaultStateResponse(BaseModel):
    """Response payload for GET /api/v1/vault"""
    total_supply: int
    base_range: RangeInfo
    limit_range: RangeInfo
    base_liquidity: int
    limit_liquidity: int
    total_amount0: int
    total_amount1: int
    free_balance0: int
    free_balance1: int
    accrued_protocol_fees0: int
    accrued_protocol_fees1: int
    accrued_team_fees0: int
    accrued_team_fees1: int
    tick: int
    sqrt_price_x96: int
    last_rebalance: int
    finalized: bool
    config_version: int
    governance: str
    keeper: Optional[str] = None
    team: Optional[str] = None


class FaucetRequest(BaseModel):
    """Request payload for POST /api/v1/sim/faucet"""
    holder: str
    amount0: int = Field(default=0, ge=0)
    amount1: int = Field(default=0, ge=0)


class AdvanceRequest(BaseModel):
    """Request payload for POST /api/v1/sim/advance"""
    seconds: int = Field(..., ge=0, description="Seconds to move the simulated clock forward")


class AdvanceResponse(BaseModel):
    timestamp: int


class SwapRequest(BaseModel):
    """Request payload for POST /api/v1/sim/swap"""
    trader: str
    zero_for_one: bool = Field(..., description="True sells token0 for token1")
    amount_in: int = Field(..., gt=0)
    sqrt_price_limit_x96: int = Field(default=0, ge=0)


class SwapResponse(BaseModel):
    amount0: int = Field(..., description="Pool token0 delta (positive = paid in)")
    amount1: int = Field(..., description="Pool token1 delta (positive = paid in)")
    tick: int
    sqrt_price_x96: int


class BalancesResponse(BaseModel):
    holder: str
    token0: int
    token1: int
    shares: int


class HealthCheckResponse(BaseModel):
    """Response payload for GET /api/v1/health endpoint"""
    status: str = Field(..., description="Health status (healthy or unhealthy)")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "0.1.0",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }


class SimulationStatusResponse(BaseModel):
    """Response payload for GET /api/v1/sim/status"""
    timestamp: int
    tick: int
    pool_liquidity: int
    config_version: int
    status: str = Field(..., description="running or finalized")


class ErrorResponse(BaseModel):
    """Error response payload"""
    status: str = Field(default="error", description="Response status")
    message: str = Field(..., description="Error reason")
    detail: Optional[str] = Field(None, description="Detailed error information")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "error",
                "message": "cooldown",
                "detail": None,
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
