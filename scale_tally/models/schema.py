"""Pydantic models for the weighing and Tally sync data schema.

This module defines the structured data models shared by acquisition,
label printing and Tally sync, ensuring type safety and validation
throughout the station.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from .sync_state import SyncStatus, transition


def generate_roll_no() -> str:
    """Roll number derived from the last 8 digits of the millisecond clock."""
    return f"R{str(int(time.time() * 1000))[-8:]}"


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class WeightRecord(BaseModel):
    """
    One physical weighing event.

    Attributes:
        id: Record identifier
        product_id: Reference to the weighed product
        gross_weight: Total weight including packaging/core (kg)
        tare_weight: Packaging/core weight (kg)
        net_weight: gross_weight - tare_weight (derived when omitted)
        weight_unit: Unit of the three weights
        weight_source: 'scale' or 'manual'
        roll_no: Human-facing identifier printed on the label
        recorded_by: Operator reference
        recorded_at: Time of weighing
        tally_sync_status: Sync state (see sync_state.TRANSITIONS)
        tally_voucher_id: Tally voucher id once synced
        tally_last_sync_attempt: Time of the last sync attempt
        tally_sync_error: Message from the last failed attempt
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    product_id: str = Field(..., description="Product reference")
    gross_weight: Decimal = Field(..., description="Gross weight in kg")
    tare_weight: Decimal = Field(Decimal('0'), description="Tare weight in kg")
    net_weight: Decimal = Field(..., description="Net weight in kg")
    weight_unit: str = Field("kg", description="Weight unit")
    weight_source: str = Field("scale", pattern=r'^(scale|manual)$')
    roll_no: str = Field(default_factory=generate_roll_no)
    recorded_by: Optional[str] = Field(None, description="Operator reference")
    recorded_at: datetime = Field(default_factory=datetime.now)
    tally_sync_status: SyncStatus = SyncStatus.PENDING
    tally_voucher_id: Optional[str] = None
    tally_last_sync_attempt: Optional[datetime] = None
    tally_sync_error: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def derive_net_weight(cls, data):
        """Fill in net weight from gross and tare when it was not supplied."""
        if isinstance(data, dict) and data.get('net_weight') is None:
            gross = data.get('gross_weight')
            if gross is not None:
                data = dict(data)
                data['net_weight'] = _to_decimal(gross) - _to_decimal(data.get('tare_weight') or 0)
        return data

    @model_validator(mode='after')
    def validate_weight_relationship(self):
        """Enforce gross > 0, tare >= 0, gross >= tare and net = gross - tare."""
        if self.gross_weight <= 0:
            raise ValueError("Gross weight must be greater than 0")
        if self.tare_weight < 0:
            raise ValueError("Tare weight cannot be negative")
        if self.gross_weight < self.tare_weight:
            raise ValueError("Gross weight must be greater than or equal to Tare weight")
        if self.net_weight != self.gross_weight - self.tare_weight:
            raise ValueError(
                f"Net weight {self.net_weight} does not equal "
                f"gross {self.gross_weight} - tare {self.tare_weight}"
            )
        return self

    def __setattr__(self, name, value):
        # Status changes go through the transition table
        if name == 'tally_sync_status':
            transition(self.tally_sync_status, value)
        super().__setattr__(name, value)

    def mark_attempt(self, when: Optional[datetime] = None):
        self.tally_last_sync_attempt = when or datetime.now()

    def mark_synced(self, voucher_id: Optional[str] = None):
        """Record a successful sync and clear any earlier error."""
        self.tally_sync_status = SyncStatus.SYNCED
        self.tally_sync_error = None
        if voucher_id:
            self.tally_voucher_id = voucher_id

    def mark_failed(self, message: str):
        self.tally_sync_status = SyncStatus.FAILED
        self.tally_sync_error = message

    def mark_ignored(self):
        self.tally_sync_status = SyncStatus.IGNORED

    class Config:
        """Pydantic configuration."""
        validate_assignment = True


class Product(BaseModel):
    """Read-only product reference resolved for labels and vouchers."""

    id: str
    name: Optional[str] = None
    unit: str = "kg"
    category: Optional[str] = None


class LedgerMappings(BaseModel):
    stock_ledger: str = "Internal Consumption"
    expense_ledger: str = "Production Expenses"
    party_ledger: str = "Cash"


class TallyConfig(BaseModel):
    """
    Connection and mapping settings for the Tally agent.

    Only the instance flagged ``active`` is authoritative. It is resolved
    once by the caller and handed to the sync components.
    """

    host: str = "127.0.0.1"
    port: int = Field(9000, gt=0, lt=65536)
    company_name: str = Field(..., min_length=1)
    default_godown: str = "Main Location"
    ledger_mappings: LedgerMappings = Field(default_factory=LedgerMappings)
    auto_sync: bool = False
    active: bool = True
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/"


class TallyVoucherPayload(BaseModel):
    """Transient voucher data produced by the mapper and consumed by the codec."""

    roll_no: str
    item_name: str
    quantity: Decimal
    unit: str = "kg"
    date: str = Field(..., pattern=r'^\d{8}$', description="YYYYMMDD")
    gross_weight: Decimal = Decimal('0')
    tare_weight: Decimal = Decimal('0')
    narration: str = ""


class WeightReading(BaseModel):
    """Weight parsed from one serial frame."""

    value: Decimal
    unit: str = "kg"
    raw: str = ""

    @property
    def token(self) -> str:
        return f"{self.value} {self.unit}"


class PortInfo(BaseModel):
    path: str
    manufacturer: Optional[str] = None
    description: Optional[str] = None


class LabelData(BaseModel):
    """Fields printed on a weight label."""

    product_name: str
    gross_weight: Decimal
    tare_weight: Decimal
    net_weight: Decimal
    unit: str = "kg"
    roll_no: str
    date: datetime

    @field_validator('product_name', mode='before')
    @classmethod
    def default_product_name(cls, v):
        return v or "Unknown Product"


class SyncResult(BaseModel):
    """
    Outcome of one exchange with the Tally agent.

    Attributes:
        success: Whether Tally accepted the document
        message: Human-readable outcome (the Tally error text on failure)
        error_type: Failure classification (see exceptions.ErrorType)
        voucher_id: Voucher id reported by Tally, when present
        xml_sent: Request document, kept on failures for follow-up
        response_raw: Raw response body, when one was received
    """

    success: bool
    message: str
    error_type: Optional[str] = None
    voucher_id: Optional[str] = None
    xml_sent: Optional[str] = None
    response_raw: Optional[str] = None


class SyncSummary(BaseModel):
    """Totals of a batch sync run."""

    success_count: int = 0
    fail_count: int = 0
    results: List[SyncResult] = Field(default_factory=list)
    message: str = ""


class ValidationResult(BaseModel):
    """
    Result of validating a weighing before it is persisted.

    Attributes:
        is_valid: Whether validation passed
        warnings: List of non-critical issues
        errors: List of critical validation failures
        computed_net_weight: Calculated net weight (gross - tare)
    """

    is_valid: bool = Field(..., description="Overall validation status")
    warnings: List[str] = Field(default_factory=list, description="Non-critical issues")
    errors: List[str] = Field(default_factory=list, description="Critical validation errors")
    computed_net_weight: Optional[Decimal] = Field(None, description="Calculated net weight")
