"""Weighing validation utilities.

This module validates a weighing before it becomes a persisted record:
weight relationships, ranges and source.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from ..config import Config
from ..models.schema import ValidationResult, WeightRecord

logger = logging.getLogger(__name__)

WEIGHT_SOURCES = ("scale", "manual")


class WeightValidator:
    """
    Validates gross/tare weights for a new record.

    Performs:
    - Presence and numeric checks
    - Logical validation (gross > 0, tare >= 0, gross >= tare)
    - Range validation (scale capacity)
    """

    def __init__(self, max_weight: Decimal = Config.MAX_SCALE_READING):
        """
        Initialize the validator.

        Args:
            max_weight: Largest plausible weight (scale capacity)
        """
        self.max_weight = max_weight
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate(self, gross_weight, tare_weight, weight_source: str = "scale") -> ValidationResult:
        """
        Validate a weighing.

        Args:
            gross_weight: Gross weight (number or numeric string)
            tare_weight: Tare weight (number or numeric string)
            weight_source: 'scale' or 'manual'

        Returns:
            ValidationResult with validation status and messages
        """
        warnings: List[str] = []
        errors: List[str] = []
        computed_net = None

        gross = self._as_decimal(gross_weight, "Gross", errors)
        tare = self._as_decimal(tare_weight, "Tare", errors)

        if weight_source not in WEIGHT_SOURCES:
            errors.append(f"Weight source must be one of {', '.join(WEIGHT_SOURCES)}")

        if gross is not None and tare is not None:
            if gross <= 0:
                errors.append("Gross weight must be greater than 0")
            if tare < 0:
                errors.append("Tare weight cannot be negative")
            if gross < tare:
                errors.append("Gross weight must be greater than or equal to Tare weight")

            computed_net = gross - tare

            if gross > self.max_weight:
                warnings.append(f"Gross weight ({gross} kg) exceeds scale capacity")
            if computed_net == 0 and not errors:
                warnings.append("Net weight is zero; Tally quantity will be sent as the minimum")

        result = ValidationResult(
            is_valid=not errors,
            warnings=warnings,
            errors=errors,
            computed_net_weight=computed_net,
        )

        for warning in warnings:
            self.logger.warning(f"Validation warning: {warning}")

        for error in errors:
            self.logger.error(f"Validation error: {error}")

        return result

    def _as_decimal(self, value, label: str, errors: List[str]) -> Optional[Decimal]:
        if value is None or value == '':
            errors.append(f"{label} weight is required")
            return None
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            number = None

        if number is None or not number.is_finite():
            errors.append(f"{label} weight '{value}' is not a number")
            return None
        return number

    def create_record(
        self,
        product_id: str,
        gross_weight,
        tare_weight,
        recorded_by: Optional[str] = None,
        weight_source: str = "scale",
        weight_unit: str = Config.DEFAULT_WEIGHT_UNIT,
    ) -> WeightRecord:
        """
        Build a new pending record after validation.

        Raises:
            ValueError: If the weighing is invalid
        """
        if not product_id:
            raise ValueError("Product is required")

        result = self.validate(gross_weight, tare_weight, weight_source)
        if not result.is_valid:
            raise ValueError("; ".join(result.errors))

        return WeightRecord(
            product_id=product_id,
            gross_weight=Decimal(str(gross_weight)),
            tare_weight=Decimal(str(tare_weight)),
            net_weight=result.computed_net_weight,
            weight_unit=weight_unit,
            weight_source=weight_source,
            recorded_by=recorded_by,
        )
