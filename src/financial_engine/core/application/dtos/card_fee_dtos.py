from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from financial_engine.core.domain.entities.enums import CardType


class FeeTierDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    count: int = Field(ge=1)
    fee_percentage: Decimal = Field(ge=0, le=100, alias="feePercentage")


class CreateCardFeeRulesDTO(BaseModel):
    """Uma operadora/tipo com várias faixas de parcelamento."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    card_operator: str = Field(min_length=1, alias="cardOperator")
    card_type: CardType = Field(alias="cardType")
    receiving_days: int = Field(default=30, ge=0, alias="receivingDays")
    installments: list[FeeTierDTO] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_tiers(self) -> CreateCardFeeRulesDTO:
        counts = [t.count for t in self.installments]
        if len(counts) != len(set(counts)):
            raise ValueError("Faixas de parcelamento duplicadas")
        return self
