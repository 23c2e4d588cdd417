"""
Monitor Value Objects
=====================

Monitor configuration loaded from the config file.

The file is JSON or YAML with the customer list, Tableau view ids, chat
destinations and thresholds. Secrets never live here; they come from
Settings.
"""

from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from spend_monitor.revenue.domain import CustomerRef


class CustomerConfig(BaseModel):
    """One monitored customer."""
    name: str = Field(min_length=1, description="Internal customer name")
    tableau_url_name: str = Field(min_length=1, description="Value for the Tableau account filter")
    display_name: Optional[str] = Field(default=None, description="Name shown in the report")

    @model_validator(mode="after")
    def default_display_name(self) -> "CustomerConfig":
        if not self.display_name:
            self.display_name = self.name
        return self

    def to_ref(self) -> CustomerRef:
        return CustomerRef(
            internal_name=self.name,
            external_query_key=self.tableau_url_name,
            display_name=self.display_name or self.name,
        )


class TableauViews(BaseModel):
    """Tableau view ids."""
    monthly_revenue: str = Field(min_length=1)
    daily_revenue: Optional[str] = None
    service_breakdown: Optional[str] = None


class TableauConfig(BaseModel):
    """Primary revenue source settings (the PAT secret comes from Settings)."""
    server: str = Field(min_length=1)
    site: str = ""
    pat_name: str = Field(min_length=1)
    api_version: str = "3.24"
    filter_field: str = "Account Name"
    views: TableauViews


class SlackConfig(BaseModel):
    dm_channel: str = Field(min_length=1)


class TelegramConfig(BaseModel):
    chat_id: Optional[str] = None

    @field_validator("chat_id", mode="before")
    @classmethod
    def coerce_chat_id(cls, v: Union[str, int, None]) -> Optional[str]:
        """Telegram chat ids are often written as bare integers."""
        if v is None or v == "":
            return None
        return str(v)


class Thresholds(BaseModel):
    """
    Pace and watch-list thresholds.

    Decline thresholds may be written negative (``-10``) or positive
    (``10``); only the magnitude is used.
    """
    growth_pct: Decimal = Decimal("15")
    decline_pct: Decimal = Decimal("-10")
    watch_drop_pct: Decimal = Decimal("-25")
    escalation_count: int = Field(default=3, ge=1)
    stale_ticket_business_days: int = Field(default=5, ge=0)


DEFAULT_BILLING_AGENT_URL = "http://revenue-agents.query.prod.telnyx.io:8000/a2a/billing-account/rpc"


class A2AConfig(BaseModel):
    """Fallback billing agent endpoint; a missing or blank url uses the default agent."""
    billing_url: str = DEFAULT_BILLING_AGENT_URL

    @field_validator("billing_url", mode="before")
    @classmethod
    def default_when_blank(cls, v: Optional[str]) -> str:
        return v or DEFAULT_BILLING_AGENT_URL


class MonitorConfig(BaseModel):
    """
    Whole monitor configuration.

    This is a value object - loaded once per run and never mutated.
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    customers: List[CustomerConfig]
    tableau: TableauConfig
    slack: SlackConfig
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    a2a: A2AConfig = Field(default_factory=A2AConfig)
    escalation_tracker_path: Optional[str] = None
    engdesk_tracker_glob: Optional[str] = None

    @field_validator("telegram", "thresholds", "a2a", mode="before")
    @classmethod
    def null_section_uses_defaults(cls, v):
        return {} if v is None else v

    def customer_refs(self) -> List[CustomerRef]:
        """Customers in config order."""
        return [c.to_ref() for c in self.customers]
