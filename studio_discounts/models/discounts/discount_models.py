from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Enum, JSON, Index, CheckConstraint
from studio_discounts.core.db import Base
from studio_discounts.models.base.mixins import TimestampMixin, AuditMixin
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_scope import DiscountScope


class DiscountCode(Base, TimestampMixin, AuditMixin):
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True)
    # always stored normalized: trimmed, upper case
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    kind = Column(Enum(DiscountKind), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)

    max_total_uses = Column(Integer, nullable=True)
    max_uses_per_user = Column(Integer, nullable=True)
    # written only by the redemption ledger's compare-and-increment
    current_uses = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    scope = Column(Enum(DiscountScope), nullable=False, default=DiscountScope.all)
    specific_item_ids = Column(JSON, nullable=False, default=list)
    minimum_purchase_amount = Column(Numeric(10, 2), nullable=True)

    enabled = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("kind IN ('percentage', 'fixed_amount')", name="ck_discount_code_kind"),
        CheckConstraint("value > 0", name="ck_discount_code_value_positive"),
        CheckConstraint("kind != 'percentage' OR value <= 100", name="ck_discount_code_percentage_max"),
        CheckConstraint("current_uses >= 0", name="ck_discount_code_current_uses_non_negative"),
        CheckConstraint(
            "max_total_uses IS NULL OR current_uses <= max_total_uses",
            name="ck_discount_code_usage_limit",
        ),
        CheckConstraint(
            "valid_until IS NULL OR valid_until > valid_from",
            name="ck_discount_code_date_range",
        ),
        Index("ix_discount_code_enabled", "enabled"),
        Index("ix_discount_code_valid_range", "valid_from", "valid_until"),
    )

    def __repr__(self):
        return f"<DiscountCode id={self.id} code={self.code} kind={self.kind} uses={self.current_uses}>"
