from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, ForeignKey, Index, CheckConstraint
from studio_discounts.core.db import Base
from studio_discounts.models.enums.item_type import ItemType


class DiscountRedemption(Base):
    """One successful use of a code. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "discount_redemptions"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discount_codes.id", ondelete="RESTRICT"), nullable=False, index=True)
    code = Column(String(50), nullable=False)

    # member identity; absent for anonymous / walk-in sales
    user_id = Column(String(100), nullable=True)
    user_name = Column(String(150), nullable=True)
    user_email = Column(String(255), nullable=True)

    item_type = Column(Enum(ItemType), nullable=False)
    item_id = Column(String(100), nullable=False)
    item_name = Column(String(200), nullable=False)

    original_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)
    final_amount = Column(Numeric(10, 2), nullable=False)

    used_at = Column(DateTime(timezone=True), nullable=False, index=True)
    processed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    processed_by_name = Column(String(150), nullable=False)
    notes = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "original_amount >= 0 AND discount_amount >= 0 AND final_amount >= 0",
            name="ck_redemption_amounts_non_negative",
        ),
        CheckConstraint("discount_amount <= original_amount", name="ck_redemption_discount_within_original"),
        Index("ix_redemption_user_discount", "user_id", "discount_id"),
    )

    def __repr__(self):
        return f"<DiscountRedemption id={self.id} code={self.code} discount={self.discount_amount}>"
