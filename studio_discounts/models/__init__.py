# Discounts
from studio_discounts.models.discounts.discount_models import DiscountCode
from studio_discounts.models.discounts.redemption_models import DiscountRedemption

# Users and audit
from studio_discounts.models.users.user_models import User
from studio_discounts.models.support.activity_models import UserActivity
