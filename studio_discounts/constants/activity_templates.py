from studio_discounts.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- DISCOUNT CATALOG ----------------
    ActivityCode.CREATE_DISCOUNT:
        "{actor_role} ({actor_email}) created discount {target_name} ({target_code})",

    ActivityCode.UPDATE_DISCOUNT:
        "{actor_role} ({actor_email}) updated discount {target_code}: {changes}",

    ActivityCode.DEACTIVATE_DISCOUNT:
        "{actor_role} ({actor_email}) disabled discount {target_code}",

    ActivityCode.REACTIVATE_DISCOUNT:
        "{actor_role} ({actor_email}) enabled discount {target_code}",

    ActivityCode.DELETE_DISCOUNT:
        "{actor_role} ({actor_email}) deleted unused discount {target_code}",

    ActivityCode.DISABLE_USED_DISCOUNT:
        "{actor_role} ({actor_email}) requested deletion of discount {target_code}; "
        "disabled instead ({uses} redemptions on record)",

    # ---------------- REDEMPTIONS ----------------
    ActivityCode.REDEEM_DISCOUNT:
        "{actor_role} ({actor_email}) redeemed {target_code} on {item_type} {item_name}: "
        "{original_amount} - {discount_amount} = {final_amount}",
}
