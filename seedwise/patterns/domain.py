"""
Content domain pattern rules.

Each rule lists table, column, relationship and business-logic name
patterns. Domain rules are scored by match ratio per kind, weighted by
``DOMAIN_CONFIDENCE_WEIGHTS``.
"""

from seedwise.patterns.rules import Matcher, PatternRule, RelationshipMatcher

DOMAIN_CONFIDENCE_WEIGHTS = {
    "tables": 0.4,
    "columns": 0.25,
    "relationships": 0.2,
    "business_logic": 0.15,
}

# Exclusive rules are boosted by this factor once they score above 0.5
EXCLUSIVE_BOOST = 1.2
EXCLUSIVE_BOOST_THRESHOLD = 0.5


def domain_rule(
    id: str,
    name: str,
    domain: str,
    *,
    weight: float,
    priority: int,
    minimum_matches: int,
    tables: tuple[str, ...],
    columns: tuple[str, ...],
    relationships: tuple[tuple[str, str], ...] = (),
    business_logic: tuple[str, ...] = (),
    exclusive: bool = False,
    description: str = "",
) -> PatternRule:
    """Build a ratio-scored domain rule from plain pattern lists."""
    return PatternRule(
        id=id,
        name=name,
        description=description,
        indicated_classes=(domain,),
        confidence_weight=weight,
        table_matchers=(Matcher(tables, label="tables"),) if tables else (),
        column_matchers=(Matcher(columns, label="columns", exact=True),) if columns else (),
        relationship_matchers=tuple(
            RelationshipMatcher(
                from_patterns=(source,), to_patterns=(target,), label=f"{source}->{target}"
            )
            for source, target in relationships
        ),
        function_matchers=(
            (Matcher(business_logic, label="business_logic"),) if business_logic else ()
        ),
        minimum_matches=minimum_matches,
        exclusive=exclusive,
        priority=priority,
        scoring="ratio",
    )


OUTDOOR_RULES = (
    domain_rule(
        "outdoor_gear_core",
        "Outdoor Gear Management",
        "outdoor",
        description="Gear items, setups and templates for outdoor equipment",
        weight=0.95,
        priority=10,
        minimum_matches=3,
        exclusive=True,
        tables=("gear_items", "setups", "base_templates", "setup_gear_items"),
        columns=("make", "model", "weight", "dimensions", "specifications", "type", "priority"),
        relationships=(("setups", "gear_items"), ("setups", "base_templates")),
        business_logic=("public_setup", "gear_priority", "affiliate_link"),
    ),
    domain_rule(
        "outdoor_adventure_activities",
        "Adventure Activities",
        "outdoor",
        weight=0.85,
        priority=9,
        minimum_matches=2,
        exclusive=True,
        tables=("trips", "adventures", "activities", "expeditions", "journeys"),
        columns=("adventure_type", "difficulty", "duration", "location", "terrain"),
        relationships=(("trips", "gear_items"), ("adventures", "setups")),
        business_logic=("trip_planning", "adventure_log", "location_tracking"),
    ),
    domain_rule(
        "outdoor_equipment_categories",
        "Equipment Categories",
        "outdoor",
        weight=0.75,
        priority=7,
        minimum_matches=1,
        tables=("categories", "gear_categories", "equipment_types"),
        columns=("category_type", "outdoor_category", "gear_type", "equipment_class"),
        relationships=(("categories", "gear_items"),),
        business_logic=("category_hierarchy", "gear_classification"),
    ),
    domain_rule(
        "outdoor_vehicles_shelter",
        "Vehicles and Shelter",
        "outdoor",
        weight=0.8,
        priority=8,
        minimum_matches=1,
        exclusive=True,
        tables=("vehicles", "shelters", "backpacks", "camping_gear"),
        columns=("vehicle_type", "shelter_type", "capacity", "season_rating", "backpack_volume"),
        business_logic=("vehicle_setup", "shelter_config", "load_management"),
    ),
)

SAAS_RULES = (
    domain_rule(
        "saas_subscription_core",
        "Subscription Billing",
        "saas",
        description="Subscriptions, plans and billing records",
        weight=0.95,
        priority=10,
        minimum_matches=3,
        exclusive=True,
        tables=("subscriptions", "billing", "plans", "pricing", "billing_customers"),
        columns=(
            "plan_id",
            "subscription_status",
            "billing_cycle",
            "mrr",
            "trial_end",
            "next_billing",
        ),
        relationships=(("subscriptions", "plans"), ("subscriptions", "billing")),
        business_logic=("subscription_lifecycle", "billing_automation", "plan_changes"),
    ),
    domain_rule(
        "saas_team_workspace",
        "Team Workspaces",
        "saas",
        weight=0.9,
        priority=9,
        minimum_matches=2,
        tables=("workspaces", "teams", "organizations", "members", "memberships"),
        columns=(
            "workspace_id",
            "team_id",
            "member_role",
            "permission_level",
            "workspace_settings",
        ),
        relationships=(("organizations", "workspaces"), ("workspaces", "members")),
        business_logic=("team_permissions", "workspace_isolation", "member_management"),
    ),
    domain_rule(
        "saas_feature_usage",
        "Feature Usage Tracking",
        "saas",
        weight=0.8,
        priority=8,
        minimum_matches=2,
        tables=("features", "usage", "analytics", "metrics", "quotas", "limits"),
        columns=("usage_count", "feature_enabled", "quota_limit", "usage_period", "feature_flag"),
        relationships=(("usage", "features"), ("plans", "features")),
        business_logic=("usage_tracking", "quota_enforcement", "feature_gating"),
    ),
    domain_rule(
        "saas_productivity_tools",
        "Productivity Tools",
        "saas",
        weight=0.75,
        priority=7,
        minimum_matches=1,
        tables=("projects", "tasks", "workflows", "automation", "integrations"),
        columns=("project_status", "task_priority", "workflow_state", "automation_trigger"),
        relationships=(("projects", "tasks"), ("workflows", "automation")),
        business_logic=("project_management", "task_automation", "workflow_execution"),
    ),
)

ECOMMERCE_RULES = (
    domain_rule(
        "ecommerce_product_core",
        "Product Catalog",
        "ecommerce",
        description="Products, variants, categories and inventory",
        weight=0.95,
        priority=10,
        minimum_matches=3,
        exclusive=True,
        tables=("products", "inventory", "categories", "variants", "product_variants"),
        columns=("sku", "price", "inventory_count", "stock_level", "variant_id", "category_id"),
        relationships=(("products", "categories"), ("products", "variants")),
        business_logic=("inventory_management", "price_calculation", "variant_selection"),
    ),
    domain_rule(
        "ecommerce_transaction_core",
        "Orders and Payments",
        "ecommerce",
        weight=0.9,
        priority=9,
        minimum_matches=2,
        exclusive=True,
        tables=("orders", "cart", "payments", "transactions", "checkouts"),
        columns=(
            "order_status",
            "payment_method",
            "total_amount",
            "cart_total",
            "transaction_id",
        ),
        relationships=(("orders", "products"), ("orders", "payments")),
        business_logic=("order_processing", "payment_handling", "cart_management"),
    ),
    domain_rule(
        "ecommerce_marketplace",
        "Marketplace Vendors",
        "ecommerce",
        weight=0.85,
        priority=8,
        minimum_matches=1,
        exclusive=True,
        tables=("vendors", "sellers", "stores", "merchants", "marketplace"),
        columns=("vendor_id", "seller_id", "commission_rate", "payout_status", "store_settings"),
        relationships=(("vendors", "products"), ("stores", "orders")),
        business_logic=("vendor_management", "commission_calculation", "marketplace_rules"),
    ),
    domain_rule(
        "ecommerce_shipping_fulfillment",
        "Shipping and Fulfillment",
        "ecommerce",
        weight=0.8,
        priority=7,
        minimum_matches=1,
        tables=("shipping", "fulfillment", "warehouses", "carriers", "deliveries"),
        columns=(
            "shipping_address",
            "tracking_number",
            "carrier_name",
            "delivery_date",
            "fulfillment_status",
        ),
        relationships=(("orders", "shipping"), ("warehouses", "inventory")),
        business_logic=("shipping_calculation", "fulfillment_workflow", "tracking_updates"),
    ),
)

SOCIAL_RULES = (
    domain_rule(
        "social_engagement_core",
        "Engagement",
        "social",
        description="Posts with likes, comments, shares and reactions",
        weight=0.95,
        priority=10,
        minimum_matches=3,
        exclusive=True,
        tables=("posts", "likes", "comments", "shares", "reactions"),
        columns=(
            "like_count",
            "comment_count",
            "share_count",
            "reaction_type",
            "engagement_score",
        ),
        relationships=(("posts", "likes"), ("posts", "comments")),
        business_logic=("engagement_tracking", "reaction_handling", "content_scoring"),
    ),
    domain_rule(
        "social_network_graph",
        "Social Graph",
        "social",
        weight=0.9,
        priority=9,
        minimum_matches=1,
        exclusive=True,
        tables=("follows", "followers", "friends", "connections", "friendships"),
        columns=(
            "follower_id",
            "following_id",
            "friend_status",
            "connection_type",
            "relationship_status",
        ),
        relationships=(("follows", "users"), ("friendships", "users")),
        business_logic=("follow_system", "friend_requests", "connection_management"),
    ),
    domain_rule(
        "social_content_creation",
        "Media Content",
        "social",
        weight=0.85,
        priority=8,
        minimum_matches=2,
        tables=("media", "photos", "videos", "stories", "timeline", "feeds"),
        columns=("media_url", "media_type", "caption", "hashtags", "mentions", "visibility"),
        relationships=(("posts", "media"), ("stories", "media")),
        business_logic=("media_processing", "content_moderation", "visibility_control"),
    ),
    domain_rule(
        "social_activity_feed",
        "Activity Feed",
        "social",
        weight=0.8,
        priority=7,
        minimum_matches=1,
        tables=("feeds", "notifications", "activities", "timeline", "news_feed"),
        columns=(
            "activity_type",
            "notification_type",
            "read_status",
            "feed_rank",
            "activity_timestamp",
        ),
        relationships=(("activities", "users"), ("notifications", "activities")),
        business_logic=("feed_generation", "notification_delivery", "activity_ranking"),
    ),
)

GENERIC_RULES = (
    domain_rule(
        "generic_user_content",
        "User Content",
        "generic",
        weight=0.5,
        priority=3,
        minimum_matches=1,
        tables=("users", "content", "posts", "items", "entries"),
        columns=("title", "description", "content", "body", "text", "data"),
        relationships=(("content", "users"),),
        business_logic=("content_management", "user_permissions"),
    ),
    domain_rule(
        "generic_categorization",
        "Categorization",
        "generic",
        weight=0.4,
        priority=2,
        minimum_matches=1,
        tables=("categories", "tags", "classifications", "types"),
        columns=("category", "tag", "type", "classification", "group"),
        relationships=(("content", "categories"),),
        business_logic=("categorization", "tagging_system"),
    ),
    domain_rule(
        "generic_settings_config",
        "Settings",
        "generic",
        weight=0.3,
        priority=1,
        minimum_matches=1,
        tables=("settings", "config", "preferences", "options"),
        columns=("setting_key", "setting_value", "config_name", "preference", "option"),
        business_logic=("settings_management", "configuration"),
    ),
)

DOMAIN_RULES: dict[str, tuple[PatternRule, ...]] = {
    "outdoor": OUTDOOR_RULES,
    "saas": SAAS_RULES,
    "ecommerce": ECOMMERCE_RULES,
    "social": SOCIAL_RULES,
    "generic": GENERIC_RULES,
}

DOMAIN_RECOMMENDATIONS = {
    "outdoor": (
        "Consider enabling outdoor-specific data generation patterns",
        "Review gear and setup table relationships for outdoor domain",
    ),
    "saas": (
        "Enable team and workspace management features",
        "Consider subscription and billing table requirements",
    ),
    "ecommerce": (
        "Verify product catalog and order management tables",
        "Consider payment processing and inventory tracking features",
    ),
    "social": (
        "Enable user interaction and content sharing features",
        "Consider privacy settings and content moderation requirements",
    ),
    "generic": (
        "Generic domain detected - consider more specific domain configuration",
        "Review schema patterns to identify potential specialized domain features",
    ),
}
