"""Architecture pattern rules: individual, team and hybrid platform signatures."""

from seedwise.patterns.rules import Matcher, PatternRule, RelationshipMatcher

USER_TABLES = ("users", "profiles", "user_profiles", "accounts", "personal_accounts")
CONTENT_TABLES = (
    "posts",
    "articles",
    "content",
    "media",
    "images",
    "videos",
    "galleries",
    "projects",
    "portfolios",
    "creations",
    "works",
    "pieces",
)
TEAM_TABLES = ("organizations", "teams", "workspaces", "groups")
PROFILE_COLUMNS = (
    "bio",
    "about",
    "description",
    "avatar",
    "profile_picture",
    "banner",
    "social_links",
    "website",
    "location",
    "skills",
    "interests",
)
DIRECT_OWNER_COLUMNS = ("user_id", "owner_id", "creator_id", "author_id")
USER_OWNER_COLUMNS = ("user_id", "owner_id", "created_by")
ORG_OWNER_COLUMNS = ("organization_id", "team_id", "workspace_id")
MEDIATED_OWNER_COLUMNS = ORG_OWNER_COLUMNS + ("group_id",)

INDIVIDUAL_RULES = (
    PatternRule(
        id="individual_user_centric",
        name="User-Centric Content Creation",
        description="Content tables directly linked to individual users without team structures",
        indicated_classes=("individual",),
        confidence_weight=0.8,
        table_matchers=(
            Matcher(USER_TABLES, factor=0.3, min_count=1, label="user_tables"),
            Matcher(CONTENT_TABLES, factor=0.4, min_count=1, label="content_tables"),
        ),
        relationship_matchers=(
            RelationshipMatcher(
                from_patterns=USER_TABLES,
                to_patterns=CONTENT_TABLES,
                bidirectional=True,
                factor=0.3,
                label="user_content",
            ),
        ),
        minimum_matches=2,
    ),
    PatternRule(
        id="individual_simple_accounts",
        name="Simple Account Structure",
        description="Account tables without complex team or organization hierarchies",
        indicated_classes=("individual",),
        confidence_weight=0.7,
        table_matchers=(
            Matcher(("accounts", "users", "profiles"), min_count=1, label="account_tables"),
            Matcher(TEAM_TABLES, factor=-0.2, max_count=1, label="team_tables"),
        ),
        constraint_matchers=(
            Matcher(("personal_account", "is_personal"), factor=0.3, label="personal_constraints"),
        ),
        scoring="simple_accounts",
        base=0.6,
        floor=0.1,
    ),
    PatternRule(
        id="individual_personal_profile",
        name="Personal Profile Emphasis",
        description="Rich personal profile features indicating an individual-focused platform",
        indicated_classes=("individual",),
        confidence_weight=0.6,
        table_matchers=(Matcher(("profile",), factor=0.4, min_count=1, label="profile_tables"),),
        column_matchers=(
            Matcher(
                PROFILE_COLUMNS,
                factor=0.6,
                min_count=3,
                label="profile_columns",
                exact=True,
                scope=("profile",),
                ratio=True,
            ),
        ),
        minimum_matches=3,
    ),
    PatternRule(
        id="individual_limited_collaboration",
        name="Limited Collaboration Features",
        description="Simple social features without complex team collaboration",
        indicated_classes=("individual",),
        confidence_weight=0.5,
        table_matchers=(
            Matcher(
                ("followers", "following", "likes", "favorites", "bookmarks", "comments"),
                factor=0.3,
                min_count=1,
                label="social_tables",
            ),
            Matcher(
                ("workspaces", "projects", "teams", "channels", "rooms"),
                max_count=0,
                label="complex_collaboration_tables",
            ),
        ),
        base=0.7,
    ),
    PatternRule(
        id="individual_direct_ownership",
        name="Direct User-Content Ownership",
        description="Ownership relationships without team or organization mediation",
        indicated_classes=("individual",),
        confidence_weight=0.9,
        relationship_matchers=(
            RelationshipMatcher(column_patterns=DIRECT_OWNER_COLUMNS, factor=0.2, label="direct"),
            RelationshipMatcher(column_patterns=MEDIATED_OWNER_COLUMNS, label="mediated"),
        ),
        minimum_matches=2,
        scoring="ownership_ratio",
        params=(("minimum_ratio", 0.7), ("ratio_factor", 0.8)),
    ),
)

TEAM_RULES = (
    PatternRule(
        id="team_organization_structure",
        name="Organization/Team Structure",
        description="Dedicated tables for organizations, teams or workspaces",
        indicated_classes=("team",),
        confidence_weight=0.9,
        table_matchers=(
            Matcher(
                ("organizations", "teams", "companies", "workspaces", "groups"),
                factor=0.4,
                min_count=1,
                label="org_tables",
            ),
        ),
        relationship_matchers=(
            RelationshipMatcher(column_patterns=ORG_OWNER_COLUMNS, factor=0.1, label="org_links"),
        ),
    ),
    PatternRule(
        id="team_member_management",
        name="Member Management System",
        description="Membership tables linking users to organizations",
        indicated_classes=("team",),
        confidence_weight=0.8,
        table_matchers=(
            Matcher(
                (
                    "members",
                    "team_members",
                    "organization_members",
                    "workspace_members",
                    "user_organizations",
                    "user_teams",
                    "memberships",
                ),
                factor=0.5,
                min_count=1,
                label="member_tables",
            ),
        ),
        constraint_matchers=(
            Matcher(
                ("member", "organization_member", "unique"), factor=0.2, label="member_constraints"
            ),
        ),
    ),
    PatternRule(
        id="team_workspace_collaboration",
        name="Workspace Collaboration",
        description="Shared workspaces, projects and collaboration artefacts",
        indicated_classes=("team",),
        confidence_weight=0.7,
        table_matchers=(
            Matcher(
                ("workspaces", "projects", "channels", "rooms", "boards", "tasks"),
                factor=0.4,
                label="workspace_tables",
            ),
            Matcher(
                ("invitations", "invites", "collaborations", "shared_resources", "discussions"),
                factor=0.3,
                label="collaboration_tables",
            ),
        ),
    ),
    PatternRule(
        id="team_permission_system",
        name="Complex Permission System",
        description="Role and permission tables",
        indicated_classes=("team",),
        confidence_weight=0.8,
        table_matchers=(
            Matcher(
                ("roles", "permissions", "user_roles", "role_permissions", "access_controls"),
                factor=0.6,
                min_count=1,
                label="permission_tables",
            ),
        ),
    ),
    PatternRule(
        id="team_role_hierarchy",
        name="Role Hierarchy",
        description="Constraints that encode roles and permission levels",
        indicated_classes=("team",),
        confidence_weight=0.6,
        constraint_matchers=(
            Matcher(("role", "permission", "access"), factor=0.3, label="role_constraints"),
        ),
        minimum_matches=2,
    ),
)

HYBRID_RULES = (
    PatternRule(
        id="hybrid_flexible_accounts",
        name="Flexible Account System",
        description="Accounts that can be personal or shared",
        indicated_classes=("hybrid",),
        confidence_weight=0.8,
        table_matchers=(Matcher(("account",), factor=0.4, min_count=1, label="account_tables"),),
        constraint_matchers=(
            Matcher(
                ("personal_account", "account_type"),
                factor=0.6,
                min_count=1,
                label="flexibility_constraints",
            ),
        ),
    ),
    PatternRule(
        id="hybrid_mixed_ownership",
        name="Mixed Ownership Model",
        description="Content can be owned by individuals or by teams",
        indicated_classes=("hybrid",),
        confidence_weight=0.7,
        relationship_matchers=(
            RelationshipMatcher(column_patterns=USER_OWNER_COLUMNS, label="user_ownership"),
            RelationshipMatcher(column_patterns=ORG_OWNER_COLUMNS, label="team_ownership"),
        ),
        scoring="mixed_ownership",
        params=(("per_table", 0.5),),
    ),
    PatternRule(
        id="hybrid_context_permissions",
        name="Context-Aware Permissions",
        description="Permissions that adapt to individual or team context",
        indicated_classes=("hybrid",),
        confidence_weight=0.6,
        table_matchers=(
            Matcher(
                (
                    "access_controls",
                    "permissions",
                    "scoped_permissions",
                    "contextual_permissions",
                ),
                factor=0.7,
                min_count=1,
                label="permission_tables",
            ),
        ),
    ),
    PatternRule(
        id="hybrid_dual_capability",
        name="Dual Capability Features",
        description="Features that work in both individual and team contexts",
        indicated_classes=("hybrid",),
        confidence_weight=0.8,
        table_matchers=(
            Matcher(
                ("workspaces", "projects", "content", "resources", "items"),
                factor=0.3,
                min_count=2,
                label="dual_tables",
            ),
        ),
    ),
    PatternRule(
        id="hybrid_coexisting_features",
        name="Coexisting Individual and Team Features",
        description="Both individual-focused and team-focused features are present",
        indicated_classes=("hybrid",),
        confidence_weight=0.9,
        exclusive=True,
        scoring="coexisting",
        params=(("minimum_score", 0.3), ("minimum_balance", 0.4)),
    ),
)

ARCHITECTURE_RULES: tuple[PatternRule, ...] = INDIVIDUAL_RULES + TEAM_RULES + HYBRID_RULES
