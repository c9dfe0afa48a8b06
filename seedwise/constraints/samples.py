"""Synthetic test rows for constraint debugging, built with Faker."""

from __future__ import annotations

from typing import Any, Callable, Optional

from faker import Faker

from seedwise.core.models import ConstraintInfo


class SampleRowFactory:
    """
    Build rows that exercise a table's constraints.

    Rows cycle through a few variants per table so that handlers see both
    clean data and data they have to fix (a personal account carrying a
    slug, a subscription with an unknown status, a row with a missing value).
    Pass ``seed`` for reproducible rows.
    """

    def __init__(self, seed: Optional[int] = None, locale: str = "en_US"):
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

        # Column name → Faker method mapping
        self.column_mappings: dict[str, Callable[[], Any]] = {
            "id": lambda: self.fake.uuid4(),
            "email": lambda: self.fake.email(),
            "name": lambda: self.fake.name(),
            "display_name": lambda: self.fake.name(),
            "first_name": lambda: self.fake.first_name(),
            "last_name": lambda: self.fake.last_name(),
            "username": lambda: self.fake.user_name(),
            "slug": lambda: self.fake.slug(),
            "bio": lambda: self.fake.text(max_nb_chars=160),
            "description": lambda: self.fake.text(max_nb_chars=200),
            "title": lambda: self.fake.sentence(nb_words=4),
            "url": lambda: self.fake.url(),
            "picture_url": lambda: self.fake.image_url(),
            "avatar_url": lambda: self.fake.image_url(),
            "phone": lambda: self.fake.phone_number(),
            "company": lambda: self.fake.company(),
            "role": lambda: self.fake.random_element(("owner", "member")),
            "price": lambda: self.fake.pyfloat(min_value=1, max_value=500, right_digits=2),
            "quantity": lambda: self.fake.random_int(min=1, max=10),
        }

    def value_for(self, column: str) -> Any:
        """Generate a plausible value for a column, falling back on its name."""
        if column in self.column_mappings:
            return self.column_mappings[column]()
        if column.endswith("_id"):
            return self.fake.uuid4()
        if column.startswith("is_") or column.startswith("has_"):
            return self.fake.boolean()
        if column.endswith("_at"):
            return self.fake.date_time_this_year().isoformat()
        return self.fake.word()

    def rows_for(
        self,
        table: str,
        constraints: list[ConstraintInfo],
        count: int = 3,
    ) -> list[dict[str, Any]]:
        """
        Generate rows for a table.

        Args:
            table: Table name
            constraints: Constraints the rows will be tested against
            count: Number of rows

        Returns:
            List of row dicts covering every column the constraints mention
        """
        columns: list[str] = []
        for constraint in constraints:
            for column in constraint.columns:
                if column not in columns:
                    columns.append(column)

        rows = []
        for index in range(count):
            row = {column: self.value_for(column) for column in columns}
            self._apply_variant(table, row, index)
            rows.append(row)
        return rows

    def _apply_variant(self, table: str, row: dict[str, Any], index: int) -> None:
        variant = index % 3

        if table == "accounts":
            row.setdefault("name", self.fake.name())
            if variant == 0:
                # Personal account that still carries a slug
                row["is_personal_account"] = True
                row["slug"] = self.fake.slug()
            elif variant == 1:
                row["is_personal_account"] = False
                row["slug"] = self.fake.slug()
            else:
                row.pop("is_personal_account", None)
                row.pop("slug", None)
        elif table == "subscriptions":
            row["status"] = ("active", "unknown", None)[variant]
        elif table in ("organization_members", "memberships", "accounts_memberships"):
            row["user_id"] = self.fake.uuid4()
            row["organization_id"] = self.fake.uuid4() if variant != 2 else None
        elif variant == 2 and row:
            # Drop one value so null handling is exercised
            row[next(iter(row))] = None
