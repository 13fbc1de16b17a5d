"""domains and claims

Revision ID: 5c1f0a2d9e47
Revises:
Create Date: 2026-10-17 09:12:41.318204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c1f0a2d9e47"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "domains",
        sa.Column("guid", sa.String(512), primary_key=True),
        sa.Column("name", sa.String(253), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_domains_name", "domains", ["name"], unique=True)

    # `username` is unique within a domain, not globally.
    op.create_table(
        "claims",
        sa.Column("guid", sa.String(512), primary_key=True),
        sa.Column("username", sa.String(63), nullable=False),
        sa.Column("did", sa.String(2048), nullable=False),
        sa.Column(
            "domain_guid",
            sa.String(512),
            sa.ForeignKey("domains.guid"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_claims_domain_username",
        "claims",
        ["domain_guid", "username"],
        unique=True,
    )
    op.create_index("idx_claims_did", "claims", ["did"])


def downgrade() -> None:
    op.drop_table("claims")
    op.drop_table("domains")
