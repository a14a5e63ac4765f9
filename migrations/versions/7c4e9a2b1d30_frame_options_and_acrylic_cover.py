"""frame options and acrylic cover pricing

Revision ID: 7c4e9a2b1d30
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c4e9a2b1d30"
down_revision = "0a1b2c3d4e5f"
branch_labels = None
depends_on = None

OLD_KINDS = ("IMAGE_EFFECT", "EDGE_DESIGN", "HANGING_VARIETY", "FRAME_THICKNESS")
NEW_KINDS = ("FRAME_COLOUR", "FRAME_TYPE", "FLOATING_FRAME_COLOUR", "PRODUCT_TYPE")
OPTION_COLUMNS = ("frame_colour_id", "frame_type_id", "floating_frame_colour_id", "product_type_id")


def upgrade():
    if op.get_bind().dialect.name == "postgresql":
        with op.get_context().autocommit_block():
            for kind in NEW_KINDS:
                op.execute(f"ALTER TYPE option_kind ADD VALUE IF NOT EXISTS '{kind}'")
    else:
        with op.batch_alter_table("catalog_options", schema=None) as batch_op:
            batch_op.alter_column(
                "kind",
                existing_type=sa.Enum(*OLD_KINDS, name="option_kind"),
                type_=sa.Enum(*(OLD_KINDS + NEW_KINDS), name="option_kind"),
                existing_nullable=False,
            )

    op.create_table(
        "acrylic_cover_prices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("variation_id", sa.Integer(), nullable=True),
        sa.Column("applicability", sa.String(length=20), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.ForeignKeyConstraint(["variation_id"], ["product_variations.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("acrylic_cover_prices", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_acrylic_cover_prices_variation_id"), ["variation_id"], unique=False)

    with op.batch_alter_table("cart_items", schema=None) as batch_op:
        for column in OPTION_COLUMNS:
            batch_op.add_column(sa.Column(column, sa.Integer(), nullable=True))
            batch_op.create_foreign_key(f"fk_cart_items_{column}", "catalog_options", [column], ["id"])
        batch_op.add_column(sa.Column("acrylic_cover", sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade():
    with op.batch_alter_table("cart_items", schema=None) as batch_op:
        batch_op.drop_column("acrylic_cover")
        for column in reversed(OPTION_COLUMNS):
            batch_op.drop_constraint(f"fk_cart_items_{column}", type_="foreignkey")
            batch_op.drop_column(column)

    with op.batch_alter_table("acrylic_cover_prices", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_acrylic_cover_prices_variation_id"))

    op.drop_table("acrylic_cover_prices")

    # enum values cannot be dropped in postgres; they stay unused there
    if op.get_bind().dialect.name != "postgresql":
        with op.batch_alter_table("catalog_options", schema=None) as batch_op:
            batch_op.alter_column(
                "kind",
                existing_type=sa.Enum(*(OLD_KINDS + NEW_KINDS), name="option_kind"),
                type_=sa.Enum(*OLD_KINDS, name="option_kind"),
                existing_nullable=False,
            )
