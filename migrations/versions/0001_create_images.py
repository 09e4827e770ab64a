from alembic import op
import sqlalchemy as sa

revision = "0001_create_images"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("s3_key", sa.String(length=255), nullable=False),
        sa.Column("s3_url", sa.String(length=255), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_description", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("s3_key", name="uq_images_s3_key"),
    )
    op.create_index("ix_images_uploaded_at", "images", ["uploaded_at"])

def downgrade():
    op.drop_index("ix_images_uploaded_at", table_name="images")
    op.drop_table("images")
