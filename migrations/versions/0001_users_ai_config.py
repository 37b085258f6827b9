"""users table with per-user AI configuration"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_users_ai_config"
down_revision = None
branch_labels = None
depends_on = None

AI_PROVIDERS = ("openai", "deepseek", "claude", "gemini", "custom")
AI_CONFIG_MODES = ("credits", "subscription", "custom")


def upgrade() -> None:
    ai_provider = sa.Enum(*AI_PROVIDERS, name="ai_provider")
    ai_config_mode = sa.Enum(*AI_CONFIG_MODES, name="ai_config_mode")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("ai_config_mode", ai_config_mode, nullable=True),
        sa.Column("ai_provider", ai_provider, nullable=True),
        sa.Column("ai_model", sa.String(length=100), nullable=True),
        sa.Column("ai_api_key", sa.Text(), nullable=True),  # 加密后的 API Key
        sa.Column("ai_api_endpoint", sa.String(length=500), nullable=True),
        sa.Column("ai_custom_provider_name", sa.String(length=100), nullable=True),
        sa.Column("ai_config_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )


def downgrade() -> None:
    op.drop_table("users")
    sa.Enum(name="ai_provider").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="ai_config_mode").drop(op.get_bind(), checkfirst=True)
