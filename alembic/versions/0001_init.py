"""Migração inicial: empresas, agente, catálogo, clientes, conversas, mensagens, pedidos e eventos."""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("segment", sa.String(80), nullable=False, server_default=""),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
    )
    op.create_table(
        "agents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("tone_of_voice", sa.String(40), nullable=False, server_default="Profissional"),
        sa.Column("custom_instructions", sa.Text(), nullable=True),
        sa.Column("response_style", sa.Text(), nullable=True),
        sa.Column("sales_goals", sa.Text(), nullable=True),
        sa.Column("product_focus_strategy", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("category", sa.String(80), nullable=True),
        sa.Column("image_urls", sa.JSON(), nullable=False),
        sa.Column("stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False, server_default="published"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
    )
    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("phone_raw", sa.String(40), nullable=True),
        sa.Column("email", sa.String(160), nullable=True),
        sa.Column("customer_type", sa.String(16), nullable=False, server_default="individual"),
        sa.Column("cpf", sa.String(11), nullable=True),
        sa.Column("cnpj", sa.String(14), nullable=True),
        sa.Column("shipping_address", sa.JSON(), nullable=True),
        sa.Column("total_orders", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_spent", sa.Integer, nullable=False, server_default="0"),
        sa.Column("first_seen_channel", sa.String(16), nullable=True),
        sa.Column("channels", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=False)),
        sa.UniqueConstraint("company_id", "phone", name="uq_customers_company_phone"),
    )
    op.create_index("ix_customers_company_email", "customers", ["company_id", "email"])
    op.create_index("ix_customers_company_cpf", "customers", ["company_id", "cpf"])
    op.create_index("ix_customers_company_cnpj", "customers", ["company_id", "cnpj"])
    op.create_table(
        "conversations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("customer_name", sa.String(160), nullable=True),
        sa.Column("customer_phone", sa.String(40), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("mode", sa.String(16), nullable=False, server_default="ai"),
        sa.Column("taken_over_by", sa.String(64), nullable=True),
        sa.Column("taken_over_at", sa.TIMESTAMP(timezone=False), nullable=True),
        sa.Column("needs_human_attention", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("transfer_reason", sa.Text(), nullable=True),
        sa.Column("current_intent", sa.String(40), nullable=True),
        sa.Column("sentiment_score", sa.Integer, nullable=True),
        sa.Column("complexity_score", sa.Integer, nullable=True),
        sa.Column("active_agent_type", sa.String(16), nullable=False, server_default="seller"),
        sa.Column("analysis_updated_at", sa.TIMESTAMP(timezone=False), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=False)),
    )
    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("conversation_id", sa.String(36), sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("operator_id", sa.String(64), nullable=True),
        sa.Column("operator_name", sa.String(120), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
    )
    op.create_table(
        "orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("conversation_id", sa.String(36), sa.ForeignKey("conversations.id"), nullable=True),
        sa.Column("customer_name", sa.String(160), nullable=False),
        sa.Column("customer_email", sa.String(160), nullable=True),
        sa.Column("customer_phone", sa.String(40), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("total", sa.Integer, nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("shipping_address", sa.JSON(), nullable=True),
        sa.Column("confirmation_code", sa.String(4), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=False)),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=False)),
        sa.UniqueConstraint("company_id", "confirmation_code", name="uq_orders_company_code"),
    )
    op.create_table(
        "conversation_events",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("conversation_id", sa.String(64), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("ts", sa.BigInteger, nullable=False),
    )

def downgrade() -> None:
    op.drop_table("conversation_events")
    op.drop_table("orders")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_index("ix_customers_company_cnpj", table_name="customers")
    op.drop_index("ix_customers_company_cpf", table_name="customers")
    op.drop_index("ix_customers_company_email", table_name="customers")
    op.drop_table("customers")
    op.drop_table("products")
    op.drop_table("agents")
    op.drop_table("companies")
