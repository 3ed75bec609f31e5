"""initial schema: users, products, orders, order items, return requests, notifications, wishlist

Revision ID: 9c41d2f07a3b
Revises:
Create Date: 2026-10-19 10:12:41.503118

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '9c41d2f07a3b'
down_revision = None
branch_labels = None
depends_on = None

role_enum = sa.Enum('customer', 'seller', 'admin', name='roleenum')
order_status_enum = sa.Enum(
    'pending', 'processing', 'to_ship', 'shipped', 'to_be_delivered', 'delivered',
    'completed', 'cancellation_requested', 'cancelled', 'return_requested',
    name='orderstatus',
)
payment_method_enum = sa.Enum('gcash', 'cash_on_delivery', name='paymentmethod')
return_status_enum = sa.Enum('pending', 'approved', 'rejected', name='returnstatus')
notification_type_enum = sa.Enum('order', 'review', 'system', name='notificationtype')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('shop_name', sa.String(255), nullable=True),
        sa.Column('address', sa.String(512), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', payment_method_enum, nullable=False),
        sa.Column('status', order_status_enum, nullable=False),
        sa.Column('shipping_address', sa.Text(), nullable=False),
        sa.Column('reference_number', sa.String(255), nullable=True),
        sa.Column('receipt_image', sa.String(1024), nullable=True),
        sa.Column('is_payment_verified', sa.Boolean(), nullable=False),
        sa.Column('payment_verified_at', sa.DateTime(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('review_comment', sa.Text(), nullable=True),
        sa.Column('review_images', sa.JSON(), nullable=True),
        sa.Column('review_created_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['users.id']),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
    )
    op.create_index('ix_order_items_id', 'order_items', ['id'])
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    op.create_table(
        'return_requests',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('proof_images', sa.JSON(), nullable=True),
        sa.Column('proof_video', sa.String(1024), nullable=True),
        sa.Column('status', return_status_enum, nullable=False),
        sa.Column('requested_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_return_requests_id', 'return_requests', ['id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', notification_type_enum, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])

    op.create_table(
        'wishlist_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_wishlist_items_user_product'),
    )
    op.create_index('ix_wishlist_items_id', 'wishlist_items', ['id'])
    op.create_index('ix_wishlist_items_user_id', 'wishlist_items', ['user_id'])


def downgrade():
    op.drop_table('wishlist_items')
    op.drop_table('notifications')
    op.drop_table('return_requests')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('users')
