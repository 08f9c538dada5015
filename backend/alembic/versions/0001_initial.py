"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=120), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table('tours',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.JSON(), nullable=False),
        sa.Column('short_description', sa.JSON(), nullable=False),
        sa.Column('description', sa.JSON(), nullable=False),
        sa.Column('duration', sa.JSON(), nullable=False),
        sa.Column('difficulty', sa.JSON(), nullable=False),
        sa.Column('badge', sa.JSON(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('max_group_size', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('price_type', sa.String(length=16), nullable=False, server_default='per_person'),
        sa.Column('badge_color', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )

    op.create_table('availabilities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False),
        sa.Column('max_spots', sa.Integer(), nullable=False),
        sa.Column('spots_left', sa.Integer(), nullable=False),
        sa.CheckConstraint('spots_left >= 0 AND spots_left <= max_spots', name='ck_availabilities_spots_range'),
    )
    op.create_index('ix_availabilities_tour_date', 'availabilities', ['tour_id', 'date'])

    op.create_table('closed_days',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_closed_days_date', 'closed_days', ['date'], unique=True)

    op.create_table('admin_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('auto_close_day', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('last_updated', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.execute("INSERT INTO admin_settings (id, auto_close_day) VALUES (1, false)")

    op.create_table('discount_codes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('one_time', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('used_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_discount_codes_code', 'discount_codes', ['code'], unique=True)

    op.create_table('bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('availability_id', sa.Integer(), sa.ForeignKey('availabilities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_first_name', sa.String(length=120), nullable=False),
        sa.Column('customer_last_name', sa.String(length=120), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=64), nullable=False),
        sa.Column('number_of_participants', sa.Integer(), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('booking_reference', sa.String(length=32), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('booking_status', sa.String(length=16), nullable=False, server_default='requested'),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='unpaid'),
        sa.Column('additional_info', sa.JSON(), nullable=True),
        sa.Column('confirmed_date', sa.String(length=10), nullable=True),
        sa.Column('confirmed_time', sa.String(length=5), nullable=True),
        sa.Column('confirmed_meeting_point', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('language', sa.String(length=2), nullable=False, server_default='en'),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('refund_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_bookings_tour_id', 'bookings', ['tour_id'])
    op.create_index('ix_bookings_availability_id', 'bookings', ['availability_id'])
    op.create_index('ix_bookings_customer_email', 'bookings', ['customer_email'])
    op.create_index('ix_bookings_booking_reference', 'bookings', ['booking_reference'], unique=True)
    op.create_index('ix_bookings_booking_status', 'bookings', ['booking_status'])
    op.create_index('ix_bookings_payment_status', 'bookings', ['payment_status'])

    op.create_table('testimonials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tour_id', sa.Integer(), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('booking_reference', sa.String(length=32), nullable=True, unique=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_country', sa.String(length=120), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_testimonials_tour_id', 'testimonials', ['tour_id'])

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )

    op.create_table('gallery',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_gallery_id', 'gallery', ['id'])

    op.create_table('articles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.JSON(), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('excerpt', sa.JSON(), nullable=True),
        sa.Column('slug', sa.String(length=200), nullable=False),
        sa.Column('featured_image', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('articles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_articles_id', 'articles', ['id'])
    op.create_index('ix_articles_slug', 'articles', ['slug'], unique=True)

def downgrade():
    op.drop_index('ix_articles_slug', table_name='articles')
    op.drop_index('ix_articles_id', table_name='articles')
    op.drop_table('articles')
    op.drop_index('ix_gallery_id', table_name='gallery')
    op.drop_table('gallery')
    op.drop_table('notifications')
    op.drop_index('ix_testimonials_tour_id', table_name='testimonials')
    op.drop_table('testimonials')
    for ix in ('ix_bookings_payment_status', 'ix_bookings_booking_status', 'ix_bookings_booking_reference',
               'ix_bookings_customer_email', 'ix_bookings_availability_id', 'ix_bookings_tour_id'):
        op.drop_index(ix, table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_discount_codes_code', table_name='discount_codes')
    op.drop_table('discount_codes')
    op.drop_table('admin_settings')
    op.drop_index('ix_closed_days_date', table_name='closed_days')
    op.drop_table('closed_days')
    op.drop_index('ix_availabilities_tour_date', table_name='availabilities')
    op.drop_table('availabilities')
    op.drop_table('tours')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
