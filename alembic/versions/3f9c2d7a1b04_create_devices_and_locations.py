"""create_devices_and_locations

Revision ID: 3f9c2d7a1b04
Revises:
Create Date: 2025-10-11 09:12:40

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f9c2d7a1b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the device registry and the append-only location table.

    locations.id is the sample_id: AUTOINCREMENT on SQLite so ids are never
    reused after deletes. locations.device_id carries no foreign key; device
    existence is checked at acceptance time.

    Indexes:
    - (device_id, id DESC): latest sample of a device
    - (device_id, timestamp): history range scans
    """
    print("[MIGRATION] Creating devices table...")
    op.create_table(
        'devices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('device_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_id'),
    )

    print("[MIGRATION] Creating locations table...")
    op.create_table(
        'locations',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('device_id', sa.String(length=100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('speed', sa.Float(), nullable=True),
        sa.Column('accuracy', sa.Float(), nullable=True),
        sa.Column('altitude', sa.Float(), nullable=True),
        sa.Column('heading', sa.Float(), nullable=True),
        sa.Column('battery_level', sa.Integer(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('idx_locations_device_id_desc', 'locations', ['device_id', sa.text('id DESC')])
    op.create_index('idx_locations_device_timestamp', 'locations', ['device_id', 'timestamp'])

    print("[MIGRATION] ✅ devices and locations created")


def downgrade() -> None:
    print("[MIGRATION] Dropping locations and devices...")

    op.drop_index('idx_locations_device_timestamp', table_name='locations')
    op.drop_index('idx_locations_device_id_desc', table_name='locations')
    op.drop_table('locations')
    op.drop_table('devices')

    print("[MIGRATION] ❌ devices and locations dropped")
