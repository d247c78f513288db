"""create_status_store_tables

Revision ID: 3f8a2c1d9e07
Revises:
Create Date: 2026-10-18 10:12:44.512093

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f8a2c1d9e07'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('nickname', sa.String(length=100), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('email', sa.String(length=200), nullable=False),
    sa.Column('password_hash', sa.String(length=128), nullable=True),
    sa.Column('default_location', sa.String(length=255), nullable=False),
    sa.Column('language', sa.String(length=16), nullable=False),
    sa.Column('hidewall', sa.Boolean(), nullable=False),
    sa.Column('blocked', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email'),
    sa.UniqueConstraint('nickname')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('idx_users_nickname', ['nickname'], unique=False)

    op.create_table('contacts',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uid', sa.Integer(), nullable=False, comment='所属账户 ID，0 表示公共缓存'),
    sa.Column('url', sa.String(length=255), nullable=False, comment='主页地址'),
    sa.Column('nurl', sa.String(length=255), nullable=False, comment='标准化后的主页地址'),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('nick', sa.String(length=255), nullable=False),
    sa.Column('micro', sa.String(length=255), nullable=False, comment='头像地址'),
    sa.Column('location', sa.String(length=255), nullable=False),
    sa.Column('about', sa.Text(), nullable=False),
    sa.Column('network', sa.String(length=8), nullable=False, comment='网络代码，如 dfrn'),
    sa.Column('self', sa.Boolean(), nullable=False, comment='是否为账户自身'),
    sa.Column('rel', sa.Integer(), nullable=False, comment='关系类型'),
    sa.Column('blocked', sa.Boolean(), nullable=False),
    sa.Column('pending', sa.Boolean(), nullable=False),
    sa.Column('created', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('contacts', schema=None) as batch_op:
        batch_op.create_index('idx_contacts_nick', ['nick'], unique=False)
        batch_op.create_index('idx_contacts_uid_nurl', ['uid', 'nurl'], unique=False)

    op.create_table('items',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uid', sa.Integer(), nullable=False, comment='所属账户 ID'),
    sa.Column('guid', sa.String(length=64), nullable=False),
    sa.Column('uri', sa.String(length=255), nullable=False, comment='全局 URI'),
    sa.Column('parent', sa.Integer(), nullable=False, comment='会话根条目 id'),
    sa.Column('thr_parent', sa.String(length=255), nullable=False, comment='直接回复对象的 URI'),
    sa.Column('contact_id', sa.Integer(), nullable=False),
    sa.Column('author_id', sa.Integer(), nullable=False, comment='作者联系人 id'),
    sa.Column('author_name', sa.String(length=255), nullable=False),
    sa.Column('author_link', sa.String(length=255), nullable=False),
    sa.Column('author_avatar', sa.String(length=255), nullable=False),
    sa.Column('owner_name', sa.String(length=255), nullable=False),
    sa.Column('owner_link', sa.String(length=255), nullable=False),
    sa.Column('owner_avatar', sa.String(length=255), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('body', sa.Text(), nullable=False),
    sa.Column('app', sa.String(length=255), nullable=False),
    sa.Column('verb', sa.String(length=100), nullable=False),
    sa.Column('network', sa.String(length=8), nullable=False),
    sa.Column('coord', sa.String(length=100), nullable=False, comment="'纬度 经度'"),
    sa.Column('plink', sa.String(length=255), nullable=False),
    sa.Column('created', sa.DateTime(timezone=True), nullable=False),
    sa.Column('edited', sa.DateTime(timezone=True), nullable=False),
    sa.Column('allow_cid', sa.Text(), nullable=False),
    sa.Column('allow_gid', sa.Text(), nullable=False),
    sa.Column('deny_cid', sa.Text(), nullable=False),
    sa.Column('deny_gid', sa.Text(), nullable=False),
    sa.Column('private', sa.Boolean(), nullable=False),
    sa.Column('starred', sa.Boolean(), nullable=False),
    sa.Column('wall', sa.Boolean(), nullable=False),
    sa.Column('visible', sa.Boolean(), nullable=False),
    sa.Column('moderated', sa.Boolean(), nullable=False),
    sa.Column('deleted', sa.Boolean(), nullable=False),
    sa.Column('unseen', sa.Boolean(), nullable=False),
    sa.Column('mention', sa.Boolean(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('items', schema=None) as batch_op:
        batch_op.create_index('idx_items_parent', ['parent'], unique=False)
        batch_op.create_index('idx_items_uid_id', ['uid', 'id'], unique=False)
        batch_op.create_index('idx_items_uri', ['uri'], unique=False)

    op.create_table('mails',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uid', sa.Integer(), nullable=False),
    sa.Column('contact_id', sa.Integer(), nullable=False),
    sa.Column('from_name', sa.String(length=255), nullable=False),
    sa.Column('from_url', sa.String(length=255), nullable=False),
    sa.Column('from_photo', sa.String(length=255), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('body', sa.Text(), nullable=False),
    sa.Column('seen', sa.Boolean(), nullable=False),
    sa.Column('uri', sa.String(length=255), nullable=False),
    sa.Column('parent_uri', sa.String(length=255), nullable=False),
    sa.Column('created', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('mails', schema=None) as batch_op:
        batch_op.create_index('idx_mails_uid_id', ['uid', 'id'], unique=False)

    op.create_table('photos',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('url', sa.String(length=255), nullable=False),
    sa.Column('width', sa.Integer(), nullable=False),
    sa.Column('height', sa.Integer(), nullable=False),
    sa.Column('mimetype', sa.String(length=64), nullable=False),
    sa.Column('filesize', sa.Integer(), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('url')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('photos')

    with op.batch_alter_table('mails', schema=None) as batch_op:
        batch_op.drop_index('idx_mails_uid_id')
    op.drop_table('mails')

    with op.batch_alter_table('items', schema=None) as batch_op:
        batch_op.drop_index('idx_items_uri')
        batch_op.drop_index('idx_items_uid_id')
        batch_op.drop_index('idx_items_parent')
    op.drop_table('items')

    with op.batch_alter_table('contacts', schema=None) as batch_op:
        batch_op.drop_index('idx_contacts_uid_nurl')
        batch_op.drop_index('idx_contacts_nick')
    op.drop_table('contacts')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index('idx_users_nickname')
    op.drop_table('users')
