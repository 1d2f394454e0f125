"""admin hierarchy initial migration

Revision ID: 0001_admin_hierarchy_initial
Revises:
Create Date: 2026-10-17T09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = '0001_admin_hierarchy_initial'
down_revision = None
branch_labels = None
depends_on = None


def _has_table(name: str) -> bool:
    bind = op.get_bind()
    return name in sa.inspect(bind).get_table_names()


def _id():
    return sa.Column('id', sa.String(length=36), primary_key=True)


def _created_at():
    return sa.Column('created_at', sa.DateTime(), nullable=True)


def _fk(name: str, target: str, nullable: bool = True):
    return sa.Column(name, sa.String(length=36), sa.ForeignKey(f'{target}.id'), nullable=nullable)


SCOPED_TABLES = ('events', 'news_posts', 'micro_tasks', 'volunteer_tasks', 'issue_campaigns')


def upgrade():
    if not _has_table('states'):
        op.create_table(
            'states',
            _id(),
            sa.Column('name', sa.String(length=256), nullable=False),
            sa.Column('code', sa.String(length=64), nullable=False),
            sa.Column('region', sa.String(length=64), nullable=True),
            sa.Column('capital', sa.String(length=128), nullable=True),
            _created_at(),
        )
        op.create_index('ix_states_name', 'states', ['name'], unique=True)
        op.create_index('ix_states_code', 'states', ['code'], unique=True)

    if not _has_table('lgas'):
        op.create_table(
            'lgas',
            _id(),
            _fk('state_id', 'states', nullable=False),
            sa.Column('name', sa.String(length=256), nullable=False),
            sa.Column('code', sa.String(length=64), nullable=False),
            _created_at(),
            sa.UniqueConstraint('state_id', 'name', name='uq_lga_state_name'),
            sa.UniqueConstraint('state_id', 'code', name='uq_lga_state_code'),
        )
        for col in ('state_id', 'name', 'code'):
            op.create_index(f'ix_lgas_{col}', 'lgas', [col])

    if not _has_table('wards'):
        op.create_table(
            'wards',
            _id(),
            _fk('lga_id', 'lgas', nullable=False),
            sa.Column('name', sa.String(length=256), nullable=False),
            sa.Column('code', sa.String(length=64), nullable=False),
            sa.Column('ward_number', sa.Integer(), nullable=True),
            _created_at(),
            sa.UniqueConstraint('lga_id', 'name', name='uq_ward_lga_name'),
            sa.UniqueConstraint('lga_id', 'code', name='uq_ward_lga_code'),
        )
        for col in ('lga_id', 'name', 'code'):
            op.create_index(f'ix_wards_{col}', 'wards', [col])

    if not _has_table('members'):
        op.create_table(
            'members',
            _id(),
            sa.Column('member_code', sa.String(length=64), nullable=False, unique=True),
            sa.Column('full_name', sa.String(length=256), nullable=True),
            _fk('ward_id', 'wards'),
            _created_at(),
        )
        op.create_index('ix_members_ward_id', 'members', ['ward_id'])

    for name in SCOPED_TABLES:
        if _has_table(name):
            continue
        op.create_table(
            name,
            _id(),
            sa.Column('title', sa.String(length=256), nullable=False),
            _fk('state_id', 'states'),
            _fk('lga_id', 'lgas'),
            _fk('ward_id', 'wards'),
            _created_at(),
        )
        for col in ('state_id', 'lga_id', 'ward_id'):
            op.create_index(f'ix_{name}_{col}', name, [col])

    if not _has_table('polling_units'):
        op.create_table(
            'polling_units',
            _id(),
            sa.Column('name', sa.String(length=256), nullable=False),
            sa.Column('unit_code', sa.String(length=64), nullable=False, unique=True),
            _fk('ward_id', 'wards', nullable=False),
            _created_at(),
        )
        op.create_index('ix_polling_units_ward_id', 'polling_units', ['ward_id'])

    if not _has_table('polling_unit_results'):
        op.create_table(
            'polling_unit_results',
            _id(),
            _fk('polling_unit_id', 'polling_units', nullable=False),
            sa.Column('party_code', sa.String(length=32), nullable=True),
            sa.Column('votes', sa.Integer(), nullable=True),
            _created_at(),
        )
        op.create_index('ix_polling_unit_results_polling_unit_id', 'polling_unit_results', ['polling_unit_id'])

    if not _has_table('incidents'):
        op.create_table(
            'incidents',
            _id(),
            _fk('polling_unit_id', 'polling_units'),
            sa.Column('description', sa.Text(), nullable=True),
            _created_at(),
        )
        op.create_index('ix_incidents_polling_unit_id', 'incidents', ['polling_unit_id'])

    if not _has_table('incident_media'):
        op.create_table(
            'incident_media',
            _id(),
            _fk('incident_id', 'incidents', nullable=False),
            sa.Column('url', sa.String(length=1024), nullable=True),
            _created_at(),
        )
        op.create_index('ix_incident_media_incident_id', 'incident_media', ['incident_id'])

    if not _has_table('polling_agents'):
        op.create_table(
            'polling_agents',
            _id(),
            _fk('polling_unit_id', 'polling_units', nullable=False),
            _fk('member_id', 'members'),
            sa.Column('agent_code', sa.String(length=64), nullable=False, unique=True),
            sa.Column('is_active', sa.Boolean(), nullable=True),
            _created_at(),
        )
        op.create_index('ix_polling_agents_polling_unit_id', 'polling_agents', ['polling_unit_id'])
        op.create_index('ix_polling_agents_member_id', 'polling_agents', ['member_id'])

    if not _has_table('result_sheets'):
        op.create_table(
            'result_sheets',
            _id(),
            _fk('polling_unit_id', 'polling_units'),
            sa.Column('image_url', sa.String(length=1024), nullable=True),
            _created_at(),
        )
        op.create_index('ix_result_sheets_polling_unit_id', 'result_sheets', ['polling_unit_id'])


def downgrade():
    for name in (
        'result_sheets', 'polling_agents', 'incident_media', 'incidents',
        'polling_unit_results', 'polling_units',
    ) + SCOPED_TABLES + ('members', 'wards', 'lgas', 'states'):
        if _has_table(name):
            op.drop_table(name)
