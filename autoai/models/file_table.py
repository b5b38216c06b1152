"""
Project File Tables

FLOW OVERVIEW
- generate_safe_table_name(project_name)
  • Non [a-zA-Z0-9_] chars -> '_', 'project_' prefix unless it starts with a letter,
    truncated to 60 chars, lowercased.
- folder_table_name(project_name, folder_path)
  • '<safe>__part__part' for the folder's path segments. Over 64 chars only the folder part
    is shortened with a sha1 digest. The folder prefix always stays whole: '<safe>__', with
    <safe> cut and digested when it is too long to leave room.
- is_project_table / project_tables_overlap
  • Ownership is the project table plus every table under its folder prefix; two projects
    whose namespaces overlap cannot coexist.
- file_table(name)
  • SQLAlchemy Core Table for a dynamically named file table. Tables live in their own
    MetaData so db.create_all()/drop_all() never touch them.
"""

import hashlib
import re

from sqlalchemy import (
    MetaData, Table, Column, Integer, BigInteger, String, Text, DateTime, UniqueConstraint
)
from sqlalchemy.dialects.mysql import LONGTEXT

from .utils import utcnow

# MySQL identifier limit
MAX_TABLE_NAME_LENGTH = 64
FOLDER_SEPARATOR = '__'
DIGEST_LENGTH = 8
# Folder tables always keep '<base>__' whole, with room left for a '_<digest>' folder part
FOLDER_BASE_LENGTH = MAX_TABLE_NAME_LENGTH - len(FOLDER_SEPARATOR) - DIGEST_LENGTH - 1

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_]')

file_metadata = MetaData()


def _digest(value):
    return hashlib.sha1(value.encode('utf-8')).hexdigest()[:DIGEST_LENGTH]


def generate_safe_table_name(project_name):
    """Table name of a project's root file table"""
    safe_name = _UNSAFE_CHARS.sub('_', project_name)

    if not re.match(r'^[a-zA-Z]', safe_name):
        safe_name = 'project_' + safe_name

    if len(safe_name) > 60:
        safe_name = safe_name[:60]

    return safe_name.lower()


def sanitize_path_part(part):
    return _UNSAFE_CHARS.sub('_', part)


def folder_table_prefix(project_table):
    """Prefix shared by every folder table of a project"""
    if len(project_table) > FOLDER_BASE_LENGTH:
        keep = FOLDER_BASE_LENGTH - DIGEST_LENGTH - 1
        project_table = project_table[:keep] + '_' + _digest(project_table)
    return project_table + FOLDER_SEPARATOR


def folder_table_name(project_name, folder_path):
    """Table name holding the files directly inside folder_path"""
    prefix = folder_table_prefix(generate_safe_table_name(project_name))
    parts = [part for part in folder_path.split('/') if part.strip()]
    folder_part = FOLDER_SEPARATOR.join(sanitize_path_part(part) for part in parts)
    if len(prefix) + len(folder_part) > MAX_TABLE_NAME_LENGTH:
        # Deep folders: shorten the folder part only and disambiguate with a digest
        keep = MAX_TABLE_NAME_LENGTH - len(prefix) - DIGEST_LENGTH - 1
        folder_part = folder_part[:keep] + '_' + _digest(folder_part)
    return (prefix + folder_part).lower()


def is_project_table(project_table, table_name):
    """True for the project table itself and its folder tables"""
    return table_name == project_table or table_name.startswith(folder_table_prefix(project_table))


def project_tables_overlap(table_a, table_b):
    """True when either project's table names fall inside the other's namespace"""
    prefix_a = folder_table_prefix(table_a)
    prefix_b = folder_table_prefix(table_b)
    return (
        table_a == table_b
        or table_a.startswith(prefix_b)
        or table_b.startswith(prefix_a)
        or prefix_a.startswith(prefix_b)
        or prefix_b.startswith(prefix_a)
    )


def file_table(name):
    """Return the Table definition for a project or folder file table"""
    return Table(
        name,
        file_metadata,
        Column('id', Integer, primary_key=True, autoincrement=True),
        Column('file_path', String(500), nullable=False),
        Column('file_name', String(255), nullable=False, index=True),
        Column('item_type', String(10), nullable=False),  # folder, file
        Column('file_type', String(50)),
        Column('file_size', BigInteger, default=0),
        Column('content', Text().with_variant(LONGTEXT(), 'mysql')),
        Column('parent_path', String(500), index=True),
        Column('depth', Integer, default=0),
        Column('child_count', Integer, default=0),
        Column('file_count', Integer, default=0),
        Column('folder_count', Integer, default=0),
        Column('last_modified', DateTime, default=utcnow, onupdate=utcnow),
        Column('created_at', DateTime, default=utcnow),
        Column('created_by', String(100)),
        Column('status', String(10), default='active', index=True),  # active, deleted
        UniqueConstraint('file_path', 'status'),
        keep_existing=True,
    )


def forget_table(name):
    """Drop a table definition from the shared MetaData after a DROP TABLE"""
    table = file_metadata.tables.get(name)
    if table is not None:
        file_metadata.remove(table)
