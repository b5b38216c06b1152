"""
Project File Store

FLOW OVERVIEW
- ProjectFileStore(project_id, project_name)
  • Virtual file tree kept in dynamically named tables (see models/file_table.py).
- Placement rule
  • Folder rows and root-level files live in the project table under their full logical path.
  • Files inside folder /f live in /f's folder table as '/<name>' with parent_path NULL.
- Mutations (create_folder, create_file, update_file_content, delete_item, cleanup_deleted_files)
  • Run on db.session and never commit, so callers can group several into one transaction.
- Soft delete
  • status='deleted' and file_path rewritten to '<path>-deleted-<ms>-<rand9>' so a new active
    row with the same path never collides with UNIQUE(file_path, status).
- Reads (get_file, list_items, file_tree, preview)
  • Return plain dicts carrying logical paths.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from sqlalchemy import inspect, select, insert, update, delete, func

from ..models import db, ProjectLog
from ..models.file_table import (
    FOLDER_SEPARATOR, file_table, folder_table_name, folder_table_prefix, forget_table,
    generate_safe_table_name, is_project_table,
)
from ..models.utils import utcnow, generate_deleted_suffix
from .error_handlers import ConflictError, NotFoundError, ValidationError
from .prom_metrics import observe_file_operation
from .validators import normalize_path, validate_item_name, split_path, join_path

logger = logging.getLogger(__name__)

PREVIEW_MIMETYPES = {
    'html': 'text/html',
    'htm': 'text/html',
    'css': 'text/css',
    'js': 'application/javascript',
    'mjs': 'application/javascript',
    'json': 'application/json',
    'svg': 'image/svg+xml',
    'xml': 'application/xml',
    'md': 'text/markdown',
}

_ASSET_REF = re.compile(r'''\b(?P<attr>href|src)=(?P<quote>["'])(?P<target>[^"']+)(?P=quote)''', re.IGNORECASE)
_ABSOLUTE_REF = re.compile(r'^(?:[a-z][a-z0-9+.-]*:|//|#|/api/)', re.IGNORECASE)


def _path_or_raise(path):
    result = normalize_path(path)
    if not result.is_valid:
        raise ValidationError(result.error_message)
    return result.sanitized_value


def _name_or_raise(name):
    result = validate_item_name(name)
    if not result.is_valid:
        raise ValidationError(result.error_message)
    return result.sanitized_value


def _depth(parent):
    return 0 if parent == '/' else parent.count('/')


def file_extension(file_name):
    """Lowercase extension, 'txt' when the name has none"""
    base, dot, ext = file_name.rpartition('.')
    return ext.lower() if dot and base and ext else 'txt'


def sort_items(items):
    """Folders first, then case-insensitive by name"""
    return sorted(items, key=lambda item: (item['item_type'] != 'folder', item['file_name'].lower()))


def _sort_tree(nodes):
    nodes[:] = sort_items(nodes)
    for node in nodes:
        if node.get('children'):
            _sort_tree(node['children'])
    return nodes


def find_in_tree(tree, file_name):
    """Depth-first search for the first file node named file_name"""
    for node in tree:
        if node.get('item_type') == 'file' and node.get('file_name') == file_name:
            return node
        found = find_in_tree(node.get('children') or [], file_name)
        if found is not None:
            return found
    return None


def _resolve_relative(base_folder, target):
    parts = [] if target.startswith('/') else [p for p in base_folder.split('/') if p]
    for part in target.split('/'):
        if part in ('', '.'):
            continue
        if part == '..':
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return '/' + '/'.join(parts)


def rewrite_relative_assets(html, base_folder, preview_url):
    """Point relative href/src references of an HTML page at the preview endpoint"""
    def _replace(match):
        target = match.group('target')
        if _ABSOLUTE_REF.match(target):
            return match.group(0)
        resolved = _resolve_relative(base_folder, target.split('?', 1)[0].split('#', 1)[0])
        return f"{match.group('attr')}={match.group('quote')}{preview_url}?filePath={quote(resolved)}{match.group('quote')}"

    return _ASSET_REF.sub(_replace, html)


class ProjectFileStore:
    """Virtual file tree of one project."""

    def __init__(self, project_id: str, project_name: str):
        self.project_id = project_id
        self.project_name = project_name
        self.table_name = generate_safe_table_name(project_name)

    @classmethod
    def for_project(cls, project) -> 'ProjectFileStore':
        return cls(project.id, project.name)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _inspector(self):
        return inspect(db.session.connection())

    def table_exists(self, table_name: str) -> bool:
        return self._inspector().has_table(table_name)

    def list_tables(self) -> List[str]:
        """The project table and all of its folder tables"""
        return sorted(
            name for name in self._inspector().get_table_names()
            if is_project_table(self.table_name, name)
        )

    def folder_tables(self) -> List[str]:
        return [name for name in self.list_tables() if name != self.table_name]

    def ensure_project_table(self) -> str:
        if self.table_exists(self.table_name):
            return self.table_name
        file_table(self.table_name).create(bind=db.session.connection(), checkfirst=True)
        ProjectLog.record(self.project_id, 'system', 'table_created', {
            'tableName': self.table_name,
            'projectName': self.project_name,
        })
        logger.info(json.dumps({
            'event': 'file_table_created',
            'project_id': self.project_id,
            'table': self.table_name,
        }))
        return self.table_name

    def ensure_folder_table(self, folder_path: str) -> str:
        table_name = folder_table_name(self.project_name, folder_path)
        if self.table_exists(table_name):
            return table_name
        file_table(table_name).create(bind=db.session.connection(), checkfirst=True)
        ProjectLog.record(self.project_id, 'system', 'folder_table_created', {
            'folderTableName': table_name,
            'folderPath': folder_path,
            'projectName': self.project_name,
        })
        logger.info(json.dumps({
            'event': 'folder_table_created',
            'project_id': self.project_id,
            'table': table_name,
            'folder': folder_path,
        }))
        return table_name

    def _drop_table(self, table_name: str) -> None:
        file_table(table_name).drop(bind=db.session.connection(), checkfirst=True)
        forget_table(table_name)

    def drop_tables(self) -> List[str]:
        """Drop the project table and every folder table"""
        dropped = self.list_tables()
        for table_name in dropped:
            self._drop_table(table_name)
        logger.info(json.dumps({
            'event': 'file_tables_dropped',
            'project_id': self.project_id,
            'tables': dropped,
        }))
        return dropped

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    def _select_active(self, table_name: str, stored_path: str):
        table = file_table(table_name)
        return db.session.execute(
            select(table).where(table.c.file_path == stored_path, table.c.status == 'active')
        ).first()

    def _select_by_id(self, table_name: str, row_id: int):
        table = file_table(table_name)
        return db.session.execute(select(table).where(table.c.id == row_id)).first()

    def _serialize(self, row, folder_path: Optional[str] = None, include_content: bool = True) -> Dict[str, Any]:
        data = dict(row._mapping)
        if folder_path:
            data['file_path'] = join_path(folder_path, data['file_name'])
            data['parent_path'] = folder_path
        for key in ('last_modified', 'created_at'):
            if data.get(key) is not None:
                data[key] = data[key].isoformat()
        if not include_content:
            data.pop('content', None)
        return data

    def _file_location(self, path: str) -> Tuple[str, str, Optional[str]]:
        """(table, stored file_path, folder) where a file at `path` is stored"""
        parent, name = split_path(path)
        if parent == '/':
            return self.table_name, path, None
        return folder_table_name(self.project_name, parent), f'/{name}', parent

    def _find_active(self, path: str):
        """Locate the active row for a logical path: (table, row, folder) or None"""
        if not self.table_exists(self.table_name):
            return None
        row = self._select_active(self.table_name, path)
        if row is not None:
            return self.table_name, row, None
        table_name, stored_path, folder = self._file_location(path)
        if folder is not None and self.table_exists(table_name):
            row = self._select_active(table_name, stored_path)
            if row is not None:
                return table_name, row, folder
        return None

    def _folder_paths_by_table(self) -> Dict[str, str]:
        table = file_table(self.table_name)
        rows = db.session.execute(
            select(table.c.file_path).where(table.c.item_type == 'folder', table.c.status == 'active')
        ).all()
        return {folder_table_name(self.project_name, row.file_path): row.file_path for row in rows}

    def _guess_folder_path(self, table_name: str) -> str:
        suffix = table_name[len(folder_table_prefix(self.table_name)):]
        return '/' + suffix.replace(FOLDER_SEPARATOR, '/')

    def _find_by_basename(self, path: str):
        """Fallback lookup of '/<basename>' across folder tables; first match wins"""
        _, name = split_path(path)
        if not self.table_exists(self.table_name):
            return None
        folder_paths = self._folder_paths_by_table()
        for table_name in self.folder_tables():
            row = self._select_active(table_name, f'/{name}')
            if row is not None:
                folder = folder_paths.get(table_name) or self._guess_folder_path(table_name)
                return table_name, row, folder
        return None

    def _is_soft_deleted(self, path: str) -> bool:
        if not self.table_exists(self.table_name):
            return False
        candidates = [(self.table_name, path)]
        table_name, stored_path, folder = self._file_location(path)
        if folder is not None and self.table_exists(table_name):
            candidates.append((table_name, stored_path))
        for table_name, stored_path in candidates:
            table = file_table(table_name)
            row = db.session.execute(
                select(table.c.id).where(
                    table.c.status == 'deleted',
                    table.c.file_path.startswith(f'{stored_path}-deleted-', autoescape=True),
                )
            ).first()
            if row is not None:
                return True
        return False

    def _upsert(self, table_name: str, stored_path: str, values: Dict[str, Any], created_by: str) -> bool:
        """Update the active row at stored_path or insert one; True when inserted"""
        table = file_table(table_name)
        existing = self._select_active(table_name, stored_path)
        now = utcnow()
        if existing is not None:
            db.session.execute(
                update(table).where(table.c.id == existing.id).values(last_modified=now, **values)
            )
            return False
        db.session.execute(
            insert(table).values(
                file_path=stored_path,
                status='active',
                created_at=now,
                last_modified=now,
                created_by=str(created_by),
                **values,
            )
        )
        return True

    def _soft_delete(self, table_name: str, row) -> None:
        table = file_table(table_name)
        db.session.execute(
            update(table).where(table.c.id == row.id).values(
                status='deleted',
                file_path=row.file_path + generate_deleted_suffix(),
                last_modified=utcnow(),
            )
        )

    def _child_counts(self, folder_path: str) -> Tuple[int, int]:
        """(active sub-folders, active files) directly inside folder_path"""
        table = file_table(self.table_name)
        folders = db.session.execute(
            select(func.count()).select_from(table).where(
                table.c.parent_path == folder_path,
                table.c.item_type == 'folder',
                table.c.status == 'active',
            )
        ).scalar() or 0
        files = 0
        folder_table = folder_table_name(self.project_name, folder_path)
        if self.table_exists(folder_table):
            ftable = file_table(folder_table)
            files = db.session.execute(
                select(func.count()).select_from(ftable).where(
                    ftable.c.item_type == 'file', ftable.c.status == 'active'
                )
            ).scalar() or 0
        return folders, files

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def folder_exists(self, folder_path: str) -> bool:
        if folder_path == '/':
            return True
        if not self.table_exists(self.table_name):
            return False
        row = self._select_active(self.table_name, folder_path)
        return row is not None and row.item_type == 'folder'

    def _ensure_folder(self, folder_path: str, created_by: str) -> None:
        if not self.folder_exists(folder_path):
            parent, name = split_path(folder_path)
            self.create_folder(name, parent, created_by)

    def update_parent_folder_counts(self, folder_path: Optional[str]) -> None:
        """Recompute child/file/folder counts of the folder row at folder_path"""
        if not folder_path or folder_path == '/':
            return
        folders, files = self._child_counts(folder_path)
        table = file_table(self.table_name)
        db.session.execute(
            update(table).where(
                table.c.file_path == folder_path,
                table.c.item_type == 'folder',
                table.c.status == 'active',
            ).values(
                child_count=folders + files,
                file_count=files,
                folder_count=folders,
                last_modified=utcnow(),
            )
        )
        logger.debug(f"Folder counts {self.project_id}:{folder_path} folders={folders} files={files}")

    def create_folder(self, name: str, parent_path: Optional[str] = None, created_by: str = 'system') -> Dict[str, Any]:
        """Create (or refresh) a folder row and its folder table; missing parents are created"""
        name = _name_or_raise(name)
        parent = _path_or_raise(parent_path)
        self.ensure_project_table()
        if parent != '/':
            self._ensure_folder(parent, created_by)

        path = join_path(parent, name)
        existing = self._find_active(path)
        if existing is not None and existing[1].item_type != 'folder':
            raise ConflictError(f"A file already exists at {path}")

        created = self._upsert(self.table_name, path, {
            'file_name': name,
            'item_type': 'folder',
            'file_type': None,
            'file_size': 0,
            'content': None,
            'parent_path': None if parent == '/' else parent,
            'depth': _depth(parent),
        }, created_by)
        folder_table = self.ensure_folder_table(path)
        self.update_parent_folder_counts(path)
        self.update_parent_folder_counts(parent)

        if created:
            ProjectLog.record(self.project_id, created_by, 'folder_created', {
                'folderPath': path,
                'folderName': name,
                'parentPath': None if parent == '/' else parent,
                'folderTableName': folder_table,
            })
            observe_file_operation('folder')

        item = self._serialize(self._select_active(self.table_name, path))
        item['created'] = created
        return item

    def create_file(self, name: str, parent_path: Optional[str] = None, content: Optional[str] = '',
                    created_by: str = 'system') -> Dict[str, Any]:
        """
        Create or overwrite a file.

        `name` may carry directories ('src/views/Home.vue'); they are appended to parent_path
        and created on demand.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("File name is required")
        path = _path_or_raise(f"{parent_path or ''}/{name.strip()}")
        parent, name = split_path(path)
        name = _name_or_raise(name)

        self.ensure_project_table()
        if parent != '/':
            self._ensure_folder(parent, created_by)
        if self.folder_exists(path):
            raise ConflictError(f"A folder already exists at {path}")

        table_name, stored_path, folder = self._file_location(path)
        if folder is not None:
            table_name = self.ensure_folder_table(folder)

        content = content or ''
        created = self._upsert(table_name, stored_path, {
            'file_name': name,
            'item_type': 'file',
            'file_type': file_extension(name),
            'file_size': len(content.encode('utf-8')),
            'content': content,
            'parent_path': None,
            'depth': _depth(parent),
        }, created_by)
        self.update_parent_folder_counts(folder)

        ProjectLog.record(self.project_id, created_by, 'file_created' if created else 'file_modified', {
            'filePath': path,
            'fileName': name,
            'fileType': file_extension(name),
            'size': len(content.encode('utf-8')),
            'parentPath': folder,
            'tableName': table_name,
        })
        observe_file_operation('create' if created else 'modify')

        item = self._serialize(self._select_active(table_name, stored_path), folder)
        item['created'] = created
        return item

    def save_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Generic save used by the items endpoint: dispatches on item_type"""
        name = item.get('file_name') or item.get('name')
        if not name and item.get('file_path'):
            parent, name = split_path(_path_or_raise(item['file_path']))
            item = dict(item, parent_path=item.get('parent_path') or parent)
        created_by = item.get('created_by') or 'system'
        if item.get('item_type') == 'folder':
            return self.create_folder(name, item.get('parent_path'), created_by)
        return self.create_file(name, item.get('parent_path'), item.get('content') or '', created_by)

    def update_file_content(self, path: str, content: Optional[str], updated_by: str = 'system') -> Dict[str, Any]:
        path = _path_or_raise(path)
        located = self._find_active(path)
        if located is None or located[1].item_type != 'file':
            raise NotFoundError(f"File not found: {path}")
        table_name, row, folder = located
        content = content or ''
        table = file_table(table_name)
        db.session.execute(
            update(table).where(table.c.id == row.id).values(
                content=content,
                file_size=len(content.encode('utf-8')),
                last_modified=utcnow(),
            )
        )
        ProjectLog.record(self.project_id, updated_by, 'file_modified', {
            'filePath': path,
            'fileName': row.file_name,
            'operationType': 'update_content',
            'newSize': len(content.encode('utf-8')),
        })
        observe_file_operation('modify')
        return self._serialize(self._select_by_id(table_name, row.id), folder)

    def delete_item(self, path: str, deleted_by: str = 'system') -> Dict[str, Any]:
        """Soft-delete a file, or an empty folder (its folder table is dropped)"""
        path = _path_or_raise(path)
        if path == '/':
            raise ValidationError("Cannot delete the project root")

        located = self._find_active(path)
        if located is None:
            if self._is_soft_deleted(path):
                raise ConflictError(f"Item already deleted: {path}")
            raise NotFoundError(f"Item not found: {path}")

        table_name, row, folder = located
        if row.item_type == 'folder':
            folders, files = self._child_counts(path)
            if folders or files:
                raise ConflictError("Folder is not empty")
            self._soft_delete(table_name, row)
            self._drop_table(folder_table_name(self.project_name, path))
        else:
            self._soft_delete(table_name, row)

        parent, _ = split_path(path)
        self.update_parent_folder_counts(parent)

        ProjectLog.record(self.project_id, deleted_by, 'item_deleted', {
            'itemPath': path,
            'itemName': row.file_name,
            'itemType': row.item_type,
            'parentPath': None if parent == '/' else parent,
        })
        observe_file_operation('delete')
        return {'file_path': path, 'file_name': row.file_name, 'item_type': row.item_type}

    def soft_delete_file(self, path: str, deleted_by: str = 'system') -> Dict[str, Any]:
        path = _path_or_raise(path)
        located = self._find_active(path)
        if located is not None and located[1].item_type != 'file':
            raise ValidationError(f"Not a file: {path}")
        return self.delete_item(path, deleted_by)

    def move_file(self, path: str, target_folder: str, moved_by: str = 'system') -> Dict[str, Any]:
        """Re-home a file under target_folder, keeping its name and content"""
        item = self.get_file(path, fallback=False)
        destination = join_path(_path_or_raise(target_folder), item['file_name'])
        if destination == item['file_path']:
            return item
        moved = self.create_file(item['file_name'], target_folder, item.get('content') or '', moved_by)
        self.delete_item(item['file_path'], moved_by)
        return moved

    def cleanup_deleted_files(self) -> int:
        """Hard-delete soft-deleted rows in every project table"""
        total = 0
        for table_name in self.list_tables():
            table = file_table(table_name)
            result = db.session.execute(delete(table).where(table.c.status == 'deleted'))
            total += result.rowcount or 0
        logger.info(json.dumps({
            'event': 'deleted_files_cleaned',
            'project_id': self.project_id,
            'deleted_count': total,
        }))
        return total

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_file(self, path: str, fallback: bool = True) -> Dict[str, Any]:
        path = _path_or_raise(path)
        located = self._find_active(path)
        if located is None and fallback:
            located = self._find_by_basename(path)
        if located is None:
            raise NotFoundError(f"File not found: {path}")
        _, row, folder = located
        return self._serialize(row, folder)

    def count_active_files(self) -> int:
        total = 0
        for table_name in self.list_tables():
            table = file_table(table_name)
            total += db.session.execute(
                select(func.count()).select_from(table).where(
                    table.c.item_type == 'file', table.c.status == 'active'
                )
            ).scalar() or 0
        return total

    def list_items(self, parent_path: Optional[str] = None) -> List[Dict[str, Any]]:
        """Active items directly inside parent_path (root when omitted)"""
        parent = _path_or_raise(parent_path)
        if not self.table_exists(self.table_name):
            return []
        table = file_table(self.table_name)
        if parent == '/':
            rows = db.session.execute(
                select(table).where(table.c.parent_path.is_(None), table.c.status == 'active')
            ).all()
            return sort_items([self._serialize(row, include_content=False) for row in rows])

        rows = db.session.execute(
            select(table).where(
                table.c.parent_path == parent,
                table.c.item_type == 'folder',
                table.c.status == 'active',
            )
        ).all()
        items = [self._serialize(row, include_content=False) for row in rows]
        folder_table = folder_table_name(self.project_name, parent)
        if self.table_exists(folder_table):
            ftable = file_table(folder_table)
            file_rows = db.session.execute(select(ftable).where(ftable.c.status == 'active')).all()
            items.extend(self._serialize(row, parent, include_content=False) for row in file_rows)
        return sort_items(items)

    def file_tree(self) -> List[Dict[str, Any]]:
        """Nested tree of active items; folders first, then files, sorted by name"""
        if not self.table_exists(self.table_name):
            return []
        table = file_table(self.table_name)
        nodes: Dict[str, Dict[str, Any]] = {}
        for row in db.session.execute(select(table).where(table.c.status == 'active')).all():
            node = self._serialize(row, include_content=False)
            node['children'] = []
            nodes[node['file_path']] = node

        folder_paths = {
            folder_table_name(self.project_name, path): path
            for path, node in nodes.items() if node['item_type'] == 'folder'
        }
        for folder_table in self.folder_tables():
            folder_path = folder_paths.get(folder_table)
            if folder_path is None:
                # Folder table without a folder row: surface it as a synthetic node
                folder_path = self._guess_folder_path(folder_table)
                if folder_path in nodes:
                    continue
                nodes[folder_path] = {
                    'id': f'folder_{folder_table}',
                    'file_path': folder_path,
                    'file_name': split_path(folder_path)[1],
                    'item_type': 'folder',
                    'parent_path': None,
                    'depth': _depth(folder_path),
                    'status': 'active',
                    'synthetic': True,
                    'children': [],
                }
            ftable = file_table(folder_table)
            for row in db.session.execute(select(ftable).where(ftable.c.status == 'active')).all():
                child = self._serialize(row, folder_path, include_content=False)
                child['children'] = []
                nodes[folder_path]['children'].append(child)

        tree = []
        for path, node in nodes.items():
            parent = node.get('parent_path')
            if parent and parent != path and parent in nodes:
                nodes[parent]['children'].append(node)
            else:
                tree.append(node)
        return _sort_tree(tree)

    def preview(self, path: str, preview_url: Optional[str] = None) -> Tuple[str, str]:
        """(content, mimetype) of a file; HTML asset references are routed back to preview_url"""
        item = self.get_file(path)
        if item['item_type'] != 'file':
            raise ValidationError(f"Not a file: {item['file_path']}")
        content = item.get('content') or ''
        mimetype = PREVIEW_MIMETYPES.get(file_extension(item['file_name']), 'text/plain')
        if mimetype == 'text/html' and preview_url:
            content = rewrite_relative_assets(content, item.get('parent_path') or '/', preview_url)
        return content, mimetype
