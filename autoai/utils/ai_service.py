"""
AI Chat Service

FLOW OVERVIEW
- process_chat(project_id, user_id, message, context)
  1) Load the project (404) and purge its soft-deleted rows.
  2) Build the system prompt (project type prompt + file operation formats) and the user
     message (history trimmed to AI_CONTEXT_TOKEN_BUDGET tokens).
  3) Call the LLM and parse the reply into file intents.
  4) Apply every intent in one transaction: any failure rolls back all of them and raises.
  5) Record code_modifications rows and the ai_conversations row, then commit.
- general_chat(user_id, user_name, message)
  • Project-less assistant; the user's chathistory is replayed as context.
- History and statistics helpers for the /api/ai endpoints.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from flask import current_app, has_app_context
from sqlalchemy import func

from ..models import db, Project, ProjectLog, AIConversation, CodeModification, ChatHistory
from .ai_parser import FileIntent, parse_ai_response
from .error_handlers import NotFoundError, ValidationError
from .file_store import ProjectFileStore, find_in_tree
from .llm_client import llm_client
from .project_service import get_project_or_404
from .project_types import get_ai_prompt, get_project_type_config
from .prom_metrics import observe_ai_chat
from .token_utils import trim_messages_to_budget

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_BUDGET = 6000

FILE_OPERATION_FORMATS = """File operation formats (follow them exactly, one operation per file):

1. Create a file: write the marker line, then the complete file in a fenced code block.
Create file: src/components/Hello.vue
```vue
<template>...</template>
```

2. Modify a file: write the marker line, then the complete new content in a fenced code block.
File operation: modify src/App.vue
```vue
<template>...</template>
```

3. Delete a file: write only the marker line.
File operation: delete src/components/Old.vue

Paths are relative to the project root. Always send whole files, never fragments."""

GENERAL_SYSTEM_PROMPT = (
    "You are AutoAI, a helpful programming assistant. Answer questions about code, "
    "explain concepts clearly and provide complete, runnable examples in fenced code blocks."
)


def _context_budget() -> int:
    if has_app_context():
        return int(current_app.config.get('AI_CONTEXT_TOKEN_BUDGET', DEFAULT_CONTEXT_BUDGET))
    return DEFAULT_CONTEXT_BUDGET


def build_system_prompt(project: Project, project_type: Optional[str] = None) -> str:
    project_type = project_type or project.type
    type_config = get_project_type_config(project_type)
    return "\n\n".join([
        get_ai_prompt(project_type),
        "Project information:\n"
        f"- Project ID: {project.id}\n"
        f"- Project name: {project.name}\n"
        f"- Project type: {type_config['name']}\n"
        f"- Tech stack: {type_config['tech_stack']}",
        "Capabilities:\n"
        "- Create new files and folders in the project\n"
        "- Modify existing files by sending their complete new content\n"
        "- Delete files that are no longer needed\n"
        "- Explain the code you write",
        FILE_OPERATION_FORMATS,
    ])


def build_user_message(message: str, context: Optional[Dict[str, Any]] = None) -> str:
    """User message with the previous turns appended as a history section"""
    previous = (context or {}).get('previousMessages') or []
    history = [
        {'role': m.get('role') or 'user', 'content': m.get('content') or ''}
        for m in previous if isinstance(m, dict) and m.get('content')
    ]
    history = trim_messages_to_budget(history, _context_budget())
    if not history:
        return message

    lines = [f"{m['role']}: {m['content']}" for m in history]
    return f"{message}\n\nConversation history:\n" + "\n".join(lines)


def _resolve_existing_path(store: ProjectFileStore, path: str) -> Optional[str]:
    try:
        return store.get_file(path)['file_path']
    except NotFoundError:
        return None


def _resolve_delete_path(store: ProjectFileStore, path: str) -> str:
    """A bare file name is looked up in the tree; anything else is taken as a path"""
    if '/' not in path.strip('/'):
        node = find_in_tree(store.file_tree(), path.strip('/'))
        if node is not None:
            return node['file_path']
    return path


def _apply_intent(store: ProjectFileStore, intent: FileIntent, user_id) -> Dict[str, Any]:
    created_by = str(user_id) if user_id is not None else 'ai_assistant'

    if intent.kind == 'create':
        item = store.create_file(intent.path, '/', intent.code, created_by)
        action = 'create'
    elif intent.kind == 'modify':
        existing = _resolve_existing_path(store, intent.path)
        if existing is None:
            item = store.create_file(intent.path, '/', intent.code, created_by)
            action = 'create'
        else:
            item = store.update_file_content(existing, intent.code, created_by)
            action = 'modify'
    else:
        item = store.delete_item(_resolve_delete_path(store, intent.path), created_by)
        ProjectLog.record(store.project_id, created_by, 'file_deleted', {
            'filePath': item['file_path'],
            'source': 'ai_assistant',
        })
        action = 'delete'

    db.session.add(CodeModification(
        project_id=store.project_id,
        user_id=user_id,
        file_path=item['file_path'],
        action=action,
        content=intent.code if action != 'delete' else None,
        description=intent.description,
    ))
    return {'id': intent.id, 'operation': action, 'filePath': item['file_path']}


def apply_intents(store: ProjectFileStore, intents: List[FileIntent], user_id) -> List[Dict[str, Any]]:
    """Apply all intents on the current session; the caller commits or rolls back"""
    return [_apply_intent(store, intent, user_id) for intent in intents]


def process_chat(project_id, user_id, message, context=None) -> Dict[str, Any]:
    if not message or not str(message).strip():
        raise ValidationError("Message cannot be empty")

    project = get_project_or_404(project_id)
    store = ProjectFileStore.for_project(project)
    store.cleanup_deleted_files()
    db.session.commit()

    started_at = time.time()
    messages = [
        {'role': 'system', 'content': build_system_prompt(project)},
        {'role': 'user', 'content': build_user_message(message, context)},
    ]
    try:
        reply = llm_client.chat(messages)
    except Exception:
        observe_ai_chat('project', 'error')
        raise

    parsed = parse_ai_response(reply.content)
    actions = parsed.actions
    try:
        applied = apply_intents(store, parsed.intents, user_id)
        db.session.add(AIConversation(
            project_id=project.id,
            user_id=user_id,
            user_message=message,
            ai_response=reply.content,
            context={
                'actions': actions,
                'skipped': parsed.skipped,
                'model': reply.model,
                'usage': reply.usage,
            },
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        observe_ai_chat('project', 'error')
        logger.error(json.dumps({
            'event': 'ai_apply_rolled_back',
            'project_id': project_id,
            'intents': len(parsed.intents),
        }), exc_info=True)
        raise

    observe_ai_chat('project', 'success')
    logger.info(json.dumps({
        'event': 'ai_chat_processed',
        'project_id': project_id,
        'user_id': user_id,
        'intents': len(parsed.intents),
        'applied': len(applied),
        'skipped': len(parsed.skipped),
        'elapsed_ms': int((time.time() - started_at) * 1000),
    }))
    return {
        'response': parsed.content,
        'actions': actions,
        'applied': applied,
        'skipped': parsed.skipped,
    }


def general_chat(user_id, user_name, message) -> Dict[str, Any]:
    if not message or not str(message).strip():
        raise ValidationError("Message cannot be empty")

    history_rows = ChatHistory.query.filter_by(user_id=str(user_id)).order_by(
        ChatHistory.created_at.asc(), ChatHistory.id.asc()
    ).all()
    history = []
    for row in history_rows:
        history.append({'role': 'user', 'content': row.user_message})
        history.append({'role': 'assistant', 'content': row.ai_response})
    history = trim_messages_to_budget(history, _context_budget())
    # A trimmed history must not start with a dangling assistant turn
    if history and history[0]['role'] == 'assistant':
        history = history[1:]

    messages = [{'role': 'system', 'content': GENERAL_SYSTEM_PROMPT}] + history + [
        {'role': 'user', 'content': message}
    ]
    try:
        reply = llm_client.chat(messages)
    except Exception:
        observe_ai_chat('general', 'error')
        raise

    entry = ChatHistory(
        user_id=str(user_id),
        user_name=user_name,
        user_message=message,
        ai_response=reply.content,
    )
    db.session.add(entry)
    db.session.commit()
    observe_ai_chat('general', 'success')
    return {
        'response': reply.content,
        'history': entry.to_dict(),
        'contextMessages': len(history),
    }


def conversations(project_id=None, user_id=None, limit: Optional[int] = 50) -> List[Dict[str, Any]]:
    query = AIConversation.query
    if project_id is not None:
        query = query.filter_by(project_id=project_id)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    query = query.order_by(AIConversation.created_at.desc(), AIConversation.id.desc())
    if limit:
        query = query.limit(limit)
    return [c.to_dict() for c in query.all()]


def clear_conversations(user_id) -> int:
    deleted = AIConversation.query.filter_by(user_id=user_id).delete()
    db.session.commit()
    return deleted


def chat_history(user_id=None) -> List[Dict[str, Any]]:
    query = ChatHistory.query
    if user_id is not None:
        query = query.filter_by(user_id=str(user_id))
    return [row.to_dict() for row in query.order_by(ChatHistory.created_at.asc(), ChatHistory.id.asc()).all()]


def clear_chat_history(user_id) -> int:
    deleted = ChatHistory.query.filter_by(user_id=str(user_id)).delete()
    db.session.commit()
    return deleted


def project_history(project_id, limit: Optional[int] = 20) -> Dict[str, Any]:
    get_project_or_404(project_id)
    modifications = CodeModification.query.filter_by(project_id=project_id).order_by(
        CodeModification.created_at.desc(), CodeModification.id.desc()
    )
    if limit:
        modifications = modifications.limit(limit)
    return {
        'conversations': conversations(project_id=project_id, limit=limit),
        'modifications': [m.to_dict() for m in modifications.all()],
    }


def project_ai_stats(project_id) -> Dict[str, Any]:
    get_project_or_404(project_id)
    conversation_count = AIConversation.query.filter_by(project_id=project_id).count()
    per_action = dict(
        db.session.query(CodeModification.action, func.count(CodeModification.id))
        .filter(CodeModification.project_id == project_id)
        .group_by(CodeModification.action)
        .all()
    )
    last_conversation = db.session.query(func.max(AIConversation.created_at)).filter(
        AIConversation.project_id == project_id
    ).scalar()
    return {
        'conversations': conversation_count,
        'modifications': {
            'create': per_action.get('create', 0),
            'modify': per_action.get('modify', 0),
            'delete': per_action.get('delete', 0),
        },
        'totalModifications': sum(per_action.values()),
        'lastActivity': last_conversation.isoformat() if last_conversation else None,
    }
